"""Create/read/update/delete orchestration shared by the catalog use cases.

Each attempt runs inside a fresh unit of work, so a retried save re-reads
the aggregate and recomputes its changes against current state. Only
lock/busy contention is retried; every other failure surfaces immediately
and is classified into a user-facing error kind.
"""

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import backoff

from music_catalog.application.utilities.results import ErrorKind
from music_catalog.config import get_logger, settings
from music_catalog.domain.errors import (
    CatalogError,
    ConcurrencyConflictError,
    NotFoundError,
    PersistenceError,
    ReferentialIntegrityViolationError,
    RetryLimitExceededError,
    TransientStoreError,
    UniqueConstraintViolationError,
    ValidationFailedError,
)
from music_catalog.domain.repositories.interfaces import (
    UnitOfWorkFactory,
    UnitOfWorkProtocol,
)

logger = get_logger(__name__).bind(service="crud_service")

RETRY_MESSAGE = (
    "Unable to save changes after multiple attempts. Try again, and if the "
    "problem persists, see your system administrator."
)
DUPLICATE_SIN_MESSAGE = (
    "Unable to save changes. Remember, you cannot have duplicate SIN numbers."
)
MUSICIAN_REFERENCED_MESSAGE = (
    "Unable to save changes. You cannot delete a Musician who performed on any songs."
)
GENERIC_MESSAGE = (
    "Unable to save changes. Try again, and if the problem persists see your "
    "system administrator."
)

# Default message per kind; callers override per entity
FAILURE_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.RETRY_LIMIT_EXCEEDED: RETRY_MESSAGE,
    ErrorKind.UNIQUE_CONSTRAINT_VIOLATION: GENERIC_MESSAGE,
    ErrorKind.REFERENTIAL_INTEGRITY_VIOLATION: GENERIC_MESSAGE,
    ErrorKind.CONCURRENCY_CONFLICT: GENERIC_MESSAGE,
    ErrorKind.GENERIC_PERSISTENCE_FAILURE: GENERIC_MESSAGE,
}


class EntityCrudService:
    """Runs catalog operations with bounded retry and failure classification.

    Args:
        uow_factory: Opens a new unit of work per attempt
        retry_count: Retries after the first attempt (settings default)
        retry_base_delay: Backoff factor in seconds (settings default)
        retry_max_delay: Cap on a single backoff wait (settings default)
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        retry_count: int | None = None,
        retry_base_delay: float | None = None,
        retry_max_delay: float | None = None,
    ) -> None:
        config = settings.persistence
        self.uow_factory = uow_factory
        self.retry_count = (
            config.save_retry_count if retry_count is None else retry_count
        )
        self.retry_base_delay = (
            config.save_retry_base_delay
            if retry_base_delay is None
            else retry_base_delay
        )
        self.retry_max_delay = (
            config.save_retry_max_delay if retry_max_delay is None else retry_max_delay
        )

    def _on_backoff(self, details: Mapping[str, Any]) -> None:
        """Log backoff event."""
        logger.warning(
            f"Store busy, backing off {details['target'].__name__} "
            f"(attempt {details['tries']})",
            retry_delay=f"{details['wait']:.2f}s",
        )

    def _on_giveup(self, details: Mapping[str, Any]) -> None:
        """Log when we give up retrying."""
        exception = details.get("exception")
        logger.error(
            f"All {details['tries']} attempts failed for {details['target'].__name__}",
            elapsed_time=f"{details['elapsed']:.2f}s",
            error=str(exception) if exception else "Unknown error",
        )

    async def run[T](
        self,
        operation: Callable[[UnitOfWorkProtocol], Awaitable[T]],
        operation_name: str,
    ) -> T:
        """Run ``operation`` in a unit of work, committing when it returns.

        Raises:
            RetryLimitExceededError: If every attempt hit transient contention
            CatalogError: Any other failure, unchanged
        """
        max_tries = self.retry_count + 1
        attempts = 0

        async def attempt() -> T:
            nonlocal attempts
            attempts += 1
            async with self.uow_factory() as uow:
                return await operation(uow)

        attempt.__name__ = operation_name
        run_with_backoff = backoff.on_exception(
            backoff.expo,
            TransientStoreError,
            max_tries=max_tries,
            factor=self.retry_base_delay,
            max_value=self.retry_max_delay,
            jitter=backoff.full_jitter,
            on_backoff=self._on_backoff,
            on_giveup=self._on_giveup,
        )(attempt)

        try:
            return await run_with_backoff()
        except TransientStoreError as e:
            raise RetryLimitExceededError(
                attempts=attempts,
                entity_name=e.entity_name,
                detail=e.detail,
            ) from e

    @staticmethod
    def classify(error: CatalogError) -> ErrorKind:
        """Map an exception to its user-facing error kind."""
        match error:
            case NotFoundError():
                return ErrorKind.NOT_FOUND
            case ValidationFailedError():
                return ErrorKind.VALIDATION_FAILED
            case RetryLimitExceededError():
                return ErrorKind.RETRY_LIMIT_EXCEEDED
            case UniqueConstraintViolationError():
                return ErrorKind.UNIQUE_CONSTRAINT_VIOLATION
            case ReferentialIntegrityViolationError():
                return ErrorKind.REFERENTIAL_INTEGRITY_VIOLATION
            case ConcurrencyConflictError():
                return ErrorKind.CONCURRENCY_CONFLICT
            case _:
                return ErrorKind.GENERIC_PERSISTENCE_FAILURE

    @classmethod
    def describe_failure(
        cls,
        error: PersistenceError,
        overrides: Mapping[ErrorKind, str] | None = None,
    ) -> tuple[ErrorKind, str]:
        """Classify a store failure and choose the message shown to the user."""
        kind = cls.classify(error)
        messages = {**FAILURE_MESSAGES, **(overrides or {})}
        return kind, messages.get(kind, GENERIC_MESSAGE)
