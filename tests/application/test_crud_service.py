"""Tests for EntityCrudService retry and failure classification."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from music_catalog.application.services.crud_service import (
    DUPLICATE_SIN_MESSAGE,
    GENERIC_MESSAGE,
    RETRY_MESSAGE,
    EntityCrudService,
)
from music_catalog.application.utilities.results import ErrorKind
from music_catalog.domain.errors import (
    ConcurrencyConflictError,
    NotFoundError,
    PersistenceError,
    ReferentialIntegrityViolationError,
    RetryLimitExceededError,
    TransientStoreError,
    UniqueConstraintViolationError,
    ValidationFailedError,
)


@pytest.fixture
def mock_uow():
    """Unit of work mock usable as an async context manager."""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)
    return uow


@pytest.fixture
def service(mock_uow):
    return EntityCrudService(
        MagicMock(return_value=mock_uow),
        retry_count=2,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
    )


class TestRun:
    """Bounded retry around one unit of work per attempt."""

    async def test_success_runs_once(self, service, mock_uow):
        operation = AsyncMock(return_value="saved")

        result = await service.run(operation, "save")

        assert result == "saved"
        operation.assert_awaited_once_with(mock_uow)
        assert service.uow_factory.call_count == 1

    async def test_transient_failure_is_retried_in_a_fresh_unit(self, service):
        operation = AsyncMock(side_effect=[TransientStoreError(), "saved"])

        result = await service.run(operation, "save")

        assert result == "saved"
        assert operation.await_count == 2
        assert service.uow_factory.call_count == 2

    async def test_exhausted_retries_raise_retry_limit(self, service):
        operation = AsyncMock(side_effect=TransientStoreError(detail="database is locked"))

        with pytest.raises(RetryLimitExceededError) as exc_info:
            await service.run(operation, "save")

        assert exc_info.value.attempts == 3
        assert operation.await_count == 3

    async def test_other_failures_are_not_retried(self, service):
        operation = AsyncMock(side_effect=UniqueConstraintViolationError("musicians.sin"))

        with pytest.raises(UniqueConstraintViolationError):
            await service.run(operation, "save")

        assert operation.await_count == 1


class TestClassification:
    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (NotFoundError("Musician", 1), ErrorKind.NOT_FOUND),
            (ValidationFailedError({"sin": ["bad"]}), ErrorKind.VALIDATION_FAILED),
            (UniqueConstraintViolationError("x"), ErrorKind.UNIQUE_CONSTRAINT_VIOLATION),
            (
                ReferentialIntegrityViolationError(),
                ErrorKind.REFERENTIAL_INTEGRITY_VIOLATION,
            ),
            (ConcurrencyConflictError("Song", 1, 2), ErrorKind.CONCURRENCY_CONFLICT),
            (RetryLimitExceededError(3), ErrorKind.RETRY_LIMIT_EXCEEDED),
            (PersistenceError(), ErrorKind.GENERIC_PERSISTENCE_FAILURE),
        ],
    )
    def test_classify(self, error, kind):
        assert EntityCrudService.classify(error) is kind

    def test_retry_limit_message(self):
        kind, message = EntityCrudService.describe_failure(RetryLimitExceededError(3))

        assert kind is ErrorKind.RETRY_LIMIT_EXCEEDED
        assert message == RETRY_MESSAGE

    def test_overrides_replace_default_message(self):
        error = UniqueConstraintViolationError("musicians.sin")

        _, default = EntityCrudService.describe_failure(error)
        _, overridden = EntityCrudService.describe_failure(
            error, {ErrorKind.UNIQUE_CONSTRAINT_VIOLATION: DUPLICATE_SIN_MESSAGE}
        )

        assert default == GENERIC_MESSAGE
        assert overridden == DUPLICATE_SIN_MESSAGE
