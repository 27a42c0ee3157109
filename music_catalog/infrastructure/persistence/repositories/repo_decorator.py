"""Repository decorator for standardizing DB operations.

Every repository method is wrapped with:
- Structured logging with context and timing information
- Translation of SQLAlchemy/driver exceptions into catalog errors

Callers above the persistence layer therefore only ever see the
``music_catalog.domain.errors`` hierarchy; raw driver diagnostics stay in the
logs.
"""

import asyncio
from collections.abc import Callable, Coroutine
import functools
import re
import time
from typing import Any, ParamSpec, TypeVar

from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError,
)
from sqlalchemy.orm.exc import StaleDataError

from music_catalog.config import get_logger
from music_catalog.domain.errors import (
    CatalogError,
    ConcurrencyConflictError,
    PersistenceError,
    ReferentialIntegrityViolationError,
    TransientStoreError,
    UniqueConstraintViolationError,
)

P = ParamSpec("P")
T = TypeVar("T")

logger = get_logger(__name__)

# Driver phrasings: SQLite, PostgreSQL, MySQL
_UNIQUE_MARKERS = (
    "unique constraint failed",
    "duplicate key value violates unique constraint",
    "duplicate entry",
)
_FOREIGN_KEY_MARKERS = (
    "foreign key constraint failed",
    "violates foreign key constraint",
    "a foreign key constraint fails",
)
_TRANSIENT_MARKERS = (
    "database is locked",
    "database is busy",
    "database table is locked",
    "deadlock detected",
    "could not serialize access",
    "lock wait timeout exceeded",
)
_SQLITE_UNIQUE_COLUMNS = re.compile(r"unique constraint failed:\s*(?P<columns>[\w., ]+)", re.I)
_QUOTED_CONSTRAINT = re.compile(r"constraint \"(?P<name>[^\"]+)\"", re.I)


def _driver_message(error: SQLAlchemyError) -> str:
    original = getattr(error, "orig", None)
    return str(original if original is not None else error)


def _constraint_name(message: str) -> str | None:
    if match := _SQLITE_UNIQUE_COLUMNS.search(message):
        return match.group("columns").strip()
    if match := _QUOTED_CONSTRAINT.search(message):
        return match.group("name")
    return None


def translate_store_error(error: SQLAlchemyError) -> PersistenceError:
    """Classify a SQLAlchemy exception as a catalog persistence error."""
    message = _driver_message(error)
    lowered = message.lower()

    match error:
        case IntegrityError() if any(m in lowered for m in _UNIQUE_MARKERS):
            return UniqueConstraintViolationError(
                constraint=_constraint_name(message), detail=message
            )
        case IntegrityError() if any(m in lowered for m in _FOREIGN_KEY_MARKERS):
            return ReferentialIntegrityViolationError(detail=message)
        case StaleDataError():
            return ConcurrencyConflictError(entity_name="Row", entity_id=None)
        case OperationalError() | TimeoutError() if any(
            m in lowered for m in _TRANSIENT_MARKERS
        ):
            return TransientStoreError(
                message="The data store is busy", detail=message
            )
        case TimeoutError():
            return TransientStoreError(
                message="Timed out waiting for a connection", detail=message
            )
        case DBAPIError() if any(m in lowered for m in _TRANSIENT_MARKERS):
            return TransientStoreError(
                message="The data store is busy", detail=message
            )
        case _:
            return PersistenceError(detail=message)


def db_operation(operation_name: str | None = None):
    """Decorate repository methods with consistent logging and error translation.

    Args:
        operation_name: Optional name for the operation (defaults to function name)

    Example:
        @db_operation("get_musician")
        async def get_musician(self, musician_id: int) -> Musician:
            ...
    """

    def decorator(
        func: Callable[P, Coroutine[Any, Any, T]],
    ) -> Callable[P, Coroutine[Any, Any, T]]:
        func_name = operation_name or func.__name__

        if not asyncio.iscoroutinefunction(func):
            raise TypeError(
                f"db_operation can only be used with async functions, but {func_name} is not async",
            )

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            start_time = time.perf_counter()
            repo_name = args[0].__class__.__name__ if args else "Repository"
            context = _build_log_context(kwargs)

            try:
                logger.trace(
                    f"DB operation starting: {repo_name}.{func_name}",
                    operation=func_name,
                    **context,
                )
                result = await func(*args, **kwargs)
                logger.trace(
                    f"DB operation completed: {repo_name}.{func_name}",
                    operation=func_name,
                    exec_time_ms=(time.perf_counter() - start_time) * 1000,
                    **context,
                )
                return result

            except CatalogError as e:
                # Already classified (not found, version conflict)
                logger.debug(
                    f"DB operation rejected: {repo_name}.{func_name}",
                    operation=func_name,
                    error_type=type(e).__name__,
                    error=str(e),
                    exec_time_ms=(time.perf_counter() - start_time) * 1000,
                    **context,
                )
                raise

            except IntegrityError as e:
                translated = translate_store_error(e)
                logger.warning(
                    f"DB integrity error: {repo_name}.{func_name}",
                    operation=func_name,
                    error_type=type(translated).__name__,
                    error=_driver_message(e),
                    exec_time_ms=(time.perf_counter() - start_time) * 1000,
                    **context,
                )
                raise translated from e

            except SQLAlchemyError as e:
                translated = translate_store_error(e)
                log = (
                    logger.warning
                    if isinstance(translated, TransientStoreError)
                    else logger.error
                )
                log(
                    f"DB error: {repo_name}.{func_name}",
                    operation=func_name,
                    error_type=type(translated).__name__,
                    error=_driver_message(e),
                    exec_time_ms=(time.perf_counter() - start_time) * 1000,
                    **context,
                )
                raise translated from e

            except Exception as e:
                logger.exception(
                    f"Unhandled exception in {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=(time.perf_counter() - start_time) * 1000,
                    **context,
                )
                raise

        return wrapper

    return decorator


def _build_log_context(kwargs: dict[str, Any]) -> dict[str, Any]:
    """Loggable scalar keyword arguments; entities are never logged."""
    return {
        k: v
        for k, v in kwargs.items()
        if not k.startswith("_") and isinstance(v, int | str | bool)
    }
