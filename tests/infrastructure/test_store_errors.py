"""Tests for store-error translation."""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError
from sqlalchemy.orm.exc import StaleDataError

from music_catalog.domain.errors import (
    ConcurrencyConflictError,
    PersistenceError,
    ReferentialIntegrityViolationError,
    TransientStoreError,
    UniqueConstraintViolationError,
)
from music_catalog.infrastructure.persistence.repositories.repo_decorator import (
    translate_store_error,
)


def driver_error(error_class, message: str):
    return error_class("STATEMENT", {}, Exception(message))


class TestTranslateStoreError:
    """Driver exceptions map onto the catalog error hierarchy."""

    def test_sqlite_unique_violation_names_columns(self):
        error = translate_store_error(
            driver_error(IntegrityError, "UNIQUE constraint failed: musicians.sin")
        )

        assert isinstance(error, UniqueConstraintViolationError)
        assert error.constraint == "musicians.sin"
        assert error.involves("musicians.sin")
        assert not error.involves("plays.musician_id")

    def test_postgres_unique_violation_names_index(self):
        error = translate_store_error(
            driver_error(
                IntegrityError,
                'duplicate key value violates unique constraint "ix_musicians_sin"',
            )
        )

        assert isinstance(error, UniqueConstraintViolationError)
        assert error.constraint == "ix_musicians_sin"

    def test_foreign_key_violation(self):
        error = translate_store_error(
            driver_error(IntegrityError, "FOREIGN KEY constraint failed")
        )

        assert isinstance(error, ReferentialIntegrityViolationError)

    @pytest.mark.parametrize(
        "message", ["database is locked", "deadlock detected", "database is busy"]
    )
    def test_lock_contention_is_transient(self, message):
        error = translate_store_error(driver_error(OperationalError, message))

        assert isinstance(error, TransientStoreError)

    def test_stale_data_is_concurrency_conflict(self):
        error = translate_store_error(StaleDataError("expected to update 1 row"))

        assert isinstance(error, ConcurrencyConflictError)

    def test_anything_else_is_generic(self):
        error = translate_store_error(
            driver_error(ProgrammingError, "no such table: musicians")
        )

        assert type(error) is PersistenceError
        assert "no such table" in error.detail
