"""Exception hierarchy for the music catalog.

Every failure a catalog operation can report inherits from
:class:`CatalogError`, which carries a human-readable ``message`` and an
optional ``entity_name`` naming the aggregate involved ("Musician", "Song").

    CatalogError  (base -- catch-all for any catalog error)
    +-- NotFoundError                   (identity does not exist)
    +-- ValidationFailedError           (field-level constraint failures)
    +-- PersistenceError                (generic store failure)
        +-- UniqueConstraintViolationError      (duplicate unique value, e.g. SIN)
        +-- ReferentialIntegrityViolationError  (row still referenced)
        +-- ConcurrencyConflictError            (stale version on update)
        +-- TransientStoreError                 (lock/busy, safe to retry)
        +-- RetryLimitExceededError             (transient failures exhausted retries)

Repositories raise the persistence subclasses after translating driver
exceptions; use cases map each class to a terminal outcome.
"""


class CatalogError(Exception):
    """Base exception for all catalog errors."""

    def __init__(
        self,
        message: str = "An unexpected catalog error occurred",
        entity_name: str | None = None,
    ) -> None:
        self._message = message
        self._entity_name = entity_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def entity_name(self) -> str | None:
        return self._entity_name

    def __str__(self) -> str:
        if self._entity_name:
            return f"[{self._entity_name}] {self._message}"
        return self._message


class NotFoundError(CatalogError):
    """Raised when the requested identity does not exist in the store."""

    def __init__(
        self,
        entity_name: str,
        entity_id: int | None,
    ) -> None:
        self.entity_id = entity_id
        super().__init__(
            message=f"{entity_name} with ID {entity_id} not found",
            entity_name=entity_name,
        )


class ValidationFailedError(CatalogError):
    """Raised when submitted values break one or more field constraints.

    ``field_errors`` maps a field name to the messages reported for it.
    """

    def __init__(
        self,
        field_errors: dict[str, list[str]],
        entity_name: str | None = None,
    ) -> None:
        self.field_errors = field_errors
        fields = ", ".join(sorted(field_errors))
        super().__init__(
            message=f"Validation failed for: {fields}",
            entity_name=entity_name,
        )


class PersistenceError(CatalogError):
    """Raised when the store rejects a write for an unclassified reason.

    ``detail`` keeps the driver diagnostic for logging; it is never shown to
    end users.
    """

    def __init__(
        self,
        message: str = "The data store rejected the operation",
        entity_name: str | None = None,
        detail: str | None = None,
    ) -> None:
        self.detail = detail
        super().__init__(message=message, entity_name=entity_name)


class UniqueConstraintViolationError(PersistenceError):
    """Raised when a write duplicates a value covered by a unique index."""

    def __init__(
        self,
        constraint: str | None = None,
        entity_name: str | None = None,
        detail: str | None = None,
    ) -> None:
        self.constraint = constraint
        super().__init__(
            message=f"Unique constraint violated: {constraint or 'unknown'}",
            entity_name=entity_name,
            detail=detail,
        )

    def involves(self, *markers: str) -> bool:
        """Check whether the violated constraint matches any marker."""
        haystack = f"{self.constraint or ''} {self.detail or ''}".lower()
        return any(marker.lower() in haystack for marker in markers)


class ReferentialIntegrityViolationError(PersistenceError):
    """Raised when a delete or write breaks a foreign key reference."""

    def __init__(
        self,
        message: str = "Foreign key constraint violated",
        entity_name: str | None = None,
        detail: str | None = None,
    ) -> None:
        super().__init__(message=message, entity_name=entity_name, detail=detail)


class ConcurrencyConflictError(PersistenceError):
    """Raised when an update matched no row at the expected version."""

    def __init__(
        self,
        entity_name: str,
        entity_id: int | None,
        expected_version: int | None = None,
    ) -> None:
        self.entity_id = entity_id
        self.expected_version = expected_version
        super().__init__(
            message=(
                f"{entity_name} {entity_id} was modified or removed "
                f"since version {expected_version} was read"
            ),
            entity_name=entity_name,
        )


class TransientStoreError(PersistenceError):
    """Raised on lock or busy contention; the whole attempt may be retried."""


class RetryLimitExceededError(PersistenceError):
    """Raised when transient failures persisted through every retry."""

    def __init__(
        self,
        attempts: int,
        entity_name: str | None = None,
        detail: str | None = None,
    ) -> None:
        self.attempts = attempts
        super().__init__(
            message=f"Save abandoned after {attempts} attempts",
            entity_name=entity_name,
            detail=detail,
        )
