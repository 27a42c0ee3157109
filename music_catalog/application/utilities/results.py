"""Terminal outcomes shared by the catalog use cases.

Every read and write operation ends in exactly one status:
- SAVED: the write committed; ``entity`` is the stored aggregate
- REDISPLAY: the form must be shown again with the in-progress values
- NOT_FOUND: the identity does not exist
- DISPLAY: a read succeeded
"""

from enum import StrEnum
from typing import Any

from attrs import define, field

from music_catalog.domain.entities import FieldErrors


class OutcomeStatus(StrEnum):
    SAVED = "saved"
    REDISPLAY = "redisplay"
    NOT_FOUND = "not_found"
    DISPLAY = "display"


class ErrorKind(StrEnum):
    """User-facing classification of a failed operation."""

    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "validation_failed"
    UNIQUE_CONSTRAINT_VIOLATION = "unique_constraint_violation"
    REFERENTIAL_INTEGRITY_VIOLATION = "referential_integrity_violation"
    CONCURRENCY_CONFLICT = "concurrency_conflict"
    RETRY_LIMIT_EXCEEDED = "retry_limit_exceeded"
    GENERIC_PERSISTENCE_FAILURE = "generic_persistence_failure"


@define(frozen=True, slots=True)
class CrudOutcome[E, O]:
    """Result of a catalog operation.

    ``entity`` holds the saved or loaded aggregate, or on REDISPLAY the
    in-progress aggregate carrying the submitted values and selections.
    ``options`` holds the picker lists the form needs.
    """

    status: OutcomeStatus
    entity: E | None = None
    entity_id: int | None = None
    field_errors: FieldErrors = field(factory=dict)
    form_error: str | None = None
    error_kind: ErrorKind | None = None
    options: O | None = None

    @property
    def errors(self) -> list[str]:
        """Form-level error followed by every field message."""
        messages = [self.form_error] if self.form_error else []
        for field_messages in self.field_errors.values():
            messages.extend(field_messages)
        return messages

    @classmethod
    def saved(cls, entity: Any, entity_id: int | None = None) -> "CrudOutcome":
        return cls(
            status=OutcomeStatus.SAVED,
            entity=entity,
            entity_id=entity_id if entity_id is not None else getattr(entity, "id", None),
        )

    @classmethod
    def display(cls, entity: Any, options: Any = None) -> "CrudOutcome":
        return cls(
            status=OutcomeStatus.DISPLAY,
            entity=entity,
            entity_id=getattr(entity, "id", None),
            options=options,
        )

    @classmethod
    def not_found(cls, entity_id: int | None = None) -> "CrudOutcome":
        return cls(
            status=OutcomeStatus.NOT_FOUND,
            entity_id=entity_id,
            error_kind=ErrorKind.NOT_FOUND,
        )

    @classmethod
    def redisplay(
        cls,
        entity: Any,
        *,
        options: Any = None,
        field_errors: FieldErrors | None = None,
        form_error: str | None = None,
        error_kind: ErrorKind | None = None,
    ) -> "CrudOutcome":
        return cls(
            status=OutcomeStatus.REDISPLAY,
            entity=entity,
            entity_id=getattr(entity, "id", None),
            field_errors=field_errors or {},
            form_error=form_error,
            error_kind=error_kind,
            options=options,
        )
