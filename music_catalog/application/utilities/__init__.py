"""Application utilities - shared result types."""

from .results import CrudOutcome, ErrorKind, OutcomeStatus

__all__ = ["CrudOutcome", "ErrorKind", "OutcomeStatus"]
