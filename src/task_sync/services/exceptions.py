"""Shared exceptions for validation and remote store operations."""
from dataclasses import dataclass
from enum import StrEnum


class ViolationKind(StrEnum):
    """Kind of field-level validation failure."""

    EMPTY_TITLE = "empty_title"
    TITLE_TOO_LONG = "title_too_long"
    DESCRIPTION_TOO_LONG = "description_too_long"
    INVALID_STATUS = "invalid_status"
    INVALID_PRIORITY = "invalid_priority"
    INVALID_NAME = "invalid_name"
    NOT_TEXT = "not_text"  # A text field received a non-string value


@dataclass(frozen=True)
class FieldViolation:
    """A single field-level validation failure."""

    field: str
    kind: ViolationKind
    message: str = ""

    def __str__(self) -> str:
        return self.message or f"{self.field}: {self.kind}"


class RecordValidationError(Exception):
    """
    Raised when a candidate record fails validation.

    Never reaches the network: the mutation coordinator resolves it locally
    before any gateway call is made.
    """

    def __init__(self, violations: list[FieldViolation]) -> None:
        if not violations:
            raise ValueError("RecordValidationError requires at least one violation")
        self.violations = violations
        super().__init__("; ".join(str(v) for v in violations))

    @property
    def first(self) -> FieldViolation:
        """The first violation, in field check order."""
        return self.violations[0]


class StoreError(Exception):
    """Base exception for failures reported by (or reaching) the remote store."""

    default_message = "Remote store error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(StoreError):
    """Raised when the target record does not exist or does not belong to the caller."""

    default_message = "Task not found"


class UnauthorizedError(StoreError):
    """Raised when the session is missing, expired, or lacks access to the record."""

    default_message = "Not signed in or session expired"


class StoreUnavailableError(StoreError):
    """Raised on transient connectivity or backend failures."""

    default_message = "Remote store unavailable"


class StoreRejectedError(StoreError):
    """Raised when the store rejects a write (constraint violation, bad request)."""

    default_message = "Request rejected by the remote store"
