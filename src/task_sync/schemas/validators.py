"""
Field validation functions shared by the task and profile schemas.

Each check raises ``PydanticCustomError`` whose error type is a
``ViolationKind`` value, so a pydantic ``ValidationError`` can be turned back
into typed field violations by ``collect_violations``.
"""
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError
from pydantic_core import PydanticCustomError

from task_sync.core.config import get_settings
from task_sync.services.exceptions import FieldViolation, ViolationKind


def _violation(kind: ViolationKind, message: str, **context: Any) -> PydanticCustomError:
    return PydanticCustomError(kind.value, message, context or None)


def require_text(value: Any, field: str) -> str | None:
    """Pass through ``None`` and strings; reject anything else."""
    if value is None or isinstance(value, str):
        return value
    raise _violation(ViolationKind.NOT_TEXT, "{field} must be text", field=field.title())


def validate_title(value: Any) -> str:
    """
    Trim and validate a task title.

    Returns:
        The trimmed title.

    Raises:
        PydanticCustomError: empty_title if nothing is left after trimming,
            title_too_long if it exceeds the configured maximum.
    """
    settings = get_settings()
    trimmed = (require_text(value, "title") or "").strip()
    if not trimmed:
        raise _violation(ViolationKind.EMPTY_TITLE, "Title is required")
    if len(trimmed) > settings.max_title_length:
        raise _violation(
            ViolationKind.TITLE_TOO_LONG,
            "Title exceeds maximum length of {max_length} characters (got {length} characters).",
            max_length=settings.max_title_length,
            length=len(trimmed),
        )
    return trimmed


def validate_description(value: Any) -> str | None:
    """
    Trim and validate an optional task description.

    Absent and whitespace-only descriptions both normalize to ``None`` so the
    store never receives an empty string.
    """
    settings = get_settings()
    text = require_text(value, "description")
    if text is None:
        return None
    trimmed = text.strip()
    if not trimmed:
        return None
    if len(trimmed) > settings.max_description_length:
        raise _violation(
            ViolationKind.DESCRIPTION_TOO_LONG,
            "Description exceeds maximum length of {max_length} characters "
            "(got {length} characters).",
            max_length=settings.max_description_length,
            length=len(trimmed),
        )
    return trimmed


def validate_choice(value: Any, choices: type, kind: ViolationKind, field: str) -> Any:
    """Coerce ``value`` into the enum ``choices`` or raise ``kind``."""
    if isinstance(value, choices):
        return value
    try:
        return choices(value)
    except (ValueError, TypeError):
        allowed = ", ".join(member.value for member in choices)
        raise _violation(
            kind,
            "Invalid {field} '{value}'. Must be one of: {allowed}.",
            field=field,
            value=value,
            allowed=allowed,
        ) from None


def validate_full_name(value: Any) -> str | None:
    """Trim and validate a profile full name; ``None`` means no name is set."""
    settings = get_settings()
    if value is None:
        return None
    if not isinstance(value, str):
        raise _violation(ViolationKind.INVALID_NAME, "Full name must be text")
    trimmed = value.strip()
    min_len = settings.min_full_name_length
    max_len = settings.max_full_name_length
    if not min_len <= len(trimmed) <= max_len:
        raise _violation(
            ViolationKind.INVALID_NAME,
            "Full name must be between {min_length} and {max_length} characters "
            "(got {length}).",
            min_length=min_len,
            max_length=max_len,
            length=len(trimmed),
        )
    return trimmed


def collect_violations(
    error: ValidationError,
    field_order: Sequence[str],
) -> list[FieldViolation]:
    """
    Convert a pydantic ``ValidationError`` into ordered field violations.

    Only the first violation per field is kept, and fields are reported in
    ``field_order`` (the order checks are applied).
    """
    violations: dict[str, FieldViolation] = {}
    for err in error.errors():
        field = str(err["loc"][0]) if err["loc"] else "__root__"
        if field in violations:
            continue
        try:
            kind = ViolationKind(err["type"])
        except ValueError:
            kind = ViolationKind.NOT_TEXT
        violations[field] = FieldViolation(field=field, kind=kind, message=err["msg"])

    def _position(field: str) -> int:
        return field_order.index(field) if field in field_order else len(field_order)

    return [violations[field] for field in sorted(violations, key=_position)]
