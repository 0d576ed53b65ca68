"""Pydantic schemas for task records."""
from collections.abc import Mapping
from datetime import datetime
from enum import StrEnum
from typing import Any, TypedDict
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from task_sync.schemas.validators import (
    collect_violations,
    validate_choice,
    validate_description,
    validate_title,
)
from task_sync.services.exceptions import RecordValidationError, ViolationKind


class TaskStatus(StrEnum):
    """Workflow status of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        """Display text, e.g. 'in progress'."""
        return self.value.replace("_", " ")


class TaskPriority(StrEnum):
    """Priority of a task."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def label(self) -> str:
        """Display text."""
        return self.value


class RawTaskInput(TypedDict, total=False):
    """Untyped task form payload as submitted by the presentation layer."""

    title: Any
    description: Any
    status: Any
    priority: Any


TASK_FIELD_ORDER = ("title", "description", "status", "priority")


class TaskInput(BaseModel):
    """
    Validated task fields, safe to submit to the remote store.

    Constructed only through ``validate_task`` (or ``model_validate``), so an
    instance always holds a trimmed non-empty title, a normalized description,
    and enumerated status/priority values.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str = Field(default="", validate_default=True)
    description: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, v: Any) -> str:
        """Trim title and enforce non-empty / max length."""
        return validate_title(v)

    @field_validator("description", mode="before")
    @classmethod
    def check_description(cls, v: Any) -> str | None:
        """Trim description, normalize blank to None, enforce max length."""
        return validate_description(v)

    @field_validator("status", mode="before")
    @classmethod
    def check_status(cls, v: Any) -> TaskStatus:
        """Accept only the enumerated statuses."""
        return validate_choice(v, TaskStatus, ViolationKind.INVALID_STATUS, "status")

    @field_validator("priority", mode="before")
    @classmethod
    def check_priority(cls, v: Any) -> TaskPriority:
        """Accept only the enumerated priorities."""
        return validate_choice(v, TaskPriority, ViolationKind.INVALID_PRIORITY, "priority")

    def to_row(self) -> dict[str, Any]:
        """Serialize to the store's column layout (description may be null)."""
        return self.model_dump(mode="json")


class Task(BaseModel):
    """A task as confirmed by the remote store."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: UUID
    owner: UUID = Field(validation_alias=AliasChoices("user_id", "owner"))
    title: str
    description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    created_at: datetime
    updated_at: datetime | None = None


def validate_task(raw: Mapping[str, Any] | TaskInput) -> TaskInput:
    """
    Validate a candidate task payload.

    Rules are applied in field order (title, description, status, priority);
    at most one violation is reported per field. Pure and side-effect free.

    Args:
        raw: Untyped form payload, or an already validated ``TaskInput``.

    Returns:
        The validated record.

    Raises:
        RecordValidationError: With every field's first violation, in order.
    """
    if isinstance(raw, TaskInput):
        return raw
    try:
        return TaskInput.model_validate(dict(raw))
    except ValidationError as e:
        raise RecordValidationError(collect_violations(e, TASK_FIELD_ORDER)) from None
