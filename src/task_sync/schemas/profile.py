"""Pydantic schemas for user profiles."""
from collections.abc import Mapping
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from task_sync.schemas.validators import collect_violations, validate_full_name
from task_sync.services.exceptions import RecordValidationError


class Profile(BaseModel):
    """A user's profile as stored remotely; ``id`` equals the user id."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    full_name: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class ProfileInput(BaseModel):
    """Validated profile fields."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    full_name: str | None = None

    @field_validator("full_name", mode="before")
    @classmethod
    def check_full_name(cls, v: Any) -> str | None:
        """Trim full name and enforce the configured length range."""
        return validate_full_name(v)


def validate_profile(raw: Mapping[str, Any] | ProfileInput) -> ProfileInput:
    """Validate a candidate profile payload, raising ``RecordValidationError``."""
    if isinstance(raw, ProfileInput):
        return raw
    try:
        return ProfileInput.model_validate(dict(raw))
    except ValidationError as e:
        raise RecordValidationError(collect_violations(e, ("full_name",))) from None
