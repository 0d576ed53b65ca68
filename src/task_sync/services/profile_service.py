"""Service layer for profile reads and updates."""
import logging
from collections.abc import Mapping
from typing import Any

from task_sync.gateway.profile_gateway import ProfileGateway
from task_sync.schemas.profile import Profile, ProfileInput, validate_profile

logger = logging.getLogger(__name__)


class ProfileService:
    """Validates profile edits before they reach the store."""

    def __init__(self, gateway: ProfileGateway) -> None:
        self._gateway = gateway

    async def get_profile(self) -> Profile:
        """Fetch the signed-in user's profile."""
        return await self._gateway.get()

    async def update_profile(self, raw: Mapping[str, Any] | ProfileInput) -> Profile:
        """
        Validate and save profile fields.

        Raises:
            RecordValidationError: If the full name is out of range (no request is made).
            StoreError: If the store rejects or cannot process the update.
        """
        fields = validate_profile(raw)
        profile = await self._gateway.update(fields)
        logger.info("profile_updated user_id=%s", profile.id)
        return profile
