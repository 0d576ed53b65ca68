"""Remote store gateway for the profile table."""
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from task_sync.core.config import get_settings
from task_sync.core.session import SessionContext
from task_sync.gateway.api_client import api_get, api_patch, create_http_client
from task_sync.schemas.profile import Profile, ProfileInput
from task_sync.services.exceptions import NotFoundError, StoreUnavailableError


class ProfileGateway(Protocol):
    """Read and update the current user's profile."""

    async def get(self) -> Profile:
        """The user's profile."""
        ...

    async def update(self, fields: ProfileInput) -> Profile:
        """Update the profile and return the stored row."""
        ...


def _single_profile(rows: Any) -> Profile:
    if not isinstance(rows, list):
        raise StoreUnavailableError("Store returned a malformed profile")
    if not rows:
        raise NotFoundError("Profile not found")
    try:
        return Profile.model_validate(rows[0])
    except ValidationError as e:
        raise StoreUnavailableError("Store returned malformed profile data") from e


class RestProfileGateway:
    """Profile gateway speaking the store's REST table protocol; rows keyed by user id."""

    def __init__(
        self,
        session: SessionContext,
        client: httpx.AsyncClient | None = None,
        table: str | None = None,
    ) -> None:
        self._session = session
        self._client = client or create_http_client()
        self._path = f"/rest/v1/{table or get_settings().profiles_table}"

    async def get(self) -> Profile:
        """Fetch the current user's profile."""
        user = self._session.require_user()
        rows = await api_get(
            self._client,
            self._path,
            self._session.require_token(),
            params={"select": "*", "id": f"eq.{user.id}"},
            entity_type="profile",
        )
        return _single_profile(rows)

    async def update(self, fields: ProfileInput) -> Profile:
        """Update the current user's profile."""
        user = self._session.require_user()
        rows = await api_patch(
            self._client,
            self._path,
            self._session.require_token(),
            json=fields.model_dump(mode="json"),
            params={"id": f"eq.{user.id}"},
            entity_type="profile",
        )
        return _single_profile(rows)
