"""httpx client for the store's password-based auth endpoints."""
import logging
from collections.abc import Callable
from uuid import UUID

import httpx
from pydantic import BaseModel, ValidationError

from task_sync.core.session import AuthEvent, AuthListener, AuthUser
from task_sync.gateway.api_client import api_post, create_http_client
from task_sync.services.exceptions import (
    StoreRejectedError,
    StoreUnavailableError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

TOKEN_PATH = "/auth/v1/token"
LOGOUT_PATH = "/auth/v1/logout"


class _UserPayload(BaseModel):
    id: UUID
    email: str | None = None


class AuthSession(BaseModel):
    """Token response from the auth service."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    user: _UserPayload


class RestIdentityProvider:
    """
    Identity provider backed by the store's auth service.

    Holds at most one session in memory and notifies listeners on sign-in and
    sign-out. Satisfies the ``IdentityProvider`` protocol.
    """

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._owns_client = client is None
        self._client = client or create_http_client()
        self._session: AuthSession | None = None
        self._listeners: list[AuthListener] = []

    def current_user(self) -> AuthUser | None:
        """Return the signed-in user, or None."""
        if self._session is None:
            return None
        return AuthUser(id=self._session.user.id, email=self._session.user.email)

    def access_token(self) -> str | None:
        """Return the bearer token for the current session, or None."""
        return self._session.access_token if self._session else None

    def on_auth_change(self, callback: AuthListener) -> Callable[[], None]:
        """Register ``callback``; returns a function that unregisters it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    async def sign_in_with_password(self, email: str, password: str) -> AuthUser:
        """
        Sign in with email and password.

        Raises:
            UnauthorizedError: If the credentials are rejected.
            StoreUnavailableError: If the auth service cannot be reached or answers
                with a malformed session.
        """
        try:
            data = await api_post(
                self._client,
                TOKEN_PATH,
                None,
                json={"email": email, "password": password},
                params={"grant_type": "password"},
            )
        except StoreRejectedError as e:
            raise UnauthorizedError(e.message) from e
        try:
            session = AuthSession.model_validate(data)
        except ValidationError as e:
            raise StoreUnavailableError("Auth service returned a malformed session") from e
        self._session = session
        user = self.current_user()
        logger.info("auth_signed_in user_id=%s", self._session.user.id)
        self._notify(AuthEvent.SIGNED_IN, user)
        return user

    async def sign_out(self) -> None:
        """
        End the current session.

        The local session is dropped and listeners are notified even when the
        logout call fails; the failure is still raised to the caller.
        """
        token = self.access_token()
        if token is None:
            return
        try:
            await api_post(self._client, LOGOUT_PATH, token)
        finally:
            user_id = self._session.user.id if self._session else None
            self._session = None
            logger.info("auth_signed_out user_id=%s", user_id)
            self._notify(AuthEvent.SIGNED_OUT, None)

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    def _notify(self, event: AuthEvent, user: AuthUser | None) -> None:
        for listener in list(self._listeners):
            listener(event, user)
