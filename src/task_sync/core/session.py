"""
Session context for the signed-in user.

The identity provider owns credentials; ``SessionContext`` is the single
process-wide view of "who is signed in" that gateways and the task cache are
given explicitly. It has an explicit lifecycle: ``init()`` on app start
resolves the current session, ``teardown()`` clears it.
"""
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol
from uuid import UUID

from task_sync.services.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


class AuthEvent(StrEnum):
    """Authentication state changes reported by the identity provider."""

    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"


@dataclass(frozen=True)
class AuthUser:
    """Identity of the signed-in user."""

    id: UUID
    email: str | None = None


AuthListener = Callable[[AuthEvent, AuthUser | None], None]


class IdentityProvider(Protocol):
    """Interface consumed from the external identity service."""

    def current_user(self) -> AuthUser | None:
        """Return the signed-in user, or None."""
        ...

    def access_token(self) -> str | None:
        """Return the bearer token for the current session, or None."""
        ...

    def on_auth_change(self, callback: AuthListener) -> Callable[[], None]:
        """Register ``callback`` for sign-in/sign-out; returns an unsubscribe function."""
        ...

    async def sign_out(self) -> None:
        """End the current session."""
        ...


class SessionContext:
    """Process-wide view of the authenticated user."""

    def __init__(self, identity: IdentityProvider) -> None:
        self._identity = identity
        self._user: AuthUser | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._teardown_hooks: list[Callable[[], None]] = []
        self._sign_in_hooks: list[Callable[[AuthUser], None]] = []

    def init(self) -> AuthUser | None:
        """Resolve the current session and start tracking auth changes."""
        if self._unsubscribe is None:
            self._unsubscribe = self._identity.on_auth_change(self._on_auth_change)
        self._user = self._identity.current_user()
        logger.debug("session_init user_id=%s", self._user.id if self._user else None)
        return self._user

    def teardown(self) -> None:
        """Stop tracking auth changes and clear the session."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._clear()

    def add_teardown_hook(self, hook: Callable[[], None]) -> None:
        """Run ``hook`` whenever the session ends or switches to another user."""
        self._teardown_hooks.append(hook)

    def add_sign_in_hook(self, hook: Callable[[AuthUser], None]) -> None:
        """Run ``hook`` with the new user after every sign-in reported by the provider."""
        self._sign_in_hooks.append(hook)

    @property
    def user(self) -> AuthUser | None:
        """The signed-in user, or None."""
        return self._user

    @property
    def is_authenticated(self) -> bool:
        """Whether a user is signed in."""
        return self._user is not None

    def require_user(self) -> AuthUser:
        """
        Get the signed-in user.

        Raises:
            UnauthorizedError: If no user is signed in.
        """
        if self._user is None:
            raise UnauthorizedError("Not signed in")
        return self._user

    def require_token(self) -> str:
        """
        Get the bearer token for the current session.

        Raises:
            UnauthorizedError: If no user is signed in or the token is gone.
        """
        self.require_user()
        token = self._identity.access_token()
        if not token:
            raise UnauthorizedError("Session has no access token")
        return token

    async def sign_out(self) -> None:
        """Sign out through the identity provider; the local session is always cleared."""
        try:
            await self._identity.sign_out()
        finally:
            self._clear()

    def _on_auth_change(self, event: AuthEvent, user: AuthUser | None) -> None:
        if event == AuthEvent.SIGNED_OUT:
            self._clear()
            return
        if self._user is not None and user is not None and self._user.id != user.id:
            # Switching accounts: the previous user's state must not survive
            self._run_teardown_hooks()
        self._user = user
        if user is None:
            return
        logger.info("session_signed_in user_id=%s", user.id)
        for hook in self._sign_in_hooks:
            hook(user)

    def _clear(self) -> None:
        if self._user is None:
            return
        logger.info("session_cleared user_id=%s", self._user.id)
        self._user = None
        self._run_teardown_hooks()

    def _run_teardown_hooks(self) -> None:
        for hook in self._teardown_hooks:
            hook()
