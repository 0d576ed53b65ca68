"""Pytest fixtures for testing."""
from collections.abc import Generator

import pytest

from task_sync.core.config import get_settings
from task_sync.core.session import AuthUser, SessionContext
from task_sync.services.task_cache import TaskCache
from tests.fakes import USER_ID, FakeIdentityProvider, InMemoryTaskGateway

_SETTINGS_ENV = (
    "TASK_STORE_URL",
    "TASK_STORE_API_KEY",
    "TASK_STORE_TIMEOUT",
    "TASK_STORE_TASKS_TABLE",
    "TASK_STORE_PROFILES_TABLE",
    "MAX_TITLE_LENGTH",
    "MAX_DESCRIPTION_LENGTH",
    "MIN_FULL_NAME_LENGTH",
    "MAX_FULL_NAME_LENGTH",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Run every test against default settings, ignoring the local environment."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TASK_STORE_API_KEY", "test-anon-key")
    monkeypatch.chdir("/")  # keep a developer's .env out of the picture
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def user() -> AuthUser:
    """The signed-in test user."""
    return AuthUser(id=USER_ID, email="user@example.com")


@pytest.fixture
def identity(user: AuthUser) -> FakeIdentityProvider:
    """Identity provider with the test user signed in."""
    return FakeIdentityProvider(user)


@pytest.fixture
def session(identity: FakeIdentityProvider) -> Generator[SessionContext]:
    """Initialized session context for the test user."""
    context = SessionContext(identity)
    context.init()
    yield context
    context.teardown()


@pytest.fixture
def gateway(user: AuthUser) -> InMemoryTaskGateway:
    """Empty in-memory task store owned by the test user."""
    return InMemoryTaskGateway(user.id)


@pytest.fixture
def cache(gateway: InMemoryTaskGateway, session: SessionContext) -> TaskCache:
    """Task cache over the in-memory gateway."""
    return TaskCache(gateway, session)
