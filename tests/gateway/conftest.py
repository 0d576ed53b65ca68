"""Test fixtures for the HTTP gateways."""
from collections.abc import AsyncGenerator
from typing import Any
from uuid import uuid4

import httpx
import pytest
import respx

from tests.fakes import USER_ID

STORE_URL = "http://localhost:54321"


@pytest.fixture
async def mock_api() -> AsyncGenerator[respx.MockRouter]:
    """Context manager for mocking store responses."""
    with respx.mock(base_url=STORE_URL, assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
async def http_client(mock_api: respx.MockRouter) -> AsyncGenerator[httpx.AsyncClient]:
    """HTTP client created inside the respx context so requests are captured."""
    async with httpx.AsyncClient(base_url=STORE_URL) as client:
        yield client


@pytest.fixture
def task_row() -> dict[str, Any]:
    """Sample task row as returned by the store."""
    return {
        "id": str(uuid4()),
        "user_id": str(USER_ID),
        "title": "Ship release",
        "description": None,
        "status": "in_progress",
        "priority": "high",
        "created_at": "2025-01-02T00:00:00Z",
        "updated_at": "2025-01-02T00:00:00Z",
    }
