"""HTTP client helpers for the remote store's REST and auth endpoints."""
from typing import Any

import httpx

from task_sync.core.config import get_settings
from task_sync.services.exceptions import StoreUnavailableError
from task_sync.shared.api_errors import parse_http_error, parse_request_error

# Ask the store to echo affected rows so empty results reveal missing targets
RETURN_REPRESENTATION = {"Prefer": "return=representation"}


def create_http_client() -> httpx.AsyncClient:
    """Create an HTTP client configured from settings."""
    settings = get_settings()
    return httpx.AsyncClient(
        base_url=settings.store_url,
        timeout=settings.store_timeout,
    )


def _get_headers(token: str | None, extra: dict[str, str] | None = None) -> dict[str, str]:
    """Get common headers for store requests."""
    headers = {"apikey": get_settings().store_api_key}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    if extra:
        headers.update(extra)
    return headers


async def api_request(  # noqa: PLR0913
    client: httpx.AsyncClient,
    method: str,
    path: str,
    token: str | None,
    *,
    params: dict[str, Any] | None = None,
    json: Any = None,
    headers: dict[str, str] | None = None,
    entity_type: str = "",
) -> Any:
    """
    Make a request against the store and decode its JSON body.

    Raises:
        StoreError: The typed translation of any HTTP or transport failure.
    """
    try:
        response = await client.request(
            method,
            path,
            params=params,
            json=json,
            headers=_get_headers(token, headers),
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise parse_http_error(e, entity_type) from e
    except httpx.RequestError as e:
        raise parse_request_error(e) from e
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as e:
        raise StoreUnavailableError("Store returned a malformed response") from e


async def api_get(
    client: httpx.AsyncClient,
    path: str,
    token: str | None,
    params: dict[str, Any] | None = None,
    entity_type: str = "",
) -> Any:
    """Make an authenticated GET request to the store."""
    return await api_request(
        client, "GET", path, token, params=params, entity_type=entity_type,
    )


async def api_post(
    client: httpx.AsyncClient,
    path: str,
    token: str | None,
    json: Any = None,
    params: dict[str, Any] | None = None,
    entity_type: str = "",
) -> Any:
    """Make an authenticated POST request, returning the created representation."""
    return await api_request(
        client, "POST", path, token,
        params=params, json=json, headers=RETURN_REPRESENTATION, entity_type=entity_type,
    )


async def api_patch(
    client: httpx.AsyncClient,
    path: str,
    token: str | None,
    json: dict[str, Any],
    params: dict[str, Any] | None = None,
    entity_type: str = "",
) -> Any:
    """Make an authenticated PATCH request, returning the updated representation."""
    return await api_request(
        client, "PATCH", path, token,
        params=params, json=json, headers=RETURN_REPRESENTATION, entity_type=entity_type,
    )


async def api_delete(
    client: httpx.AsyncClient,
    path: str,
    token: str | None,
    params: dict[str, Any] | None = None,
    entity_type: str = "",
) -> Any:
    """Make an authenticated DELETE request, returning the deleted representation."""
    return await api_request(
        client, "DELETE", path, token,
        params=params, headers=RETURN_REPRESENTATION, entity_type=entity_type,
    )
