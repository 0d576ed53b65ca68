"""
Shared HTTP error parsing for the remote store clients.

Both the table gateways and the identity provider talk to the same backend,
so the translation from HTTP failures to ``StoreError`` subclasses lives here.
"""
from typing import Any

import httpx

from task_sync.services.exceptions import (
    NotFoundError,
    StoreError,
    StoreRejectedError,
    StoreUnavailableError,
    UnauthorizedError,
)

# Keys the store uses for human-readable error text, in order of preference
_MESSAGE_KEYS = ("message", "error_description", "msg", "error", "detail")


def parse_http_error(e: httpx.HTTPStatusError, entity_type: str = "") -> StoreError:
    """
    Parse an HTTP error into a typed store error.

    Args:
        e: The HTTP status error from httpx
        entity_type: Type of entity (e.g., "task", "profile") for not-found messages

    Returns:
        The ``StoreError`` subclass matching the status code.
    """
    status = e.response.status_code
    detail = _extract_message(e)

    if status in (401, 403):
        return UnauthorizedError(detail or "Invalid or expired session")

    if status == 404:
        return NotFoundError(f"{entity_type.title()} not found" if entity_type else "Not found")

    if status in (400, 409, 422):
        return StoreRejectedError(detail or f"Request rejected ({status})")

    return StoreUnavailableError(f"Store error {status}" + (f": {detail}" if detail else ""))


def parse_request_error(e: httpx.RequestError) -> StoreUnavailableError:
    """Translate a transport-level failure (DNS, timeout, refused connection)."""
    return StoreUnavailableError(f"Store unavailable: {e}")


def _extract_message(e: httpx.HTTPStatusError) -> str:
    """Safely pull an error message out of the response body."""
    try:
        body: Any = e.response.json()
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    for key in _MESSAGE_KEYS:
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
        if isinstance(value, dict) and isinstance(value.get("message"), str):
            return value["message"]
    return ""
