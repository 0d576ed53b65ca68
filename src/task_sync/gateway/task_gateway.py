"""Remote store gateway for the task table."""
import logging
from typing import Any, Protocol
from uuid import UUID

import httpx
from pydantic import ValidationError

from task_sync.core.config import get_settings
from task_sync.core.session import SessionContext
from task_sync.gateway.api_client import (
    api_delete,
    api_get,
    api_patch,
    api_post,
    create_http_client,
)
from task_sync.schemas.task import Task, TaskInput
from task_sync.services.exceptions import NotFoundError, StoreUnavailableError

logger = logging.getLogger(__name__)


class TaskGateway(Protocol):
    """Select/insert/update/delete against the current user's tasks."""

    async def list(self) -> list[Task]:
        """All of the user's tasks, newest-created first."""
        ...

    async def create(self, fields: TaskInput) -> UUID:
        """Insert a task and return its store-assigned id."""
        ...

    async def update(self, task_id: UUID, fields: TaskInput) -> Task:
        """Replace a task's editable fields and return the stored row."""
        ...

    async def delete(self, task_id: UUID) -> None:
        """Remove a task."""
        ...


def parse_task_rows(rows: Any) -> list[Task]:
    """
    Parse store rows into ``Task`` records.

    Raises:
        StoreUnavailableError: If the payload is not a list of valid task rows.
    """
    if not isinstance(rows, list):
        raise StoreUnavailableError("Store returned a malformed task list")
    try:
        return [Task.model_validate(row) for row in rows]
    except ValidationError as e:
        logger.warning("task_rows_malformed errors=%s", e.error_count())
        raise StoreUnavailableError("Store returned malformed task data") from e


class RestTaskGateway:
    """
    Task gateway speaking the store's REST table protocol.

    Every request is filtered by ``user_id`` and carries the session's bearer
    token; the store additionally enforces row-level ownership. Writes ask for
    the affected rows back, so an empty result means the target is gone (or
    was never the caller's) and surfaces as ``NotFoundError``.
    """

    def __init__(
        self,
        session: SessionContext,
        client: httpx.AsyncClient | None = None,
        table: str | None = None,
    ) -> None:
        self._session = session
        self._owns_client = client is None
        self._client = client or create_http_client()
        self._path = f"/rest/v1/{table or get_settings().tasks_table}"

    def _owner_filter(self, user_id: UUID) -> dict[str, str]:
        return {"user_id": f"eq.{user_id}"}

    def _target_filter(self, user_id: UUID, task_id: UUID) -> dict[str, str]:
        return {"id": f"eq.{task_id}", **self._owner_filter(user_id)}

    async def list(self) -> list[Task]:
        """Select all of the user's tasks ordered by creation time, newest first."""
        user = self._session.require_user()
        token = self._session.require_token()
        rows = await api_get(
            self._client,
            self._path,
            token,
            params={
                "select": "*",
                **self._owner_filter(user.id),
                "order": "created_at.desc",
            },
            entity_type="task",
        )
        tasks = parse_task_rows(rows)
        logger.debug("task_gateway_list user_id=%s count=%s", user.id, len(tasks))
        return tasks

    async def create(self, fields: TaskInput) -> UUID:
        """Insert a task owned by the current user; returns the new id."""
        user = self._session.require_user()
        token = self._session.require_token()
        rows = await api_post(
            self._client,
            self._path,
            token,
            json={**fields.to_row(), "user_id": str(user.id)},
            entity_type="task",
        )
        created = parse_task_rows(rows)
        if not created:
            raise StoreUnavailableError("Store did not return the created task")
        return created[0].id

    async def update(self, task_id: UUID, fields: TaskInput) -> Task:
        """
        Update a task's editable fields.

        Raises:
            NotFoundError: If the task no longer exists or is not the caller's.
        """
        user = self._session.require_user()
        token = self._session.require_token()
        rows = await api_patch(
            self._client,
            self._path,
            token,
            json=fields.to_row(),
            params=self._target_filter(user.id, task_id),
            entity_type="task",
        )
        updated = parse_task_rows(rows)
        if not updated:
            raise NotFoundError(f"Task {task_id} not found")
        return updated[0]

    async def delete(self, task_id: UUID) -> None:
        """
        Delete a task.

        Raises:
            NotFoundError: If the task no longer exists or is not the caller's.
        """
        user = self._session.require_user()
        token = self._session.require_token()
        rows = await api_delete(
            self._client,
            self._path,
            token,
            params=self._target_filter(user.id, task_id),
            entity_type="task",
        )
        if not parse_task_rows(rows or []):
            raise NotFoundError(f"Task {task_id} not found")

    async def aclose(self) -> None:
        """Close the HTTP client if this gateway created it."""
        if self._owns_client:
            await self._client.aclose()
