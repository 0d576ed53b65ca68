"""In-memory fakes for the identity provider and remote store gateways."""
import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from task_sync.core.session import AuthEvent, AuthListener, AuthUser
from task_sync.schemas.profile import Profile, ProfileInput
from task_sync.schemas.task import Task, TaskInput, TaskPriority, TaskStatus
from task_sync.services.exceptions import NotFoundError, StoreError

BASE_TIME = datetime(2025, 1, 1, tzinfo=UTC)
USER_ID = UUID("0192f0c1-0000-7000-8000-000000000001")


class FakeIdentityProvider:
    """Identity provider whose session is set directly by tests."""

    def __init__(self, user: AuthUser | None = None, token: str = "test-token") -> None:
        self.user = user
        self.token = token
        self.sign_out_calls = 0
        self.sign_out_error: Exception | None = None
        self._listeners: list[AuthListener] = []

    def current_user(self) -> AuthUser | None:
        return self.user

    def access_token(self) -> str | None:
        return self.token if self.user else None

    def on_auth_change(self, callback: AuthListener) -> Callable[[], None]:
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def sign_in(self, user: AuthUser) -> None:
        self.user = user
        for listener in list(self._listeners):
            listener(AuthEvent.SIGNED_IN, user)

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        if self.sign_out_error is not None:
            raise self.sign_out_error
        self.user = None
        for listener in list(self._listeners):
            listener(AuthEvent.SIGNED_OUT, None)


class InMemoryTaskGateway:
    """
    Task gateway backed by a dict.

    ``hold_list()`` / ``hold_writes()`` keep calls suspended until the matching
    release, so tests can observe in-flight behavior. A held ``list()`` returns
    the rows as they were when the call started, like a server response that
    was computed before a later write landed.
    """

    def __init__(self, owner: UUID) -> None:
        self.owner = owner
        self.rows: dict[UUID, Task] = {}
        self.list_calls = 0
        self.write_calls: list[tuple[str, UUID | None]] = []
        self.list_error: StoreError | None = None
        self.write_error: StoreError | None = None
        self.list_started = asyncio.Event()
        self._list_gate: asyncio.Event | None = None
        self._write_gate: asyncio.Event | None = None
        self._clock = 0

    # --- Test controls ---

    def seed(
        self,
        title: str,
        status: TaskStatus = TaskStatus.PENDING,
        priority: TaskPriority = TaskPriority.MEDIUM,
        owner: UUID | None = None,
        description: str | None = None,
    ) -> Task:
        task = Task(
            id=uuid4(),
            owner=owner or self.owner,
            title=title,
            description=description,
            status=status,
            priority=priority,
            created_at=self._tick(),
            updated_at=None,
        )
        self.rows[task.id] = task
        return task

    def remove(self, task_id: UUID) -> None:
        """Delete a row as another actor would, without going through the gateway."""
        del self.rows[task_id]

    def hold_list(self) -> None:
        self._list_gate = asyncio.Event()

    def release_list(self) -> None:
        if self._list_gate is not None:
            self._list_gate.set()

    def hold_writes(self) -> None:
        self._write_gate = asyncio.Event()

    def release_writes(self) -> None:
        if self._write_gate is not None:
            self._write_gate.set()

    # --- TaskGateway ---

    async def list(self) -> list[Task]:
        self.list_calls += 1
        self.list_started.set()
        result = sorted(self.rows.values(), key=lambda t: t.created_at, reverse=True)
        error = self.list_error
        if self._list_gate is not None:
            await self._list_gate.wait()
        if error is not None:
            raise error
        return result

    async def create(self, fields: TaskInput) -> UUID:
        await self._before_write("create", None)
        task = Task(id=uuid4(), owner=self.owner, created_at=self._tick(), **fields.model_dump())
        self.rows[task.id] = task
        return task.id

    async def update(self, task_id: UUID, fields: TaskInput) -> Task:
        await self._before_write("update", task_id)
        current = self.rows.get(task_id)
        if current is None:
            raise NotFoundError(f"Task {task_id} not found")
        updated = current.model_copy(update={**fields.model_dump(), "updated_at": self._tick()})
        self.rows[task_id] = updated
        return updated

    async def delete(self, task_id: UUID) -> None:
        await self._before_write("delete", task_id)
        if task_id not in self.rows:
            raise NotFoundError(f"Task {task_id} not found")
        del self.rows[task_id]

    async def _before_write(self, operation: str, task_id: UUID | None) -> None:
        self.write_calls.append((operation, task_id))
        if self._write_gate is not None:
            await self._write_gate.wait()
        if self.write_error is not None:
            raise self.write_error

    def _tick(self) -> datetime:
        self._clock += 1
        return BASE_TIME + timedelta(minutes=self._clock)


class InMemoryProfileGateway:
    """Profile gateway holding a single profile."""

    def __init__(self, profile: Profile) -> None:
        self.profile = profile
        self.updates: list[ProfileInput] = []

    async def get(self) -> Profile:
        return self.profile

    async def update(self, fields: ProfileInput) -> Profile:
        self.updates.append(fields)
        self.profile = self.profile.model_copy(
            update={"full_name": fields.full_name, "updated_at": datetime.now(UTC)},
        )
        return self.profile
