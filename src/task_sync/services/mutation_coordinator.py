"""
Create, update and delete tasks against the remote store.

Each call walks one mutation attempt through

    idle -> validating -> (validation_failed | submitting) -> (succeeded | failed)

and returns a ``MutationOutcome`` describing where it ended. Failures never
touch the cache; every success triggers exactly one cache invalidation, issued
only after the gateway has acknowledged the write. The coordinator keeps no
state between calls.
"""
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any
from uuid import UUID

from task_sync.gateway.task_gateway import TaskGateway
from task_sync.schemas.task import TaskInput, validate_task
from task_sync.services.exceptions import (
    FieldViolation,
    RecordValidationError,
    StoreError,
)
from task_sync.services.task_cache import TaskCache

logger = logging.getLogger(__name__)


class MutationKind(StrEnum):
    """Which write a mutation attempt performs."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class MutationState(StrEnum):
    """States of a single mutation attempt."""

    IDLE = "idle"
    VALIDATING = "validating"
    VALIDATION_FAILED = "validation_failed"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


TERMINAL_STATES = frozenset(
    {MutationState.VALIDATION_FAILED, MutationState.SUCCEEDED, MutationState.FAILED},
)

_SUCCESS_MESSAGES = {
    MutationKind.CREATE: "Task created successfully",
    MutationKind.UPDATE: "Task updated successfully",
    MutationKind.DELETE: "Task deleted successfully",
}

_FAILURE_MESSAGES = {
    MutationKind.CREATE: "Failed to create task",
    MutationKind.UPDATE: "Failed to update task",
    MutationKind.DELETE: "Failed to delete task",
}

TransitionObserver = Callable[[MutationKind, MutationState], None]


@dataclass(frozen=True)
class MutationOutcome:
    """Terminal result of one mutation attempt."""

    kind: MutationKind
    state: MutationState
    task_id: UUID | None = None
    violations: tuple[FieldViolation, ...] = ()
    error: StoreError | None = None
    transitions: tuple[MutationState, ...] = field(default=())

    @property
    def succeeded(self) -> bool:
        """Whether the store acknowledged the write."""
        return self.state == MutationState.SUCCEEDED

    @property
    def violation(self) -> FieldViolation | None:
        """The first validation violation, if validation failed."""
        return self.violations[0] if self.violations else None

    @property
    def message(self) -> str:
        """User-facing summary of the outcome."""
        if self.succeeded:
            return _SUCCESS_MESSAGES[self.kind]
        if self.violation is not None:
            return str(self.violation)
        if self.error is not None and self.error.message:
            return self.error.message
        return _FAILURE_MESSAGES[self.kind]


class _Attempt:
    """Tracks the state path of one mutation attempt."""

    def __init__(
        self,
        kind: MutationKind,
        task_id: UUID | None,
        observer: TransitionObserver | None,
    ) -> None:
        self.kind = kind
        self.task_id = task_id
        self._observer = observer
        self._path: list[MutationState] = [MutationState.IDLE]

    @property
    def state(self) -> MutationState:
        return self._path[-1]

    def advance(self, state: MutationState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"Mutation already finished in state {self.state}")
        self._path.append(state)
        logger.debug(
            "mutation_transition kind=%s task_id=%s state=%s",
            self.kind, self.task_id, state,
        )
        if self._observer is not None:
            self._observer(self.kind, state)

    def finish(
        self,
        state: MutationState,
        violations: tuple[FieldViolation, ...] = (),
        error: StoreError | None = None,
    ) -> MutationOutcome:
        self.advance(state)
        return MutationOutcome(
            kind=self.kind,
            state=state,
            task_id=self.task_id,
            violations=violations,
            error=error,
            transitions=tuple(self._path),
        )


class MutationCoordinator:
    """
    Orchestrates task writes: validate, submit, then invalidate the cache.

    Args:
        gateway: Remote store gateway used for writes.
        cache: Cache invalidated after every acknowledged write.
        observer: Optional callback receiving every state transition.
    """

    def __init__(
        self,
        gateway: TaskGateway,
        cache: TaskCache,
        observer: TransitionObserver | None = None,
    ) -> None:
        self._gateway = gateway
        self._cache = cache
        self._observer = observer

    async def create(self, raw: Mapping[str, Any] | TaskInput) -> MutationOutcome:
        """Validate and insert a new task."""
        attempt = _Attempt(MutationKind.CREATE, None, self._observer)
        fields = self._validate(attempt, raw)
        if isinstance(fields, MutationOutcome):
            return fields

        async def submit() -> None:
            attempt.task_id = await self._gateway.create(fields)

        return await self._submit(attempt, submit)

    async def update(
        self,
        task_id: UUID,
        raw: Mapping[str, Any] | TaskInput,
    ) -> MutationOutcome:
        """
        Validate and update an existing task.

        Ends ``failed`` with ``NotFoundError`` if the task was deleted in the
        meantime.
        """
        attempt = _Attempt(MutationKind.UPDATE, task_id, self._observer)
        fields = self._validate(attempt, raw)
        if isinstance(fields, MutationOutcome):
            return fields

        async def submit() -> None:
            await self._gateway.update(task_id, fields)

        return await self._submit(attempt, submit)

    async def delete(self, task_id: UUID) -> MutationOutcome:
        """Delete a task; a task that is already gone ends ``failed`` with ``NotFoundError``."""
        attempt = _Attempt(MutationKind.DELETE, task_id, self._observer)

        async def submit() -> None:
            await self._gateway.delete(task_id)

        return await self._submit(attempt, submit)

    def _validate(
        self,
        attempt: _Attempt,
        raw: Mapping[str, Any] | TaskInput,
    ) -> TaskInput | MutationOutcome:
        attempt.advance(MutationState.VALIDATING)
        try:
            return validate_task(raw)
        except RecordValidationError as e:
            logger.debug(
                "mutation_validation_failed kind=%s field=%s violation=%s",
                attempt.kind, e.first.field, e.first.kind,
            )
            return attempt.finish(
                MutationState.VALIDATION_FAILED,
                violations=tuple(e.violations),
            )

    async def _submit(
        self,
        attempt: _Attempt,
        submit: Callable[[], Awaitable[None]],
    ) -> MutationOutcome:
        attempt.advance(MutationState.SUBMITTING)
        try:
            await submit()
        except StoreError as e:
            logger.warning(
                "mutation_failed kind=%s task_id=%s error=%s reason=%s",
                attempt.kind, attempt.task_id, type(e).__name__, e.message,
            )
            return attempt.finish(MutationState.FAILED, error=e)
        # Only after the store acknowledged the write
        self._cache.invalidate()
        logger.info("mutation_succeeded kind=%s task_id=%s", attempt.kind, attempt.task_id)
        return attempt.finish(MutationState.SUCCEEDED)
