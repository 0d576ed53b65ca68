"""
Task board: the state the presentation layer renders and the actions it calls.

Only the filtered view, loading/stale flags, the last error, dashboard stats
and the mutation/filter entry points cross this boundary.
"""
import logging
from collections.abc import Callable, Mapping
from typing import Any
from uuid import UUID

from task_sync.core.session import AuthUser, SessionContext
from task_sync.gateway.task_gateway import TaskGateway
from task_sync.schemas.task import Task, TaskInput
from task_sync.services.exceptions import StoreError
from task_sync.services.filter_engine import (
    FilterCriteria,
    TaskStats,
    apply_criteria,
    parse_priority_filter,
    parse_status_filter,
    summarize,
)
from task_sync.services.mutation_coordinator import (
    MutationCoordinator,
    MutationOutcome,
    TransitionObserver,
)
from task_sync.services.task_cache import TaskCache

logger = logging.getLogger(__name__)

NO_MATCHES_MESSAGE = "No tasks match your filters"
NO_TASKS_MESSAGE = "No tasks yet. Create your first task to get started!"


class TaskBoard:
    """Wires session, cache, coordinator and filter criteria for one signed-in user."""

    def __init__(
        self,
        session: SessionContext,
        gateway: TaskGateway,
        observer: TransitionObserver | None = None,
    ) -> None:
        self._session = session
        self.cache = TaskCache(gateway, session)
        self.coordinator = MutationCoordinator(gateway, self.cache, observer)
        self._criteria = FilterCriteria()
        self._last_mutation: MutationOutcome | None = None
        self._listeners: list[Callable[[], None]] = []
        self.cache.subscribe(self._notify)
        session.add_teardown_hook(self._on_session_end)
        session.add_sign_in_hook(self._on_sign_in)

    # --- Rendered state ---

    @property
    def criteria(self) -> FilterCriteria:
        """Current filter criteria."""
        return self._criteria

    @property
    def visible_tasks(self) -> list[Task]:
        """The snapshot filtered by the current criteria, recomputed on every read."""
        return apply_criteria(self.cache.current_snapshot(), self._criteria)

    @property
    def stats(self) -> TaskStats:
        """Counts over the whole (unfiltered) snapshot."""
        return summarize(self.cache.current_snapshot())

    @property
    def is_loading(self) -> bool:
        """True until the first fetch settles."""
        return self.cache.is_loading

    @property
    def is_stale(self) -> bool:
        """True when the last refetch failed and the shown tasks may be outdated."""
        return self.cache.is_stale

    @property
    def last_error(self) -> StoreError | None:
        """The most recent error from a failed mutation or refetch."""
        if self._last_mutation is not None and self._last_mutation.error is not None:
            return self._last_mutation.error
        return self.cache.last_error

    @property
    def last_mutation(self) -> MutationOutcome | None:
        """Outcome of the most recent mutation, for toasts and form errors."""
        return self._last_mutation

    @property
    def has_active_filters(self) -> bool:
        """Whether any filter narrows the view."""
        return self._criteria.is_active

    @property
    def empty_message(self) -> str | None:
        """Placeholder text when nothing is visible, else None."""
        if self.visible_tasks:
            return None
        return NO_MATCHES_MESSAGE if self.has_active_filters else NO_TASKS_MESSAGE

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Call ``listener`` whenever rendered state may have changed."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Lifecycle ---

    def start(self) -> None:
        """Resolve the session and trigger the initial fetch when signed in."""
        if self._session.init() is not None:
            self.cache.invalidate()

    async def sign_out(self) -> None:
        """Sign out; the session teardown clears the cache and filters."""
        await self._session.sign_out()

    async def aclose(self) -> None:
        """Cancel background work and stop tracking the session."""
        await self.cache.aclose()
        self._session.teardown()

    # --- Filter setters ---

    def set_query(self, query: str) -> None:
        """Set the free-text title query."""
        self._set_criteria(FilterCriteria(query, self._criteria.status, self._criteria.priority))

    def set_status_filter(self, status: str) -> None:
        """Set the status axis ('all' or a status); raises ValueError otherwise."""
        self._set_criteria(
            FilterCriteria(
                self._criteria.query, parse_status_filter(status), self._criteria.priority,
            ),
        )

    def set_priority_filter(self, priority: str) -> None:
        """Set the priority axis ('all' or a priority); raises ValueError otherwise."""
        self._set_criteria(
            FilterCriteria(
                self._criteria.query, self._criteria.status, parse_priority_filter(priority),
            ),
        )

    def clear_filters(self) -> None:
        """Reset all filter axes."""
        self._set_criteria(FilterCriteria())

    # --- Mutations ---

    async def create(self, raw: Mapping[str, Any] | TaskInput) -> MutationOutcome:
        """Create a task."""
        return self._record(await self.coordinator.create(raw))

    async def update(self, task_id: UUID, raw: Mapping[str, Any] | TaskInput) -> MutationOutcome:
        """Update a task."""
        return self._record(await self.coordinator.update(task_id, raw))

    async def delete(self, task_id: UUID) -> MutationOutcome:
        """Delete a task."""
        return self._record(await self.coordinator.delete(task_id))

    # --- Internals ---

    def _set_criteria(self, criteria: FilterCriteria) -> None:
        if criteria != self._criteria:
            self._criteria = criteria
            self._notify()

    def _record(self, outcome: MutationOutcome) -> MutationOutcome:
        self._last_mutation = outcome
        self._notify()
        return outcome

    def _on_sign_in(self, user: AuthUser) -> None:
        logger.debug("task_board_signed_in user_id=%s", user.id)
        self.cache.invalidate()

    def _on_session_end(self) -> None:
        logger.debug("task_board_session_ended")
        self.cache.reset()
        self._criteria = FilterCriteria()
        self._last_mutation = None
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
