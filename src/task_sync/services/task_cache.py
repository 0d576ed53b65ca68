"""
In-memory snapshot of the signed-in user's tasks.

The snapshot only ever holds what the remote store returned from ``list()``.
It is replaced wholesale by a refetch and never patched locally.

Refetch rules:
- ``invalidate()`` starts a fetch if none is in flight. If one is in flight,
  the request is coalesced: the in-flight response is discarded when it lands
  and exactly one follow-up fetch is issued, however many invalidations
  arrived in between.
- A response is applied only if no invalidation or reset happened since its
  fetch was issued (tracked with an epoch counter).
- While fetching, readers keep seeing the previous snapshot. A failed fetch
  keeps it too and raises the ``is_stale`` flag instead of clearing it.
"""
import asyncio
import logging
from collections.abc import Callable

from task_sync.core.session import SessionContext
from task_sync.gateway.task_gateway import TaskGateway
from task_sync.schemas.task import Task
from task_sync.services.exceptions import StoreError

logger = logging.getLogger(__name__)

CacheListener = Callable[[], None]


class TaskCache:
    """Confirmed snapshot of the user's tasks with coalescing refetch."""

    def __init__(self, gateway: TaskGateway, session: SessionContext) -> None:
        self._gateway = gateway
        self._session = session
        self._snapshot: tuple[Task, ...] = ()
        self._epoch = 0
        self._fetch_task: asyncio.Task[None] | None = None
        self._refetch_requested = False
        self._settled = asyncio.Event()
        self._settled.set()
        self._invalidated = False
        self._has_settled_once = False
        self._is_stale = False
        self._last_error: StoreError | None = None
        self._listeners: list[CacheListener] = []

    # --- Read access ---

    def current_snapshot(self) -> tuple[Task, ...]:
        """The last confirmed task list, newest-created first (possibly stale)."""
        return self._snapshot

    @property
    def is_loading(self) -> bool:
        """True from the first invalidation until the first fetch settles."""
        return self._invalidated and not self._has_settled_once

    @property
    def is_fetching(self) -> bool:
        """True while a ``list()`` call is in flight."""
        return self._fetch_task is not None

    @property
    def is_stale(self) -> bool:
        """True when the latest refetch failed and the snapshot may be outdated."""
        return self._is_stale

    @property
    def last_error(self) -> StoreError | None:
        """The error from the latest failed refetch, cleared by the next success."""
        return self._last_error

    def subscribe(self, listener: CacheListener) -> Callable[[], None]:
        """Call ``listener`` after every state change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Invalidation ---

    def invalidate(self) -> None:
        """
        Mark the snapshot stale and schedule a refetch.

        Must be called from within a running event loop. Returns immediately;
        use ``wait_settled()`` to wait for the refetch.
        """
        self._epoch += 1
        self._invalidated = True
        if self._fetch_task is not None:
            self._refetch_requested = True
            logger.debug("task_cache_invalidate_coalesced epoch=%s", self._epoch)
            return
        self._start_fetch()
        self._notify()

    async def refresh(self) -> tuple[Task, ...]:
        """Invalidate, wait for the refetch to settle, and return the snapshot."""
        self.invalidate()
        await self.wait_settled()
        return self._snapshot

    async def wait_settled(self) -> None:
        """Wait until no fetch is in flight or pending."""
        await self._settled.wait()

    def reset(self) -> None:
        """
        Drop the snapshot and all fetch state.

        Any in-flight response is discarded when it lands. Used when the
        session ends so one user's tasks never outlive their session.
        """
        self._epoch += 1
        self._refetch_requested = False
        self._snapshot = ()
        self._invalidated = False
        self._has_settled_once = False
        self._is_stale = False
        self._last_error = None
        logger.debug("task_cache_reset epoch=%s", self._epoch)
        self._notify()

    async def aclose(self) -> None:
        """Cancel any in-flight fetch."""
        self._refetch_requested = False
        task = self._fetch_task
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._fetch_task = None
        self._settled.set()

    # --- Internals ---

    def _start_fetch(self) -> None:
        self._settled.clear()
        epoch = self._epoch
        logger.debug("task_cache_fetch_started epoch=%s", epoch)
        self._fetch_task = asyncio.create_task(self._fetch(epoch))

    async def _fetch(self, epoch: int) -> None:
        try:
            tasks = await self._gateway.list()
        except StoreError as e:
            self._on_fetch_failed(epoch, e)
        else:
            self._on_fetch_succeeded(epoch, tasks)
        finally:
            self._fetch_task = None
            if self._refetch_requested:
                self._refetch_requested = False
                self._start_fetch()
            else:
                self._settled.set()
        self._notify()

    def _on_fetch_succeeded(self, epoch: int, tasks: list[Task]) -> None:
        if epoch != self._epoch:
            logger.debug("task_cache_response_discarded epoch=%s current=%s", epoch, self._epoch)
            return
        user = self._session.user
        if user is None:
            logger.warning("task_cache_response_without_session discarded=%s", len(tasks))
            return
        owned = tuple(task for task in tasks if task.owner == user.id)
        if len(owned) != len(tasks):
            logger.warning(
                "task_cache_foreign_rows_dropped user_id=%s dropped=%s",
                user.id,
                len(tasks) - len(owned),
            )
        self._snapshot = owned
        self._has_settled_once = True
        self._is_stale = False
        self._last_error = None
        logger.debug("task_cache_snapshot_replaced epoch=%s count=%s", epoch, len(owned))

    def _on_fetch_failed(self, epoch: int, error: StoreError) -> None:
        if epoch != self._epoch:
            logger.debug("task_cache_failure_discarded epoch=%s current=%s", epoch, self._epoch)
            return
        logger.warning("task_cache_fetch_failed epoch=%s error=%s", epoch, error.message)
        self._has_settled_once = True
        self._is_stale = True
        self._last_error = error

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
