"""Tests for the filter engine."""
import itertools
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from task_sync.schemas.task import Task, TaskPriority, TaskStatus
from task_sync.services.filter_engine import (
    ALL,
    FilterCriteria,
    TaskStats,
    parse_priority_filter,
    parse_status_filter,
    summarize,
    view,
)

OWNER = uuid4()
_START = datetime(2025, 1, 1, tzinfo=UTC)


def _task(
    title: str,
    status: TaskStatus = TaskStatus.PENDING,
    priority: TaskPriority = TaskPriority.MEDIUM,
    task_id: UUID | None = None,
    age: int = 0,
) -> Task:
    return Task(
        id=task_id or uuid4(),
        owner=OWNER,
        title=title,
        status=status,
        priority=priority,
        created_at=_START - timedelta(minutes=age),
    )


@pytest.fixture
def snapshot() -> list[Task]:
    """Two tasks, newest first."""
    return [
        _task("Buy milk", TaskStatus.PENDING, TaskPriority.LOW, age=0),
        _task("Ship release", TaskStatus.IN_PROGRESS, TaskPriority.HIGH, age=1),
    ]


def _grid_snapshot() -> list[Task]:
    """One task per status/priority/title combination, newest first."""
    titles = ["Write report", "Review PR", "report bug", "Lunch"]
    combos = itertools.product(titles, TaskStatus, TaskPriority)
    return [
        _task(title, status, priority, age=age)
        for age, (title, status, priority) in enumerate(combos)
    ]


def test__view__query_matches_title_substring(snapshot: list[Task]) -> None:
    """'ship' matches 'Ship release' only."""
    result = view(snapshot, query="ship", status_filter="all", priority_filter="all")
    assert result == [snapshot[1]]


def test__view__empty_query_matches_everything(snapshot: list[Task]) -> None:
    """No criteria returns the whole snapshot in order."""
    assert view(snapshot) == snapshot


def test__view__query_is_case_insensitive(snapshot: list[Task]) -> None:
    """Upper-case queries match lower-case titles and vice versa."""
    assert view(snapshot, query="BUY MILK") == [snapshot[0]]
    assert view(snapshot, query="sHiP") == [snapshot[1]]


def test__view__query_lowercases_without_expanding() -> None:
    """Queries compare lower-cased text, so "ss" does not match a sharp s."""
    task = _task("Stra\u00dfe fegen")
    assert view([task], query="ss") == []
    assert view([task], query="STRA\u00dfE") == [task]


def test__view__query_does_not_match_description() -> None:
    """Only titles are searched."""
    task = _task("Groceries").model_copy(update={"description": "buy milk"})
    assert view([task], query="milk") == []


def test__view__status_filter(snapshot: list[Task]) -> None:
    """A status filter keeps only that status."""
    assert view(snapshot, status_filter=TaskStatus.IN_PROGRESS) == [snapshot[1]]
    assert view(snapshot, status_filter=TaskStatus.COMPLETED) == []


def test__view__priority_filter(snapshot: list[Task]) -> None:
    """A priority filter keeps only that priority."""
    assert view(snapshot, priority_filter=TaskPriority.LOW) == [snapshot[0]]


def test__view__predicates_are_combined_with_and(snapshot: list[Task]) -> None:
    """A task must satisfy every axis."""
    assert view(snapshot, query="ship", priority_filter=TaskPriority.LOW) == []
    assert view(
        snapshot, query="ship", status_filter=TaskStatus.IN_PROGRESS,
        priority_filter=TaskPriority.HIGH,
    ) == [snapshot[1]]


def test__view__preserves_snapshot_order() -> None:
    """Matches keep the snapshot's newest-first order."""
    tasks = [_task(f"report {i}", age=i) for i in range(5)]
    assert view(tasks, query="report") == tasks


def test__view__is_idempotent() -> None:
    """Repeated calls with the same inputs give the same ordered output."""
    tasks = _grid_snapshot()
    first = view(tasks, query="report", status_filter=TaskStatus.PENDING)
    second = view(tasks, query="report", status_filter=TaskStatus.PENDING)
    assert first == second
    assert [t.id for t in first] == [t.id for t in second]


def test__view__does_not_mutate_snapshot() -> None:
    """The snapshot is left untouched and a new list is returned."""
    tasks = _grid_snapshot()
    original = list(tasks)
    result = view(tasks, query="lunch")
    assert tasks == original
    assert result is not tasks


def test__view__accepts_tuple_snapshot() -> None:
    """Cache snapshots are tuples."""
    tasks = tuple(_grid_snapshot())
    assert len(view(tasks, status_filter=TaskStatus.COMPLETED)) == len(tasks) // 3


@pytest.mark.parametrize("query", ["", "report", "REVIEW", "nothing-matches", "r"])
@pytest.mark.parametrize("status_filter", [ALL, *TaskStatus])
@pytest.mark.parametrize("priority_filter", [ALL, *TaskPriority])
def test__view__sound_and_complete(
    query: str, status_filter: TaskStatus | str, priority_filter: TaskPriority | str,
) -> None:
    """Every returned task matches all predicates and no matching task is left out."""
    tasks = _grid_snapshot()
    result = view(tasks, query, status_filter, priority_filter)

    def satisfies(task: Task) -> bool:
        return (
            query.lower() in task.title.lower()
            and (status_filter == ALL or task.status == status_filter)
            and (priority_filter == ALL or task.priority == priority_filter)
        )

    assert all(satisfies(task) for task in result)
    assert result == [task for task in tasks if satisfies(task)]


class TestFilterCriteria:
    """Tests for criteria parsing and state."""

    def test__from_raw__parses_selections(self) -> None:
        """UI strings become enum members; 'all' stays 'all'."""
        criteria = FilterCriteria.from_raw("x", "completed", "all")
        assert criteria.status is TaskStatus.COMPLETED
        assert criteria.priority == ALL

    def test__from_raw__rejects_unknown_status(self) -> None:
        """Unknown filter values are rejected."""
        with pytest.raises(ValueError):  # noqa: PT011
            FilterCriteria.from_raw(status="done")

    def test__parse_filters__reject_unknown_priority(self) -> None:
        """Unknown priority selections are rejected."""
        assert parse_status_filter("all") == ALL
        assert parse_priority_filter("high") is TaskPriority.HIGH
        with pytest.raises(ValueError):  # noqa: PT011
            parse_priority_filter("urgent")

    @pytest.mark.parametrize(
        ("criteria", "active"),
        [
            (FilterCriteria(), False),
            (FilterCriteria(query="x"), True),
            (FilterCriteria(status=TaskStatus.PENDING), True),
            (FilterCriteria(priority=TaskPriority.LOW), True),
        ],
    )
    def test__is_active(self, criteria: FilterCriteria, active: bool) -> None:
        """Criteria are active when any axis narrows the result."""
        assert criteria.is_active is active


class TestSummarize:
    """Tests for dashboard statistics."""

    def test__summarize__counts_by_status(self, snapshot: list[Task]) -> None:
        """Counts total and each status."""
        tasks = [*snapshot, _task("Done", TaskStatus.COMPLETED)]
        assert summarize(tasks) == TaskStats(total=3, pending=1, in_progress=1, completed=1)

    def test__summarize__empty(self) -> None:
        """An empty snapshot has zero counts."""
        assert summarize(()) == TaskStats()
