"""
Derive the displayable task list from a snapshot and filter criteria.

Everything here is pure: the snapshot is never mutated and the same inputs
always produce the same ordered output.
"""
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Literal

from task_sync.schemas.task import Task, TaskPriority, TaskStatus

ALL: Literal["all"] = "all"

StatusFilter = TaskStatus | Literal["all"]
PriorityFilter = TaskPriority | Literal["all"]


def parse_status_filter(value: str) -> StatusFilter:
    """
    Parse a status filter selection.

    Raises:
        ValueError: If ``value`` is neither 'all' nor a task status.
    """
    if value == ALL:
        return ALL
    return TaskStatus(value)


def parse_priority_filter(value: str) -> PriorityFilter:
    """
    Parse a priority filter selection.

    Raises:
        ValueError: If ``value`` is neither 'all' nor a task priority.
    """
    if value == ALL:
        return ALL
    return TaskPriority(value)


@dataclass(frozen=True)
class FilterCriteria:
    """Free-text query plus status and priority selections, combined with AND."""

    query: str = ""
    status: StatusFilter = ALL
    priority: PriorityFilter = ALL

    @classmethod
    def from_raw(
        cls,
        query: str = "",
        status: str = ALL,
        priority: str = ALL,
    ) -> "FilterCriteria":
        """Build criteria from UI selections, validating the enumerated axes."""
        return cls(
            query=query,
            status=parse_status_filter(status),
            priority=parse_priority_filter(priority),
        )

    @property
    def is_active(self) -> bool:
        """Whether any axis narrows the result."""
        return bool(self.query) or self.status != ALL or self.priority != ALL

    def matches(self, task: Task) -> bool:
        """Whether ``task`` satisfies all three predicates."""
        if self.query and self.query.lower() not in task.title.lower():
            return False
        if self.status != ALL and task.status != self.status:
            return False
        return self.priority == ALL or task.priority == self.priority


def view(
    snapshot: Sequence[Task],
    query: str = "",
    status_filter: StatusFilter = ALL,
    priority_filter: PriorityFilter = ALL,
) -> list[Task]:
    """
    Filter a snapshot, preserving its order (newest-created first).

    Args:
        snapshot: Tasks as held by the cache.
        query: Case-insensitive substring matched against titles; empty matches all.
        status_filter: 'all' or one status.
        priority_filter: 'all' or one priority.

    Returns:
        A new list with the matching tasks.
    """
    return apply_criteria(snapshot, FilterCriteria(query, status_filter, priority_filter))


def apply_criteria(snapshot: Sequence[Task], criteria: FilterCriteria) -> list[Task]:
    """Filter a snapshot with prepared criteria."""
    return [task for task in snapshot if criteria.matches(task)]


@dataclass(frozen=True)
class TaskStats:
    """Task counts by status, as shown on the dashboard."""

    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0


def summarize(tasks: Iterable[Task]) -> TaskStats:
    """Count tasks in total and per status."""
    counts = dict.fromkeys(TaskStatus, 0)
    total = 0
    for task in tasks:
        counts[task.status] += 1
        total += 1
    return TaskStats(
        total=total,
        pending=counts[TaskStatus.PENDING],
        in_progress=counts[TaskStatus.IN_PROGRESS],
        completed=counts[TaskStatus.COMPLETED],
    )
