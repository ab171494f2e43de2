"""Pure rules for overdue status, list visibility and task ordering.

These functions never touch the store. Time-dependent rules take an optional
``now`` so callers and tests can pin the clock; the default is the current
household-local time.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta
from functools import cmp_to_key
from typing import TypeVar

from chorecycle.core.config import Constants
from chorecycle.core.dates import resolve_now, start_of_day
from chorecycle.domain.task import TaskBase, TaskPriority


_PRIORITY_RANK: dict[TaskPriority, int] = {
    TaskPriority.HIGH: 0,
    TaskPriority.MEDIUM: 1,
    TaskPriority.LOW: 2,
}
_NO_PRIORITY_RANK = 3

T = TypeVar("T", bound=TaskBase)


def overdue_at(task: TaskBase) -> datetime:
    """Instant the task becomes overdue: 00:01 on the day after its due date."""
    return start_of_day(task.due_date) + timedelta(days=1, minutes=Constants.OVERDUE_GRACE_MINUTES)


def is_overdue(task: TaskBase, now: datetime | None = None) -> bool:
    """Whether the task's due day, including its grace minute, has passed.

    Completion is not considered; callers decide whether a completed task
    should be labelled overdue.
    """
    now = resolve_now(now)
    return now >= overdue_at(task)


def should_show_task(task: TaskBase, now: datetime | None = None) -> bool:
    """Whether the task belongs in a live task list.

    Incomplete tasks always show. Completed tasks show until the end of their
    due day; after that they are waiting to be archived.
    """
    if not task.completed:
        return True
    now = resolve_now(now)
    return task.due_date >= start_of_day(now)


def _id_key(task: TaskBase) -> tuple[int, int, str]:
    # Numeric IDs sort numerically ("9" before "10") and ahead of other IDs
    task_id = getattr(task, "id", "")
    if task_id.isdigit():
        return (0, int(task_id), "")
    return (1, 0, task_id)


def priority_rank(priority: TaskPriority | None) -> int:
    """Sort rank of a priority; missing priorities sort after low."""
    if priority is None:
        return _NO_PRIORITY_RANK
    return _PRIORITY_RANK[priority]


def compare_by_priority_and_date(a: TaskBase, b: TaskBase) -> int:
    """Order tasks by priority, then earliest due date, then ID.

    Returns a negative number, zero or a positive number like a classic
    comparator. Zero is only returned for the same task.
    """
    rank_diff = priority_rank(a.priority) - priority_rank(b.priority)
    if rank_diff:
        return rank_diff

    if a.due_date != b.due_date:
        return -1 if a.due_date < b.due_date else 1

    a_key = _id_key(a)
    b_key = _id_key(b)
    if a_key == b_key:
        return 0
    return -1 if a_key < b_key else 1


def sort_tasks(tasks: Iterable[T]) -> list[T]:
    """Return the tasks in display order."""
    return sorted(tasks, key=cmp_to_key(compare_by_priority_and_date))


def visible_tasks(tasks: Iterable[T], now: datetime | None = None) -> list[T]:
    """Tasks a live list should render, in display order."""
    now = resolve_now(now)
    return sort_tasks(task for task in tasks if should_show_task(task, now))
