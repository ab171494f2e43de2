"""Exactly-once creation of a recurring task's next occurrence.

A task instance moves through a single one-way transition on its
``has_spawned_next`` flag: not-spawned -> spawned. The transition and the
creation of the successor happen in one store transaction, after re-reading
the task inside that transaction, so a completion toggle and any number of
overdue sweeps racing on the same task produce at most one successor.
"""

import logging
from datetime import datetime

from chorecycle.core import db_client
from chorecycle.core.config import Constants
from chorecycle.core.dates import resolve_now
from chorecycle.core.errors import RecordNotFoundError
from chorecycle.core.logging import log_with_task_context, span
from chorecycle.core.recurrence import next_due_date
from chorecycle.core.retry import with_retry
from chorecycle.domain.create_models import TaskCreate
from chorecycle.domain.events import TaskEvent, TaskEventKind
from chorecycle.domain.task import Task
from chorecycle.services import notification_service


logger = logging.getLogger(__name__)


@with_retry()
async def _spawn_in_transaction(*, household_id: str, task_id: str, now: datetime) -> Task | None:
    """Read-check-write of one spawn; returns the successor or None when there is nothing to do."""
    async with db_client.transaction() as tx:
        try:
            record = await tx.get_record(collection=Constants.TASKS_COLLECTION, record_id=task_id)
        except RecordNotFoundError:
            log_with_task_context(
                logger, "warning", "Task disappeared before spawn", household_id=household_id, task_id=task_id
            )
            return None

        if record.get("household_id") != household_id:
            log_with_task_context(
                logger, "warning", "Task belongs to another household", household_id=household_id, task_id=task_id
            )
            return None

        fresh = Task.model_validate(record)

        if fresh.has_spawned_next:
            log_with_task_context(
                logger, "info", "Successor already spawned", household_id=household_id, task_id=task_id
            )
            return None

        if not fresh.is_recurring or fresh.repeat is None:
            log_with_task_context(
                logger, "info", "Task no longer recurs, nothing to spawn", household_id=household_id, task_id=task_id
            )
            return None

        next_due = next_due_date(fresh.due_date, fresh.repeat.frequency, fresh.repeat.interval)
        successor = TaskCreate.successor_of(fresh, due_date=next_due, created_at=now)

        child_record = await tx.create_record(collection=Constants.TASKS_COLLECTION, data=successor.to_record())
        await tx.update_record(
            collection=Constants.TASKS_COLLECTION,
            record_id=task_id,
            data={"has_spawned_next": True},
            only_if_unset="has_spawned_next",
        )

    child = Task.model_validate(child_record)
    log_with_task_context(
        logger,
        "info",
        "Spawned next occurrence",
        household_id=household_id,
        task_id=task_id,
        child_id=child.id,
        next_due=child.due_date.isoformat(),
    )
    return child


async def spawn_next_once(task: Task, now: datetime | None = None) -> Task | None:
    """Create the next occurrence of a recurring task, at most once per task.

    The passed-in task only identifies the document; its persisted state is
    re-read inside the transaction. Calling this for a task that has already
    spawned, no longer exists, or does not recur is a no-op.

    Args:
        task: The task instance whose successor should exist
        now: Creation time for the successor (defaults to household-local now)

    Returns:
        The newly created successor, or None if nothing was created

    Raises:
        TransactionConflictError: If the store kept conflicting after all retries
        DatabaseError: If the store failed; no partial state is committed
    """
    with span("spawn_service.spawn_next_once"):
        if not task.is_recurring:
            logger.debug("Task %s does not recur, skipping spawn", task.id)
            return None

        child = await _spawn_in_transaction(
            household_id=task.household_id,
            task_id=task.id,
            now=resolve_now(now),
        )

        if child is not None:
            await notification_service.dispatch(TaskEvent(kind=TaskEventKind.SPAWNED, task=child, parent_id=task.id))

        return child
