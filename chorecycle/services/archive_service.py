"""Archival of finished tasks into the household history."""

import logging
from datetime import datetime

from chorecycle.core import db_client
from chorecycle.core.config import Constants
from chorecycle.core.dates import resolve_now
from chorecycle.core.errors import RecordNotFoundError
from chorecycle.core.logging import span
from chorecycle.core.retry import with_retry
from chorecycle.domain.create_models import ArchivedTaskCreate
from chorecycle.domain.events import TaskEvent, TaskEventKind
from chorecycle.domain.task import ArchivedTask, Task
from chorecycle.models.service_models import ArchiveResult
from chorecycle.services import notification_service, spawn_service, task_repository
from chorecycle.services.task_rules import should_show_task


logger = logging.getLogger(__name__)


def is_archivable(task: Task, now: datetime) -> bool:
    """Completed tasks drop out of live lists once their due day is over."""
    return task.completed and not should_show_task(task, now)


@with_retry()
async def _move_to_history(task: Task, *, archived_at: datetime) -> Task | None:
    """Copy a task into history and delete it from the live collection, atomically.

    The task is re-read inside the transaction; nothing is written unless the
    stored copy is still archivable and, when it recurs, already has its
    successor. Returns the archived copy, or None when the task was left alone.
    """
    async with db_client.transaction() as tx:
        try:
            record = await tx.get_record(collection=Constants.TASKS_COLLECTION, record_id=task.id)
        except RecordNotFoundError:
            logger.info("Task %s disappeared before archival", task.id)
            return None

        fresh = Task.model_validate(record)
        if fresh.household_id != task.household_id or not is_archivable(fresh, archived_at):
            logger.info("Task %s changed since it was listed, leaving it live", task.id)
            return None
        if fresh.is_recurring and not fresh.has_spawned_next:
            logger.info("Task %s has no successor yet, leaving it live", task.id)
            return None

        snapshot = ArchivedTaskCreate.from_task(fresh, archived_at=archived_at)
        await tx.create_record(collection=Constants.HISTORY_COLLECTION, data=snapshot.to_record())
        await tx.delete_record(collection=Constants.TASKS_COLLECTION, record_id=fresh.id)

    return fresh


async def archive_old_completed_tasks(household_id: str, now: datetime | None = None) -> ArchiveResult:
    """Move completed tasks due before today into the history collection.

    A completed recurring task whose successor does not exist yet gets one
    more spawn attempt first; if that fails the task stays live so a later
    toggle can retry. Each task is checked again against its stored copy
    when it is moved; a task reopened or edited since it was listed stays
    live and is reported as kept.

    Args:
        household_id: Household to archive
        now: Evaluation time (defaults to household-local now)

    Returns:
        ArchiveResult listing archived, kept and failed task IDs
    """
    with span("archive_service.archive_old_completed_tasks"):
        now = resolve_now(now)
        tasks = await task_repository.list_household_tasks(household_id=household_id)
        result = ArchiveResult(household_id=household_id)

        for task in tasks:
            if not is_archivable(task, now):
                continue

            if task.is_recurring and not task.has_spawned_next:
                try:
                    await spawn_service.spawn_next_once(task, now=now)
                except Exception:
                    logger.exception("Keeping task %s live: successor could not be spawned", task.id)
                    result.kept.append(task.id)
                    continue

            try:
                archived = await _move_to_history(task, archived_at=now)
            except Exception as e:
                logger.exception("Failed to archive task %s", task.id, extra={"household_id": household_id})
                result.failed[task.id] = str(e)
                continue

            if archived is None:
                result.kept.append(task.id)
                continue

            result.archived.append(task.id)
            await notification_service.dispatch(TaskEvent(kind=TaskEventKind.ARCHIVED, task=archived))

        logger.info(
            "Archived %d tasks for household %s (%d kept, %d failed)",
            len(result.archived),
            household_id,
            len(result.kept),
            len(result.failed),
        )
        return result


async def list_history(household_id: str) -> list[ArchivedTask]:
    """Archived tasks of a household, latest due date first."""
    with span("archive_service.list_history"):
        archived = await task_repository.list_archived_tasks(household_id=household_id)
        return sorted(archived, key=lambda t: t.due_date, reverse=True)
