"""Completion toggle for tasks."""

import logging
from datetime import datetime

from chorecycle.core import db_client
from chorecycle.core.config import Constants
from chorecycle.core.logging import span
from chorecycle.domain.events import TaskEvent, TaskEventKind
from chorecycle.domain.task import Task
from chorecycle.services import notification_service, spawn_service


logger = logging.getLogger(__name__)


async def toggle_complete(task: Task, now: datetime | None = None) -> Task | None:
    """Flip a task's completed flag, spawning its next occurrence when it becomes complete.

    The flag write is a plain last-write-wins update. If it fails nothing else
    happens. If it succeeds and the spawn then fails, the completion stays
    persisted and the error propagates; a later toggle or sweep can retry the
    spawn safely.

    Args:
        task: The task as the caller last saw it
        now: Creation time for a spawned successor (defaults to household-local now)

    Returns:
        The spawned successor, or None if none was created

    Raises:
        RecordNotFoundError: If the task no longer exists
        DatabaseError: If the flag write or the spawn fails
    """
    with span("completion_service.toggle_complete"):
        new_completed = not task.completed

        record = await db_client.update_record(
            collection=Constants.TASKS_COLLECTION,
            record_id=task.id,
            data={"completed": new_completed},
        )
        updated = Task.model_validate(record)
        logger.info("Task %s marked %s", task.id, "completed" if new_completed else "not completed")

        kind = TaskEventKind.COMPLETED if new_completed else TaskEventKind.REOPENED
        await notification_service.dispatch(TaskEvent(kind=kind, task=updated))

        if not new_completed:
            return None

        return await spawn_service.spawn_next_once(updated, now=now)
