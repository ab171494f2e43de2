"""Reminder scheduling decisions for task lifecycle events.

Only decides what should be scheduled or cancelled for a given member;
delivering the reminder is left to whoever consumes the actions.
"""

import logging
from datetime import datetime

from chorecycle.core.config import settings
from chorecycle.core.dates import resolve_now, start_of_day
from chorecycle.domain.events import TaskEvent, TaskEventKind
from chorecycle.domain.task import Task
from chorecycle.models.service_models import ReminderAction, ReminderActionKind, TaskReminder


logger = logging.getLogger(__name__)


def reminder_identifier(task_id: str, user_id: str) -> str:
    """Stable reminder ID for a task and member, used to cancel it later."""
    return f"{task_id}_{user_id}"


def plan_task_reminder(task: Task, user_id: str, now: datetime | None = None) -> TaskReminder | None:
    """Plan a reminder on the morning of the task's due date.

    Args:
        task: Task to remind about
        user_id: Member whose device would show the reminder
        now: Evaluation time (defaults to household-local now)

    Returns:
        The reminder, or None when the task is someone else's, already done,
        or the reminder time has passed
    """
    if task.assigned_to and task.assigned_to != user_id:
        return None
    if task.completed:
        return None

    fire_at = start_of_day(task.due_date).replace(hour=settings.reminder_hour)
    now = resolve_now(now)
    if fire_at <= now:
        logger.debug("Skipping reminder for task %s, time already passed: %s", task.id, fire_at)
        return None

    return TaskReminder(
        identifier=reminder_identifier(task.id, user_id),
        task_id=task.id,
        user_id=user_id,
        title=task.title,
        fire_at=fire_at,
    )


def reminder_actions_for(event: TaskEvent, user_id: str, now: datetime | None = None) -> list[ReminderAction]:
    """Translate a lifecycle event into reminder actions for one member.

    New and reopened tasks get a reminder when one can be planned; completed
    and archived tasks have theirs cancelled.
    """
    identifier = reminder_identifier(event.task.id, user_id)

    if event.kind in {TaskEventKind.COMPLETED, TaskEventKind.ARCHIVED}:
        return [ReminderAction(kind=ReminderActionKind.CANCEL, identifier=identifier)]

    reminder = plan_task_reminder(event.task, user_id, now)
    if reminder is None:
        return []
    return [ReminderAction(kind=ReminderActionKind.SCHEDULE, identifier=identifier, reminder=reminder)]
