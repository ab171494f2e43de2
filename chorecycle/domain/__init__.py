"""Domain models and DTOs."""

from chorecycle.domain.create_models import ArchivedTaskCreate, TaskCreate
from chorecycle.domain.events import TaskEvent, TaskEventKind
from chorecycle.domain.task import ArchivedTask, Task, TaskFrequency, TaskPriority, TaskRepeat


__all__ = [
    "ArchivedTask",
    "ArchivedTaskCreate",
    "Task",
    "TaskCreate",
    "TaskEvent",
    "TaskEventKind",
    "TaskFrequency",
    "TaskPriority",
    "TaskRepeat",
]
