"""Pydantic models for creating records in the store."""

from datetime import datetime
from typing import Any

from pydantic import Field

from chorecycle.domain.task import Task, TaskBase


class TaskCreate(TaskBase):
    """Pydantic model for creating a task record."""

    @classmethod
    def successor_of(cls, parent: Task, *, due_date: datetime, created_at: datetime) -> "TaskCreate":
        """Build the next occurrence of a recurring task.

        Everything is carried over from the parent except completion, the
        spawn flag and the two timestamps.
        """
        return cls(
            household_id=parent.household_id,
            title=parent.title,
            details=parent.details,
            assigned_to=parent.assigned_to,
            completed=False,
            created_at=created_at,
            due_date=due_date,
            priority=parent.priority,
            repeat=parent.repeat,
            has_spawned_next=False,
        )

    def to_record(self) -> dict[str, Any]:
        """Fields as written to the store."""
        return self.model_dump(mode="json")


class ArchivedTaskCreate(TaskBase):
    """Pydantic model for creating a history record from a live task."""

    task_id: str = Field(..., description="ID the task had while live")
    archived_at: datetime = Field(..., description="When the task was archived")

    @classmethod
    def from_task(cls, task: Task, *, archived_at: datetime) -> "ArchivedTaskCreate":
        """Snapshot a live task for the history collection."""
        return cls(**task.model_dump(exclude={"id"}), task_id=task.id, archived_at=archived_at)

    def to_record(self) -> dict[str, Any]:
        """Fields as written to the store."""
        return self.model_dump(mode="json")
