"""Pydantic models for service layer return types.

These models provide type safety at service boundaries for the results of
batch operations and downstream notification decisions.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class SweepResult(BaseModel):
    """Outcome of one overdue sweep over a household."""

    household_id: str
    examined: int = 0
    candidates: int = 0
    spawned: list[str] = Field(default_factory=list, description="IDs of newly created successor tasks")
    skipped: list[str] = Field(default_factory=list, description="Parent IDs where the spawn turned out to be a no-op")
    failed: dict[str, str] = Field(default_factory=dict, description="Parent ID to error message")


class ArchiveResult(BaseModel):
    """Outcome of one archival pass over a household."""

    household_id: str
    archived: list[str] = Field(default_factory=list, description="IDs of live tasks moved to history")
    kept: list[str] = Field(
        default_factory=list,
        description="IDs left live: successor could not be spawned or the task changed since it was listed",
    )
    failed: dict[str, str] = Field(default_factory=dict, description="Task ID to error message")


class NotificationResult(BaseModel):
    """Result of handing an event to one notification hook."""

    hook: str
    success: bool
    error: str | None = None


class ReminderActionKind(StrEnum):
    """What a reminder consumer should do."""

    SCHEDULE = "schedule"
    CANCEL = "cancel"


class TaskReminder(BaseModel):
    """A reminder to fire for one member about one task."""

    identifier: str = Field(..., description="Stable ID used to cancel the reminder later")
    task_id: str
    user_id: str
    title: str
    fire_at: datetime = Field(..., description="Household-local time the reminder fires")


class ReminderAction(BaseModel):
    """A schedule or cancel decision for one reminder."""

    kind: ReminderActionKind
    identifier: str
    reminder: TaskReminder | None = None
