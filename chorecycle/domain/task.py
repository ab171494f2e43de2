"""Task domain models and enums."""

import json
import logging
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, ValidationError, ValidatorFunctionWrapHandler, field_validator

from chorecycle.core.dates import to_datetime


logger = logging.getLogger(__name__)


class TaskFrequency(StrEnum):
    """Unit a repeating task advances by."""

    ONCE = "once"  # Sentinel for non-recurring tasks
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class TaskPriority(StrEnum):
    """Task priority, highest first."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TaskRepeat(BaseModel):
    """Recurrence rule attached to a task."""

    frequency: TaskFrequency = Field(..., description="Recurrence unit")
    interval: int = Field(..., ge=1, description="Number of units between occurrences")

    @property
    def is_recurring(self) -> bool:
        """False for the ``once`` sentinel."""
        return self.frequency != TaskFrequency.ONCE


def _parse_stored_json(value: Any) -> Any:  # noqa: ANN401
    """Decode a JSON column; blank strings mean absent."""
    if isinstance(value, str):
        if not value.strip():
            return None
        return json.loads(value)
    return value


class TaskBase(BaseModel):
    """Fields shared by live, new and archived tasks."""

    household_id: str = Field(..., min_length=1, description="Owning household ID")
    title: str = Field(..., min_length=1, description="Task title")
    details: str = Field(default="", description="Optional free-text details")
    assigned_to: str | None = Field(default=None, description="Assigned member ID (None means anyone)")
    completed: bool = Field(default=False, description="Whether the task is done")
    created_at: datetime = Field(..., description="Creation timestamp")
    due_date: datetime = Field(..., description="Due date (calendar-day semantics)")
    priority: TaskPriority | None = Field(default=None, description="high, medium or low")
    repeat: TaskRepeat | None = Field(default=None, description="Recurrence rule")
    has_spawned_next: bool = Field(default=False, description="Whether the successor has been created")

    @field_validator("created_at", "due_date", mode="before")
    @classmethod
    def normalize_dates(cls, v: Any) -> datetime:  # noqa: ANN401
        """Accept any stored date representation."""
        return to_datetime(v)

    @field_validator("assigned_to", "priority", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:  # noqa: ANN401
        """Empty strings are stored for unassigned tasks and missing priorities."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("details", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:  # noqa: ANN401
        """Missing details read as an empty string."""
        return "" if v is None else v

    @field_validator("has_spawned_next", mode="before")
    @classmethod
    def absent_flag_is_false(cls, v: Any) -> Any:  # noqa: ANN401
        """Tasks created before the flag existed store NULL."""
        return False if v is None else v

    @field_validator("repeat", mode="wrap")
    @classmethod
    def lenient_repeat(cls, v: Any, handler: ValidatorFunctionWrapHandler) -> TaskRepeat | None:  # noqa: ANN401
        """Treat an unreadable recurrence rule as no recurrence."""
        try:
            return handler(_parse_stored_json(v))
        except (ValidationError, ValueError) as e:
            logger.warning("Ignoring malformed repeat rule", extra={"repeat": repr(v), "error": str(e)})
            return None

    @property
    def is_recurring(self) -> bool:
        """True when the task carries a repeat rule other than ``once``."""
        return self.repeat is not None and self.repeat.is_recurring


class Task(TaskBase):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID from the store")

    @field_validator("id", mode="before")
    @classmethod
    def id_to_str(cls, v: Any) -> Any:  # noqa: ANN401
        """Stores may hand back integer IDs."""
        return str(v) if isinstance(v, int) else v

    def to_record(self) -> dict[str, Any]:
        """Fields as written to the store (without ``id``)."""
        return self.model_dump(mode="json", exclude={"id"})


class ArchivedTask(TaskBase):
    """Snapshot of a task moved to the history collection."""

    id: str = Field(..., description="History record ID")
    task_id: str = Field(..., description="ID the task had while live")
    archived_at: datetime = Field(..., description="When the task was archived")

    @field_validator("id", "task_id", mode="before")
    @classmethod
    def ids_to_str(cls, v: Any) -> Any:  # noqa: ANN401
        """Stores may hand back integer IDs."""
        return str(v) if isinstance(v, int) else v

    @field_validator("archived_at", mode="before")
    @classmethod
    def normalize_archived_at(cls, v: Any) -> datetime:  # noqa: ANN401
        """Accept any stored date representation."""
        return to_datetime(v)
