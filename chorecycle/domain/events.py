"""Lifecycle events handed to notification hooks."""

from enum import StrEnum

from pydantic import BaseModel, Field

from chorecycle.domain.task import Task


class TaskEventKind(StrEnum):
    """State transitions that downstream consumers may react to."""

    COMPLETED = "completed"
    REOPENED = "reopened"
    SPAWNED = "spawned"
    ARCHIVED = "archived"


class TaskEvent(BaseModel):
    """A task state transition that has been committed to the store."""

    kind: TaskEventKind = Field(..., description="What happened")
    task: Task = Field(..., description="The task the event is about (the child for SPAWNED)")
    parent_id: str | None = Field(default=None, description="Parent task ID for SPAWNED events")
