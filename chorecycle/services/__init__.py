from chorecycle.services import (
    archive_service,
    completion_service,
    notification_service,
    reminder_service,
    spawn_service,
    sweep_service,
    task_repository,
    task_rules,
)


__all__ = [
    "archive_service",
    "completion_service",
    "notification_service",
    "reminder_service",
    "spawn_service",
    "sweep_service",
    "task_repository",
    "task_rules",
]
