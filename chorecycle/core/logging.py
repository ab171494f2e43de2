"""Logging and observability configuration using Pydantic Logfire.

All modules use Python's standard logging library (logging.getLogger(__name__)),
and Logfire captures and enriches these logs when configured.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Message", extra={"key": "value"})

Structured logging utilities:
    log_with_context(logger, "info", "Task spawned", household_id="h1", task_id="42")
"""

import logging

import logfire

from chorecycle import __version__
from chorecycle.core.config import settings


def configure_logfire() -> None:
    """Configure Pydantic Logfire with token from environment.

    Nothing is sent unless a token is present, so local runs and tests stay offline.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name="chorecycle",
        service_version=__version__,
        send_to_logfire="if-token-present",
    )

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def span(name: str) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("spawn_service.spawn_next_once"):
            ...
    """
    return logfire.span(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Log a message with structured context fields.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        **context: Additional context fields (household_id, task_id, etc.)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)


def log_with_task_context(
    logger: logging.Logger,
    level: str,
    message: str,
    household_id: str | None = None,
    task_id: str | None = None,
    **extra: object,
) -> None:
    """Log a message tagged with the household and task it concerns.

    Usage:
        log_with_task_context(logger, "info", "Spawned successor", household_id="h1", task_id="7", child_id="8")
    """
    context: dict[str, object] = dict(extra)
    if household_id:
        context["household_id"] = household_id
    if task_id:
        context["task_id"] = task_id
    log_with_context(logger, level, message, **context)
