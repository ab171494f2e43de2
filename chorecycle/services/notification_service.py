"""Dispatch of committed task lifecycle events to downstream hooks.

Hooks are async callables taking a TaskEvent. Reminder scheduling, push
delivery and similar side effects live behind them; a failing hook is logged
and reported but never undoes the state transition that produced the event.
"""

import logging
from collections.abc import Awaitable, Callable

from chorecycle.core.logging import span
from chorecycle.domain.events import TaskEvent
from chorecycle.models.service_models import NotificationResult


logger = logging.getLogger(__name__)

NotificationHook = Callable[[TaskEvent], Awaitable[None]]

_hooks: list[NotificationHook] = []


def _hook_name(hook: NotificationHook) -> str:
    return getattr(hook, "__qualname__", None) or type(hook).__name__


def register_hook(hook: NotificationHook) -> None:
    """Register a hook; registering the same hook twice has no effect."""
    if hook not in _hooks:
        _hooks.append(hook)
        logger.info("Registered notification hook %s", _hook_name(hook))


def unregister_hook(hook: NotificationHook) -> None:
    """Remove a previously registered hook, if present."""
    if hook in _hooks:
        _hooks.remove(hook)
        logger.info("Unregistered notification hook %s", _hook_name(hook))


def clear_hooks() -> None:
    """Remove all registered hooks."""
    _hooks.clear()


async def dispatch(event: TaskEvent) -> list[NotificationResult]:
    """Hand an event to every registered hook.

    Args:
        event: The committed lifecycle event

    Returns:
        One NotificationResult per hook, in registration order
    """
    with span("notification_service.dispatch"):
        results = []
        for hook in list(_hooks):
            name = _hook_name(hook)
            try:
                await hook(event)
            except Exception as e:
                logger.exception(
                    "Notification hook %s failed for %s event on task %s",
                    name,
                    event.kind,
                    event.task.id,
                )
                results.append(NotificationResult(hook=name, success=False, error=str(e)))
                continue
            results.append(NotificationResult(hook=name, success=True))

        if results:
            logger.debug(
                "Dispatched %s event for task %s to %d hooks (%d failed)",
                event.kind,
                event.task.id,
                len(results),
                sum(1 for r in results if not r.success),
            )
        return results
