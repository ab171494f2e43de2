"""Opportunistic overdue sweep for recurring tasks.

Runs whenever a caller asks (e.g. when a household view loads), never on a
schedule. Every overdue, unfinished recurring task that has not yet spawned
gets its next occurrence created.
"""

import logging
from datetime import datetime

from chorecycle.core.dates import resolve_now
from chorecycle.core.errors import classify_store_error
from chorecycle.core.logging import span
from chorecycle.domain.task import Task
from chorecycle.models.service_models import SweepResult
from chorecycle.services import spawn_service, task_repository
from chorecycle.services.task_rules import is_overdue, sort_tasks


logger = logging.getLogger(__name__)


def needs_spawn(task: Task, now: datetime) -> bool:
    """Whether the sweep should spawn a successor for this task."""
    return not task.completed and task.is_recurring and not task.has_spawned_next and is_overdue(task, now)


async def sweep_overdue(household_id: str, now: datetime | None = None) -> SweepResult:
    """Spawn successors for every overdue recurring task in a household.

    Each spawn is attempted independently: a failure is logged and recorded
    in the result and the sweep moves on to the next task. The originals'
    completed flags are left untouched.

    Args:
        household_id: Household to sweep
        now: Evaluation time (defaults to household-local now)

    Returns:
        SweepResult summarizing what happened

    Raises:
        DatabaseError: If the household's tasks could not be read
    """
    with span("sweep_service.sweep_overdue"):
        now = resolve_now(now)
        tasks = await task_repository.list_household_tasks(household_id=household_id)
        candidates = sort_tasks(task for task in tasks if needs_spawn(task, now))

        result = SweepResult(household_id=household_id, examined=len(tasks), candidates=len(candidates))

        for task in candidates:
            try:
                child = await spawn_service.spawn_next_once(task, now=now)
            except Exception as e:
                logger.exception(
                    "Spawn failed for overdue task %s",
                    task.id,
                    extra={"household_id": household_id, "category": classify_store_error(e).value},
                )
                result.failed[task.id] = str(e)
                continue

            if child is None:
                result.skipped.append(task.id)
            else:
                result.spawned.append(child.id)

        logger.info(
            "Overdue sweep for household %s: %d examined, %d candidates, %d spawned, %d skipped, %d failed",
            household_id,
            result.examined,
            result.candidates,
            len(result.spawned),
            len(result.skipped),
            len(result.failed),
        )
        return result
