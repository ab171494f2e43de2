"""Task reads and creates against the document store, as domain models."""

import logging

from pydantic import ValidationError

from chorecycle.core import db_client
from chorecycle.core.config import Constants, settings
from chorecycle.core.errors import RecordNotFoundError
from chorecycle.core.logging import span
from chorecycle.domain.create_models import TaskCreate
from chorecycle.domain.task import ArchivedTask, Task


logger = logging.getLogger(__name__)


async def _list_all(*, collection: str, household_id: str) -> list[dict]:
    """Page through every record of a household in a collection."""
    per_page = settings.list_page_size
    records: list[dict] = []
    page = 1

    while True:
        batch = await db_client.list_records(
            collection=collection,
            page=page,
            per_page=per_page,
            filters={"household_id": household_id},
        )
        records.extend(batch)
        if len(batch) < per_page:
            return records
        page += 1


async def get_task(*, household_id: str, task_id: str) -> Task | None:
    """Get a task by ID, or None if it does not exist in this household."""
    with span("task_repository.get_task"):
        try:
            record = await db_client.get_record(collection=Constants.TASKS_COLLECTION, record_id=task_id)
        except RecordNotFoundError:
            return None

        if record.get("household_id") != household_id:
            logger.warning(
                "Task %s belongs to another household", task_id, extra={"household_id": household_id}
            )
            return None

        return Task.model_validate(record)


async def list_household_tasks(*, household_id: str) -> list[Task]:
    """Get every live task of a household.

    Records that fail validation are skipped and logged, so one bad document
    does not hide the rest of the household's tasks.
    """
    with span("task_repository.list_household_tasks"):
        records = await _list_all(collection=Constants.TASKS_COLLECTION, household_id=household_id)

        tasks = []
        for record in records:
            try:
                tasks.append(Task.model_validate(record))
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed task record %s: %s",
                    record.get("id"),
                    e,
                    extra={"household_id": household_id},
                )

        logger.debug("Loaded %d tasks for household %s", len(tasks), household_id)
        return tasks


async def list_archived_tasks(*, household_id: str) -> list[ArchivedTask]:
    """Get every history record of a household, unordered."""
    with span("task_repository.list_archived_tasks"):
        records = await _list_all(collection=Constants.HISTORY_COLLECTION, household_id=household_id)

        archived = []
        for record in records:
            try:
                archived.append(ArchivedTask.model_validate(record))
            except ValidationError as e:
                logger.warning("Skipping malformed history record %s: %s", record.get("id"), e)
        return archived


async def create_task(task: TaskCreate) -> Task:
    """Create a task document and return it with its assigned ID."""
    with span("task_repository.create_task"):
        record = await db_client.create_record(collection=Constants.TASKS_COLLECTION, data=task.to_record())
        logger.info("Created task: %s (household: %s)", task.title, task.household_id)
        return Task.model_validate(record)
