"""Unit tests for archival of finished tasks."""

from datetime import UTC, datetime

import pytest

from chorecycle.core.config import Constants
from chorecycle.domain.events import TaskEventKind
from chorecycle.services import archive_service, completion_service, notification_service, task_repository


NOW = datetime(2024, 6, 11, 12, 0)


@pytest.mark.unit
class TestArchiveOldCompletedTasks:
    """Tests for archive_old_completed_tasks function."""

    async def test_moves_completed_past_task_to_history(self, patched_db, task_factory):
        """Verify a finished one-off task leaves the live list and lands in history."""
        task = await task_factory(completed=True, repeat=None)

        result = await archive_service.archive_old_completed_tasks("house1", now=NOW)

        assert result.archived == [task.id]
        assert patched_db.records(Constants.TASKS_COLLECTION) == []
        history = patched_db.records(Constants.HISTORY_COLLECTION)
        assert len(history) == 1
        assert history[0]["task_id"] == task.id
        assert history[0]["title"] == task.title
        assert history[0]["archived_at"] == "2024-06-11T12:00:00"

    async def test_keeps_tasks_that_are_still_visible(self, patched_db, task_factory):
        """Verify open tasks and tasks completed for today stay live."""
        await task_factory(completed=False)
        await task_factory(completed=True, due_date=datetime(2024, 6, 11, 7, 0).isoformat())

        result = await archive_service.archive_old_completed_tasks("house1", now=NOW)

        assert result.archived == []
        assert len(patched_db.records(Constants.TASKS_COLLECTION)) == 2
        assert patched_db.records(Constants.HISTORY_COLLECTION) == []

    async def test_spawns_missing_successor_before_archiving(self, patched_db, task_factory):
        """Verify a recurring task is never archived without its next occurrence."""
        task = await task_factory(completed=True)

        result = await archive_service.archive_old_completed_tasks("house1", now=NOW)

        assert result.archived == [task.id]
        live = patched_db.records(Constants.TASKS_COLLECTION)
        assert len(live) == 1
        assert live[0]["due_date"] == "2024-06-10T00:00:00"
        history = patched_db.records(Constants.HISTORY_COLLECTION)
        assert history[0]["has_spawned_next"] is True

    async def test_already_spawned_task_archived_without_new_successor(self, patched_db, task_factory):
        """Verify archival does not spawn again for a task that already has a successor."""
        task = await task_factory(completed=True, has_spawned_next=True)

        result = await archive_service.archive_old_completed_tasks("house1", now=NOW)

        assert result.archived == [task.id]
        assert patched_db.records(Constants.TASKS_COLLECTION) == []

    async def test_failed_spawn_keeps_task_live(self, patched_db, task_factory):
        """Verify a task whose successor cannot be created is not archived."""
        task = await task_factory(completed=True)
        patched_db.fail_next_commits(3)

        result = await archive_service.archive_old_completed_tasks("house1", now=NOW)

        assert result.kept == [task.id]
        assert result.archived == []
        assert [r["id"] for r in patched_db.records(Constants.TASKS_COLLECTION)] == [task.id]
        assert patched_db.records(Constants.HISTORY_COLLECTION) == []

    async def test_dispatches_archived_event(self, patched_db, task_factory):
        """Verify an ARCHIVED event is sent for each archived task."""
        task = await task_factory(completed=True, repeat=None)
        events = []

        async def hook(event):
            events.append(event)

        notification_service.register_hook(hook)

        await archive_service.archive_old_completed_tasks("house1", now=NOW)

        assert [(e.kind, e.task.id) for e in events] == [(TaskEventKind.ARCHIVED, task.id)]

    async def test_task_reopened_after_listing_stays_live(self, patched_db, task_factory, monkeypatch):
        """Verify a task reopened between the list read and the move is not archived."""
        task = await task_factory(completed=True, repeat=None)
        list_household_tasks = task_repository.list_household_tasks

        async def list_then_reopen(*, household_id):
            tasks = await list_household_tasks(household_id=household_id)
            await completion_service.toggle_complete(task, now=NOW)
            return tasks

        monkeypatch.setattr("chorecycle.services.task_repository.list_household_tasks", list_then_reopen)

        result = await archive_service.archive_old_completed_tasks("house1", now=NOW)

        assert result.archived == []
        assert result.kept == [task.id]
        stored = await patched_db.get_record(Constants.TASKS_COLLECTION, task.id)
        assert stored["completed"] is False
        assert patched_db.records(Constants.HISTORY_COLLECTION) == []

    async def test_task_rescheduled_after_listing_stays_live(self, patched_db, task_factory, monkeypatch):
        """Verify the due date checked is the stored one, not the listed one."""
        task = await task_factory(completed=True, repeat=None)
        list_household_tasks = task_repository.list_household_tasks

        async def list_then_reschedule(*, household_id):
            tasks = await list_household_tasks(household_id=household_id)
            await patched_db.update_record(
                Constants.TASKS_COLLECTION, task.id, {"due_date": datetime(2024, 6, 20).isoformat()}
            )
            return tasks

        monkeypatch.setattr("chorecycle.services.task_repository.list_household_tasks", list_then_reschedule)

        result = await archive_service.archive_old_completed_tasks("house1", now=NOW)

        assert result.kept == [task.id]
        assert len(patched_db.records(Constants.TASKS_COLLECTION)) == 1
        assert patched_db.records(Constants.HISTORY_COLLECTION) == []

    async def test_snapshot_taken_from_stored_copy(self, patched_db, task_factory, monkeypatch):
        """Verify history receives the task as stored at the time of the move."""
        task = await task_factory(completed=True, repeat=None)
        list_household_tasks = task_repository.list_household_tasks

        async def list_then_rename(*, household_id):
            tasks = await list_household_tasks(household_id=household_id)
            await patched_db.update_record(Constants.TASKS_COLLECTION, task.id, {"title": "Recycling"})
            return tasks

        monkeypatch.setattr("chorecycle.services.task_repository.list_household_tasks", list_then_rename)

        result = await archive_service.archive_old_completed_tasks("house1", now=NOW)

        assert result.archived == [task.id]
        assert patched_db.records(Constants.HISTORY_COLLECTION)[0]["title"] == "Recycling"

    async def test_task_deleted_after_listing_is_skipped(self, patched_db, task_factory, monkeypatch):
        """Verify a task removed by someone else does not fail the pass."""
        task = await task_factory(completed=True, repeat=None)
        list_household_tasks = task_repository.list_household_tasks

        async def list_then_delete(*, household_id):
            tasks = await list_household_tasks(household_id=household_id)
            await patched_db.delete_record(Constants.TASKS_COLLECTION, task.id)
            return tasks

        monkeypatch.setattr("chorecycle.services.task_repository.list_household_tasks", list_then_delete)

        result = await archive_service.archive_old_completed_tasks("house1", now=NOW)

        assert result.archived == []
        assert result.failed == {}
        assert patched_db.records(Constants.HISTORY_COLLECTION) == []

    async def test_accepts_timezone_aware_now(self, patched_db, task_factory):
        """Verify an aware clock value is converted to household-local time."""
        task = await task_factory(completed=True, repeat=None)

        result = await archive_service.archive_old_completed_tasks("house1", now=NOW.replace(tzinfo=UTC))

        assert result.archived == [task.id]
        assert patched_db.records(Constants.HISTORY_COLLECTION)[0]["archived_at"] == "2024-06-11T12:00:00"

    async def test_only_archives_own_household(self, patched_db, task_factory):
        """Verify other households are untouched."""
        await task_factory(completed=True, repeat=None, household_id="house2")

        result = await archive_service.archive_old_completed_tasks("house1", now=NOW)

        assert result.archived == []
        assert len(patched_db.records(Constants.TASKS_COLLECTION)) == 1


@pytest.mark.unit
class TestListHistory:
    """Tests for list_history function."""

    async def test_latest_due_date_first(self, patched_db, task_factory):
        """Verify history is returned newest first."""
        await task_factory(completed=True, repeat=None, title="Older", due_date=datetime(2024, 5, 1).isoformat())
        await task_factory(completed=True, repeat=None, title="Newer", due_date=datetime(2024, 6, 1).isoformat())
        await archive_service.archive_old_completed_tasks("house1", now=NOW)

        history = await archive_service.list_history("house1")

        assert [t.title for t in history] == ["Newer", "Older"]
        assert all(t.task_id for t in history)
