"""Tests for the in-memory document store used by unit tests."""

import asyncio

import pytest

from chorecycle.core.errors import DatabaseError, RecordNotFoundError, TransactionConflictError
from tests.unit.mocks import InMemoryDBClient


@pytest.mark.unit
class TestInMemoryCrud:
    """Tests for basic record operations."""

    async def test_create_assigns_ids(self, in_memory_db):
        first = await in_memory_db.create_record("tasks", {"title": "a"})
        second = await in_memory_db.create_record("tasks", {"title": "b"})

        assert first["id"] != second["id"]
        assert (await in_memory_db.get_record("tasks", first["id"]))["title"] == "a"

    async def test_get_returns_copy(self, in_memory_db):
        record = await in_memory_db.create_record("tasks", {"title": "a"})

        fetched = await in_memory_db.get_record("tasks", record["id"])
        fetched["title"] = "changed"

        assert (await in_memory_db.get_record("tasks", record["id"]))["title"] == "a"

    async def test_missing_record(self, in_memory_db):
        with pytest.raises(RecordNotFoundError):
            await in_memory_db.get_record("tasks", "nope")
        with pytest.raises(RecordNotFoundError):
            await in_memory_db.update_record("tasks", "nope", {"title": "x"})
        with pytest.raises(RecordNotFoundError):
            await in_memory_db.delete_record("tasks", "nope")

    async def test_equality_filters(self, in_memory_db):
        await in_memory_db.create_record("tasks", {"household_id": "h1", "title": "b", "completed": True})
        await in_memory_db.create_record("tasks", {"household_id": "h1", "title": "a", "completed": False})
        await in_memory_db.create_record("tasks", {"household_id": "h2", "title": "c", "completed": False})

        records = await in_memory_db.list_records(
            collection="tasks", filters={"household_id": "h1", "completed": False}
        )
        assert [r["title"] for r in records] == ["a"]

    async def test_pages_in_id_order(self, in_memory_db):
        for title in ("a", "b", "c"):
            await in_memory_db.create_record("tasks", {"title": title})

        first = await in_memory_db.list_records(collection="tasks", per_page=2)
        second = await in_memory_db.list_records(collection="tasks", page=2, per_page=2)

        assert [r["title"] for r in first + second] == ["a", "b", "c"]

    async def test_rejects_non_dict_data(self, in_memory_db):
        with pytest.raises(DatabaseError, match="Data must be a dictionary"):
            await in_memory_db.create_record("tasks", "invalid")


@pytest.mark.unit
class TestInMemoryTransactions:
    """Tests for optimistic transactions."""

    async def test_writes_applied_on_commit(self, in_memory_db):
        record = await in_memory_db.create_record("tasks", {"flag": False})

        async with in_memory_db.transaction() as tx:
            await tx.update_record(collection="tasks", record_id=record["id"], data={"flag": True})
            created = await tx.create_record(collection="tasks", data={"flag": False})
            assert len(in_memory_db.records("tasks")) == 1

        assert len(in_memory_db.records("tasks")) == 2
        assert (await in_memory_db.get_record("tasks", record["id"]))["flag"] is True
        assert (await in_memory_db.get_record("tasks", created["id"]))["flag"] is False

    async def test_exception_discards_writes(self, in_memory_db):
        record = await in_memory_db.create_record("tasks", {"flag": False})

        with pytest.raises(RuntimeError):
            async with in_memory_db.transaction() as tx:
                await tx.update_record(collection="tasks", record_id=record["id"], data={"flag": True})
                raise RuntimeError("boom")

        assert (await in_memory_db.get_record("tasks", record["id"]))["flag"] is False

    async def test_stale_read_conflicts(self, in_memory_db):
        record = await in_memory_db.create_record("tasks", {"flag": False})

        with pytest.raises(TransactionConflictError):
            async with in_memory_db.transaction() as tx:
                await tx.get_record(collection="tasks", record_id=record["id"])
                await in_memory_db.update_record("tasks", record["id"], {"flag": True})
                await tx.create_record(collection="tasks", data={"child": True})

        assert in_memory_db.conflicts == 1
        assert len(in_memory_db.records("tasks")) == 1

    async def test_conditional_update_on_set_field(self, in_memory_db):
        record = await in_memory_db.create_record("tasks", {"flag": True})

        with pytest.raises(TransactionConflictError):
            async with in_memory_db.transaction() as tx:
                await tx.update_record(
                    collection="tasks", record_id=record["id"], data={"flag": True}, only_if_unset="flag"
                )

    async def test_concurrent_transactions_one_wins(self):
        db = InMemoryDBClient()
        record = await db.create_record("tasks", {"count": 0})

        async def increment():
            async with db.transaction() as tx:
                current = await tx.get_record(collection="tasks", record_id=record["id"])
                await tx.update_record(
                    collection="tasks", record_id=record["id"], data={"count": current["count"] + 1}
                )

        results = await asyncio.gather(increment(), increment(), return_exceptions=True)

        assert sum(1 for r in results if isinstance(r, TransactionConflictError)) == 1
        assert (await db.get_record("tasks", record["id"]))["count"] == 1

    async def test_injected_commit_failure(self, in_memory_db):
        in_memory_db.fail_next_commits(1)

        with pytest.raises(TransactionConflictError, match="injected"):
            async with in_memory_db.transaction() as tx:
                await tx.create_record(collection="tasks", data={"title": "x"})

        assert in_memory_db.records("tasks") == []
