"""Pytest configuration and fixtures for unit tests."""

from collections.abc import Awaitable, Callable
from typing import Any

import pytest

from chorecycle.core.config import Constants
from chorecycle.domain.task import Task
from tests.factories import task_data
from tests.unit.mocks import InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches chorecycle.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("chorecycle.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("chorecycle.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("chorecycle.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("chorecycle.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("chorecycle.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("chorecycle.core.db_client.transaction", in_memory_db.transaction)

    return in_memory_db


@pytest.fixture
def task_factory(patched_db: InMemoryDBClient) -> Callable[..., Awaitable[Task]]:
    """Factory fixture that stores a task and returns it as a Task model."""

    async def _create_task(**overrides: Any) -> Task:
        record = await patched_db.create_record(Constants.TASKS_COLLECTION, task_data(**overrides))
        return Task.model_validate(record)

    return _create_task
