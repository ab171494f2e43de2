"""Pytest configuration and fixtures for integration tests against SQLite."""

from collections.abc import AsyncGenerator

import pytest

from chorecycle.core import db_client
from chorecycle.core.config import settings


@pytest.fixture
async def sqlite_db(tmp_path, monkeypatch) -> AsyncGenerator[str, None]:
    """Provide an initialized SQLite database file for the real db_client."""
    db_path = str(tmp_path / "chorecycle.db")
    monkeypatch.setattr(settings, "sqlite_db_path", db_path)
    monkeypatch.setattr(settings, "store_busy_timeout_seconds", 5.0)

    await db_client.init_db()
    yield db_path
    await db_client.close_connection()
