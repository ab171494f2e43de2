"""SQLite schema for the task and history collections (code-first approach)."""

import logging

from chorecycle.core.config import Constants


logger = logging.getLogger(__name__)


# Columns shared by live tasks and their archived snapshots
_TASK_COLUMNS = """
    household_id TEXT NOT NULL,
    title TEXT NOT NULL,
    details TEXT NOT NULL DEFAULT '',
    assigned_to TEXT,
    completed INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    due_date TEXT NOT NULL,
    priority TEXT CHECK (priority IS NULL OR priority IN ('high', 'medium', 'low')),
    repeat TEXT,
    has_spawned_next INTEGER DEFAULT 0
"""

SCHEMA_STATEMENTS: list[str] = [
    f"""
    CREATE TABLE IF NOT EXISTS {Constants.TASKS_COLLECTION} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        {_TASK_COLUMNS}
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {Constants.HISTORY_COLLECTION} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        task_id TEXT NOT NULL,
        archived_at TEXT NOT NULL,
        {_TASK_COLUMNS}
    )
    """,
    f"CREATE INDEX IF NOT EXISTS idx_tasks_household ON {Constants.TASKS_COLLECTION} (household_id)",
    f"CREATE INDEX IF NOT EXISTS idx_history_household ON {Constants.HISTORY_COLLECTION} (household_id)",
]


async def init_db(*, db_path: str | None = None) -> None:
    """Create the task and history tables if they do not exist."""
    from chorecycle.core.db_client import get_connection

    conn = await get_connection(db_path=db_path)
    for statement in SCHEMA_STATEMENTS:
        await conn.execute(statement)
    await conn.commit()

    logger.info(
        "Initialized database schema",
        extra={"collections": [Constants.TASKS_COLLECTION, Constants.HISTORY_COLLECTION]},
    )
