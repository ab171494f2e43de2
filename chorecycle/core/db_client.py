"""SQLite document store client with CRUD operations and transactions."""

import asyncio
import json
import logging
import re
import sqlite3
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from chorecycle.core.config import settings
from chorecycle.core.errors import DatabaseError, RecordNotFoundError, TransactionConflictError


logger = logging.getLogger(__name__)

_IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def _validate_identifier(name: str, kind: str = "collection") -> None:
    """Validate that a collection or field name contains only alphanumeric characters and underscores."""
    if not _IDENTIFIER_PATTERN.match(name):
        msg = f"Invalid {kind} name: {name}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def _convert_record_ids(record: dict[str, Any]) -> dict[str, Any]:
    """Convert integer ID and reference fields to strings for Pydantic compatibility."""
    ref_fields = {"id", "assigned_to"}

    converted = record.copy()
    for key, value in converted.items():
        if isinstance(value, int) and (key in ref_fields or key.endswith("_id")):
            converted[key] = str(value)
    return converted


def _serialize_values(data: dict[str, Any]) -> list[Any]:
    """Convert Python values into SQLite-storable values, preserving key order."""
    values = []
    for val in data.values():
        if isinstance(val, datetime):
            values.append(val.isoformat())
        elif isinstance(val, dict | list):
            values.append(json.dumps(val))
        else:
            values.append(val)
    return values


def _row_to_record(cursor: aiosqlite.Cursor, row: Any) -> dict[str, Any]:  # noqa: ANN401
    columns = [description[0] for description in cursor.description]
    return _convert_record_ids(dict(zip(columns, row, strict=True)))


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


def _build_where(filters: dict[str, Any] | None) -> tuple[str, list[Any]]:
    """Translate equality filters into a WHERE clause and parameter list."""
    if not filters:
        return "", []

    for field in filters:
        _validate_identifier(field, kind="field")

    conditions = " AND ".join(f"{field} = ?" for field in filters)
    return f"WHERE {conditions}", _serialize_values(filters)


def _translate_sqlite_error(e: sqlite3.Error, *, action: str) -> DatabaseError:
    """Map a sqlite3 error onto the store's error hierarchy."""
    if isinstance(e, sqlite3.OperationalError) and "locked" in str(e).lower():
        return TransactionConflictError(f"{action}: {e}")
    if isinstance(e, sqlite3.OperationalError) and "no such table" in str(e):
        return DatabaseError(f"{action}: {e}. Call init_db() first.")
    return DatabaseError(f"{action}: {e}")


_db_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_db_lock = asyncio.Lock()


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop = asyncio.get_running_loop()
    loop_id = id(loop)
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key in _db_connections:
        return _db_connections[cache_key]

    async with _db_lock:
        # Double-check after acquiring lock
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(path), timeout=settings.store_busy_timeout_seconds)
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.execute("PRAGMA journal_mode = WAL")

        _db_connections[cache_key] = conn

        logger.info(
            "Created new SQLite connection",
            extra={"db_path": str(path), "thread_id": thread_id, "loop_id": loop_id},
        )
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the cached SQLite connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop_id = id(asyncio.get_running_loop())
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    async with _db_lock:
        conn = _db_connections.pop(cache_key, None)
        if conn is None:
            return
        try:
            await conn.close()
        except sqlite3.Error as e:
            logger.warning(
                "Error closing SQLite connection",
                extra={"error": str(e), "thread_id": thread_id, "loop_id": loop_id},
            )
            return

    logger.info("Closed SQLite connection", extra={"thread_id": thread_id, "loop_id": loop_id, "db_path": str(path)})


async def init_db(*, db_path: str | None = None) -> None:
    """Initialize the database schema by delegating to schema.init_db()."""
    from chorecycle.core import schema

    await schema.init_db(db_path=db_path)


async def _fetch_one(
    conn: aiosqlite.Connection, *, collection: str, record_id: str
) -> dict[str, Any]:
    query = f"SELECT * FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
    try:
        cursor = await conn.execute(query, (int(record_id),))
    except ValueError as e:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg) from e
    row = await cursor.fetchone()

    if row is None:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    return _row_to_record(cursor, row)


async def _insert(conn: aiosqlite.Connection, *, collection: str, data: dict[str, Any]) -> int:
    for column in data:
        _validate_identifier(column, kind="field")

    columns_str = ", ".join(data.keys())
    placeholders_str = ", ".join("?" for _ in data)
    query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - names are validated
    cursor = await conn.execute(query, _serialize_values(data))
    record_id = cursor.lastrowid
    if record_id is None:
        msg = f"Insert into {collection} did not return a row id"
        raise DatabaseError(msg)
    return record_id


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new record and return it with its assigned id."""
    _validate_identifier(collection)
    try:
        conn = await get_connection()
        record_id = await _insert(conn, collection=collection, data=data)
        await conn.commit()
        result = await _fetch_one(conn, collection=collection, record_id=str(record_id))
    except sqlite3.Error as e:
        logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
        raise _translate_sqlite_error(e, action=f"Failed to create record in {collection}") from e

    logger.info("Created record", extra={"collection": collection, "record_id": record_id})
    return result


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single record by ID, raising RecordNotFoundError if not found."""
    _validate_identifier(collection)
    try:
        conn = await get_connection()
        record = await _fetch_one(conn, collection=collection, record_id=record_id)
    except sqlite3.Error as e:
        logger.error("get_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        raise _translate_sqlite_error(e, action=f"Failed to get record from {collection}") from e

    logger.debug("Retrieved record", extra={"collection": collection, "record_id": record_id})
    return record


async def update_record(*, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Update a record by ID and return the updated record."""
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)

    _validate_identifier(collection)
    for column in data:
        _validate_identifier(column, kind="field")

    try:
        conn = await get_connection()
        set_clause = ", ".join(f"{key} = ?" for key in data)
        values = [*_serialize_values(data), int(record_id)]

        query = f"UPDATE {collection} SET {set_clause} WHERE id = ?"  # noqa: S608 - names are validated
        cursor = await conn.execute(query, values)
        await conn.commit()

        if cursor.rowcount == 0:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        result = await _fetch_one(conn, collection=collection, record_id=record_id)
    except sqlite3.Error as e:
        logger.error("update_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        raise _translate_sqlite_error(e, action=f"Failed to update record in {collection}") from e

    logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
    return result


async def delete_record(*, collection: str, record_id: str) -> None:
    """Delete a record by ID, raising RecordNotFoundError if not found."""
    _validate_identifier(collection)
    try:
        conn = await get_connection()
        query = f"DELETE FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (int(record_id),))
        await conn.commit()
    except sqlite3.Error as e:
        logger.error("delete_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        raise _translate_sqlite_error(e, action=f"Failed to delete record from {collection}") from e

    if cursor.rowcount == 0:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})


async def list_records(
    *,
    collection: str,
    page: int = 1,
    per_page: int = 50,
    filters: dict[str, Any] | None = None,
) -> list[dict[str, Any]]:
    """List records matching all ``filters`` (field equality), in ID order, one page at a time."""
    _validate_identifier(collection)

    where_clause, params = _build_where(filters)
    offset = (page - 1) * per_page

    query = f"SELECT * FROM {collection} {where_clause} ORDER BY id ASC LIMIT ? OFFSET ?"  # noqa: S608 - names are validated
    params.extend([per_page, offset])

    try:
        conn = await get_connection()
        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()
    except sqlite3.Error as e:
        logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
        raise _translate_sqlite_error(e, action=f"Failed to list records from {collection}") from e

    records = [_row_to_record(cursor, row) for row in rows]
    logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
    return records


class Transaction:
    """Operations available inside a ``transaction()`` block.

    All reads and writes go through one connection holding the database write
    lock, so nothing is visible to other readers until the block commits.
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def get_record(self, *, collection: str, record_id: str) -> dict[str, Any]:
        """Read a record as of this transaction."""
        _validate_identifier(collection)
        return await _fetch_one(self._conn, collection=collection, record_id=record_id)

    async def create_record(self, *, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a record; it becomes visible to others only on commit."""
        _validate_identifier(collection)
        record_id = await _insert(self._conn, collection=collection, data=data)
        return await _fetch_one(self._conn, collection=collection, record_id=str(record_id))

    async def update_record(
        self,
        *,
        collection: str,
        record_id: str,
        data: dict[str, Any],
        only_if_unset: str | None = None,
    ) -> None:
        """Update a record.

        Args:
            collection: Collection name
            record_id: Record ID
            data: Fields to set
            only_if_unset: Apply the update only while this boolean field is not yet true

        Raises:
            RecordNotFoundError: If the record does not exist
            TransactionConflictError: If ``only_if_unset`` was already true
        """
        if not data:
            msg = "Empty update payload"
            raise ValueError(msg)

        _validate_identifier(collection)
        for column in data:
            _validate_identifier(column, kind="field")

        set_clause = ", ".join(f"{key} = ?" for key in data)
        values = [*_serialize_values(data), int(record_id)]
        query = f"UPDATE {collection} SET {set_clause} WHERE id = ?"  # noqa: S608 - names are validated
        if only_if_unset:
            _validate_identifier(only_if_unset, kind="field")
            query += f" AND ({only_if_unset} IS NULL OR {only_if_unset} = 0)"

        cursor = await self._conn.execute(query, values)
        if cursor.rowcount == 0:
            # Raises RecordNotFoundError when the row is missing
            await _fetch_one(self._conn, collection=collection, record_id=record_id)
            msg = f"Conditional update lost: {collection}/{record_id} already has {only_if_unset} set"
            raise TransactionConflictError(msg)

    async def delete_record(self, *, collection: str, record_id: str) -> None:
        """Delete a record; raises RecordNotFoundError if it does not exist."""
        _validate_identifier(collection)
        query = f"DELETE FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await self._conn.execute(query, (int(record_id),))
        if cursor.rowcount == 0:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)


@asynccontextmanager
async def transaction(*, db_path: str | None = None) -> AsyncIterator[Transaction]:
    """Run a block of reads and writes atomically.

    Opens a dedicated connection and takes the write lock up front with
    ``BEGIN IMMEDIATE``, which serializes concurrent writers. The block commits
    when it exits normally and rolls back when it raises. Failing to obtain the
    lock within the busy timeout raises TransactionConflictError.

    Usage:
        async with db_client.transaction() as tx:
            record = await tx.get_record(collection="tasks", record_id=task_id)
            ...
    """
    path = get_db_path(db_path)
    try:
        conn = await aiosqlite.connect(
            str(path),
            timeout=settings.store_busy_timeout_seconds,
            isolation_level=None,
        )
    except sqlite3.Error as e:
        raise _translate_sqlite_error(e, action="Failed to open transaction connection") from e

    try:
        try:
            await conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            raise _translate_sqlite_error(e, action="Failed to begin transaction") from e

        try:
            yield Transaction(conn)
        except BaseException:
            await conn.rollback()
            raise

        try:
            await conn.commit()
        except sqlite3.Error as e:
            await conn.rollback()
            raise _translate_sqlite_error(e, action="Failed to commit transaction") from e
    except sqlite3.Error as e:
        logger.error("transaction_failed", extra={"db_path": str(path), "error": str(e)})
        raise _translate_sqlite_error(e, action="Transaction failed") from e
    finally:
        await conn.close()
