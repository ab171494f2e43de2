"""Error types and classification for store and lifecycle operations."""

import sqlite3
from enum import Enum


class DatabaseError(RuntimeError):
    """Raised when a document store operation fails."""


class RecordNotFoundError(DatabaseError):
    """Raised when a record does not exist in a collection."""


class TransactionConflictError(DatabaseError):
    """Raised when a transaction loses a write race or cannot obtain the write lock."""


class InvalidDateError(ValueError):
    """Raised when a value cannot be interpreted as a date."""


class ErrorCategory(Enum):
    """Categories of errors that can occur during store operations."""

    TRANSIENT = "transient"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    UNKNOWN = "unknown"


_TRANSIENT_PHRASES = (
    "timeout",
    "timed out",
    "connection",
    "unavailable",
    "disk i/o error",
)

_CONFLICT_PHRASES = (
    "database is locked",
    "database table is locked",
    "conflict",
)


def classify_store_error(exception: BaseException) -> ErrorCategory:
    """Classify an exception raised by a store operation.

    Args:
        exception: The exception raised by the store

    Returns:
        The ErrorCategory the exception belongs to
    """
    if isinstance(exception, TransactionConflictError):
        return ErrorCategory.CONFLICT
    if isinstance(exception, RecordNotFoundError):
        return ErrorCategory.NOT_FOUND
    if isinstance(exception, InvalidDateError | ValueError | TypeError):
        return ErrorCategory.INVALID_INPUT
    if isinstance(exception, TimeoutError | ConnectionError):
        return ErrorCategory.TRANSIENT

    error_str = str(exception).lower()
    if any(phrase in error_str for phrase in _CONFLICT_PHRASES):
        return ErrorCategory.CONFLICT
    if isinstance(exception, sqlite3.OperationalError | DatabaseError) and any(
        phrase in error_str for phrase in _TRANSIENT_PHRASES
    ):
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN


def is_retryable(exception: BaseException) -> bool:
    """Return True if retrying the operation that raised this exception may succeed."""
    return classify_store_error(exception) in {ErrorCategory.TRANSIENT, ErrorCategory.CONFLICT}
