"""Date normalization for values arriving from the document store.

Task dates may arrive as native datetimes, plain dates, ISO-8601 strings,
timestamp wrapper objects or ``{"seconds": ..., "nanoseconds": ...}`` mappings.
Everything is converted here, once, into a naive datetime expressed in the
household's local time; the lifecycle rules only ever see that type.
"""

from collections.abc import Mapping
from datetime import UTC, date, datetime, time, timedelta
from typing import Any
from zoneinfo import ZoneInfo

from dateutil import parser as dateutil_parser

from chorecycle.core.config import settings
from chorecycle.core.errors import InvalidDateError


_TIMESTAMP_METHODS = ("to_datetime", "ToDatetime", "toDate")


def household_tz() -> ZoneInfo:
    """Return the configured household timezone."""
    return ZoneInfo(settings.household_timezone)


def _to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(household_tz()).replace(tzinfo=None)


def _from_seconds(seconds: Any, nanoseconds: Any = 0) -> datetime:
    try:
        instant = datetime.fromtimestamp(float(seconds), tz=UTC)
        instant += timedelta(microseconds=int(nanoseconds) // 1000)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        msg = f"Invalid timestamp: seconds={seconds!r} nanoseconds={nanoseconds!r}"
        raise InvalidDateError(msg) from e
    return _to_local_naive(instant)


def to_datetime(value: Any) -> datetime:  # noqa: PLR0911
    """Normalize a loosely-typed date value into a naive household-local datetime.

    Args:
        value: datetime, date, ISO-8601 string, timestamp wrapper or seconds mapping

    Returns:
        Naive datetime in the household timezone

    Raises:
        InvalidDateError: If the value cannot be interpreted as a date
    """
    if isinstance(value, datetime):
        return _to_local_naive(value)

    if isinstance(value, date):
        return datetime.combine(value, time.min)

    if isinstance(value, str):
        try:
            return _to_local_naive(dateutil_parser.isoparse(value.strip()))
        except (ValueError, OverflowError) as e:
            msg = f"Invalid ISO date string: {value!r}"
            raise InvalidDateError(msg) from e

    if isinstance(value, Mapping):
        if "seconds" in value:
            return _from_seconds(value["seconds"], value.get("nanoseconds", 0))
        if "_seconds" in value:
            return _from_seconds(value["_seconds"], value.get("_nanoseconds", 0))

    for method_name in _TIMESTAMP_METHODS:
        method = getattr(value, method_name, None)
        if callable(method):
            converted = method()
            if not isinstance(converted, datetime):
                msg = f"{type(value).__name__}.{method_name}() returned {type(converted).__name__}, not datetime"
                raise InvalidDateError(msg)
            return _to_local_naive(converted)

    msg = f"Cannot interpret {type(value).__name__} value as a date: {value!r}"
    raise InvalidDateError(msg)


def local_now() -> datetime:
    """Current time as a naive datetime in the household timezone."""
    return datetime.now(household_tz()).replace(tzinfo=None)


def start_of_day(value: datetime) -> datetime:
    """Midnight at the start of the calendar day containing ``value``."""
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def resolve_now(now: Any = None) -> datetime:  # noqa: ANN401
    """Normalize a caller-supplied clock value, defaulting to household-local now."""
    if now is None:
        return local_now()
    return to_datetime(now)
