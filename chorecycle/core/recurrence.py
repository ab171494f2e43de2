"""Recurrence date arithmetic for repeating tasks."""

from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from chorecycle.core.errors import InvalidDateError
from chorecycle.domain.task import TaskFrequency


def next_due_date(current: datetime, frequency: TaskFrequency | str, interval: int) -> datetime:
    """Calculate the due date of the next occurrence.

    Monthly steps clamp to the last day of shorter months, so Jan 31 + 1 month
    is Feb 29 in a leap year. Time of day is preserved for every frequency.

    Args:
        current: Due date of the current occurrence
        frequency: daily, weekly or monthly; any other value returns ``current`` unchanged
        interval: Number of frequency units to advance (>= 1)

    Returns:
        The next due date

    Raises:
        InvalidDateError: If current is not a datetime
        ValueError: If interval is not a positive integer
    """
    if not isinstance(current, datetime):
        msg = f"Due date must be a datetime, got {type(current).__name__}"
        raise InvalidDateError(msg)

    if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
        msg = f"Recurrence interval must be a positive integer, got {interval!r}"
        raise ValueError(msg)

    if frequency == TaskFrequency.DAILY:
        return current + timedelta(days=interval)
    if frequency == TaskFrequency.WEEKLY:
        return current + timedelta(days=7 * interval)
    if frequency == TaskFrequency.MONTHLY:
        return current + relativedelta(months=interval)

    return current
