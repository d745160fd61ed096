"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """
    Normalize a datetime to timezone-aware UTC.

    Naive values are treated as UTC (databases without timezone
    support return them that way).

    Args:
        value: Datetime to normalize

    Returns:
        UTC datetime, or None if value is None
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
