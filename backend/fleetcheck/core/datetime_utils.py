"""
Datetime utility functions for handling timezone-aware datetimes.
"""
from datetime import date, datetime, timezone
from typing import Any, Optional


def utc_now() -> datetime:
    """
    Return the current datetime in UTC timezone.

    This utility provides a consistent, mockable way to get the current UTC time
    throughout the codebase. Using this function instead of datetime.now(timezone.utc)
    directly enables easier testing through mocking.

    Returns:
        A timezone-aware datetime object representing the current time in UTC.

    Example:
        >>> from fleetcheck.core.datetime_utils import utc_now
        >>> current_time = utc_now()
        >>> current_time.tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def ensure_timezone_aware(dt: Optional[datetime]) -> datetime:
    """
    Ensure a datetime object is timezone-aware (UTC).
    SQLite may return timezone-naive datetimes even when stored as timezone-aware.

    Args:
        dt: The datetime to ensure is timezone-aware

    Returns:
        A timezone-aware datetime object in UTC

    Raises:
        ValueError: If dt is None
    """
    if dt is None:
        raise ValueError("datetime cannot be None")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a stored timestamp into a timezone-aware datetime.

    Accepts datetime and date objects as well as ISO-8601 strings, including
    bare dates ("2024-01-01") and a trailing "Z" designator. Naive values are
    taken to be UTC.

    Args:
        value: Raw value read from a data source

    Returns:
        A timezone-aware datetime, or None when value is None or blank

    Raises:
        ValueError: If value is present but cannot be interpreted as a timestamp
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_timezone_aware(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return ensure_timezone_aware(datetime.fromisoformat(text))
    raise ValueError(f"Unsupported timestamp value: {value!r}")
