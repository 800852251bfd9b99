"""
Datetime helpers for timezone-aware timestamps.

All attempt timestamps are stored and compared in UTC.
"""
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

# Injectable "now" provider. The engine receives one of these so time-based
# behavior (timer, expiry, stats windows) can be driven from tests.
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """
    Return the current datetime in UTC timezone.

    Returns:
        A timezone-aware datetime object representing the current time in UTC.

    Example:
        >>> from quiz_service.core.datetime_utils import utc_now
        >>> utc_now().tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def ensure_timezone_aware(dt: Optional[datetime]) -> datetime:
    """
    Ensure a datetime object is timezone-aware (UTC).
    SQLite returns timezone-naive datetimes even when stored as timezone-aware.

    Args:
        dt: The datetime to normalize

    Returns:
        A timezone-aware datetime object in UTC

    Raises:
        ValueError: If dt is None
    """
    if dt is None:
        raise ValueError("datetime cannot be None")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def optional_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """Like ensure_timezone_aware, but passes None through."""
    if dt is None:
        return None
    return ensure_timezone_aware(dt)


def period_start(now: datetime, days: int) -> datetime:
    """Start of a trailing window of ``days`` days ending at ``now``."""
    return now - timedelta(days=days)
