"""Datetime utility functions for timezone handling."""
from datetime import datetime, UTC
from typing import Optional


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware in UTC.

    SQLite hands datetimes back timezone-naive; those are treated as UTC.
    Aware datetimes in other zones are converted.

    Example:
        >>> naive_dt = datetime(2025, 1, 1, 12, 0, 0)
        >>> ensure_utc(naive_dt).tzinfo == UTC
        True

        >>> ensure_utc(None) is None
        True
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def seconds_between(earlier: Optional[datetime], later: datetime) -> Optional[float]:
    """Seconds elapsed from ``earlier`` to ``later``, or None when ``earlier`` is missing."""
    if earlier is None:
        return None
    return (ensure_utc(later) - ensure_utc(earlier)).total_seconds()
