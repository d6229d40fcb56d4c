"""General utility functions."""
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """Convert datetime to UTC timezone."""
    if dt.tzinfo is None:
        # Assume UTC if no timezone (SQLite drops tzinfo on the way back)
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def has_ended(end_date: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """
    Check whether an optional end date lies in the past.

    Args:
        end_date: Deadline (timezone-aware or naive, assumed UTC if naive), or None
        now: Reference time for testing (defaults to current UTC time)

    Returns:
        bool: True if an end date is set and has passed
    """
    if end_date is None:
        return False

    now = to_utc(now) if now is not None else utcnow()
    return to_utc(end_date) < now
