"""Datetime utilities for common operations."""

from datetime import datetime, timezone
from typing import Optional
import math
from zoneinfo import ZoneInfo


def now() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to an aware UTC value.

    Naive datetimes are assumed to already be UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def minutes_until(target: datetime, reference: datetime) -> int:
    """
    Whole minutes from ``reference`` until ``target``, rounded up.

    Args:
        target: Future datetime
        reference: Current datetime

    Returns:
        Number of minutes, never negative
    """
    seconds = (ensure_utc(target) - ensure_utc(reference)).total_seconds()
    return max(0, math.ceil(seconds / 60))


def isoformat(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 string for an optional datetime, in UTC."""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()


def format_for_humans(dt: datetime, tz_name: Optional[str] = None) -> str:
    """
    Format a datetime for emails and activity notes.

    Args:
        dt: Datetime to format
        tz_name: IANA timezone of the reader, UTC when absent or unknown
    """
    value = ensure_utc(dt)
    label = "UTC"
    if tz_name:
        try:
            value = value.astimezone(ZoneInfo(tz_name))
            label = tz_name
        except (KeyError, ValueError):
            pass
    return f"{value.strftime('%A, %B %d, %Y at %H:%M')} ({label})"
