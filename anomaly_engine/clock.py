"""
Time helpers.

All timestamps inside the engine are timezone-aware UTC datetimes. Naive
datetimes supplied by callers are interpreted as UTC.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(timestamp: Optional[datetime]) -> datetime:
    """
    Normalize a timestamp to aware UTC, defaulting to now.

    Args:
        timestamp: Timestamp to normalize, or None for the current time.

    Returns:
        datetime: Aware UTC datetime.
    """
    if timestamp is None:
        return utc_now()
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)
