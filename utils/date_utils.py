"""
Recipedium Date Utilities
Helper functions for UTC timestamps and day-bucketed reporting windows
"""

from datetime import datetime, date, timedelta, timezone
from typing import List, Optional


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes read back from backends without tz support

    SQLite drops tzinfo on round trip; every timestamp we write is UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_ago(days: int, now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) - timedelta(days=days)


def last_n_dates(n: int, today: Optional[date] = None) -> List[date]:
    """
    Get the last n calendar dates ending today, oldest first

    Args:
        n: Number of days
        today: Reference date (defaults to the current UTC date)
    """
    if today is None:
        today = utcnow().date()
    return [today - timedelta(days=n - 1 - i) for i in range(n)]


def parse_datetime(value: str) -> datetime:
    """
    Parse an ISO 8601 date or datetime string into an aware UTC datetime

    Raises:
        ValueError: If the string is not ISO 8601
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return ensure_utc(parsed)
