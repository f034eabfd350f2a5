"""Time utilities for timezone-aware UTC datetimes and local calendar dates."""

from datetime import UTC, date, datetime
from typing import Optional
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime for defaults and onupdate hooks."""
    return datetime.now(UTC)


def local_today() -> date:
    """Server-local calendar date, used for due-date comparisons and export filenames."""
    return date.today()


def today_in(timezone_name: str, now: Optional[datetime] = None) -> date:
    """Calendar date in ``timezone_name``; the scheduled jobs use the scheduler's zone."""
    return (now or utc_now()).astimezone(ZoneInfo(timezone_name)).date()
