"""
UTC helpers.

Timestamps are written timezone-aware but SQLite hands them back naive, so
anything read from the database goes through `ensure_utc` before comparing.
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Treat naive datetimes as UTC.

    Args:
        dt: Datetime from the database or a client

    Returns:
        Timezone-aware datetime in UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def start_of_day(now: datetime | None = None) -> datetime:
    now = now or utc_now()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def days_ago(days: int, now: datetime | None = None) -> datetime:
    return (now or utc_now()) - timedelta(days=days)


def format_iso8601(dt: datetime | None) -> str | None:
    """Serialize as ISO 8601 with an explicit Z suffix."""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")
