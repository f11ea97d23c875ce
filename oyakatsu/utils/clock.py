"""UTC time helpers.

Datetimes are written timezone-aware. SQLite hands them back without
tzinfo, so values read from the database go through as_utc before any
Python-side comparison or formatting.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat(value: datetime | None) -> str | None:
    """Render a stored UTC datetime as an ISO-8601 string with offset."""
    if value is None:
        return None
    return as_utc(value).isoformat()
