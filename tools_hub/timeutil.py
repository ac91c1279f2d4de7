"""Timestamp helpers shared by the store and the lifecycle rules."""
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite drops tzinfo) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def isoformat_now() -> str:
    """ISO-8601 timestamp with millisecond precision and a Z suffix."""
    return utcnow().isoformat(timespec="milliseconds").replace("+00:00", "Z")
