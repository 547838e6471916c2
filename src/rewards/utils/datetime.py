"""Date-time helpers."""

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime, matching stored columns."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalise an aware or naive timestamp to naive UTC."""

    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def is_older_than(timestamp: datetime, days: int, now: datetime | None = None) -> bool:
    """Return True when ``timestamp`` lies strictly more than ``days`` before ``now``."""

    current = to_naive_utc(now) if now else utcnow()
    return current - to_naive_utc(timestamp) > timedelta(days=days)
