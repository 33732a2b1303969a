"""
Session duration math and the human-readable "1h 2m 3s" format.

Timestamps travel and are stored as aware UTC datetimes. SQLite hands them
back without an offset, so values read from the database are treated as UTC.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from errors import ValidationError

ONE_SECOND = timedelta(seconds=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> datetime:
    """Parse an ISO-8601 string (or datetime) into an aware UTC datetime."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError("invalid date format") from None
    else:
        raise ValidationError("invalid date format")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def duration_seconds(start, end) -> int:
    """Whole seconds between start and end, clamped at zero."""
    start_dt = parse_timestamp(start)
    end_dt = parse_timestamp(end)
    return max(0, (end_dt - start_dt) // ONE_SECOND)


def seconds_to_string(sec: int | None) -> str:
    if not sec:
        return "0s"
    sec = int(sec)
    h = sec // 3600
    m = (sec % 3600) // 60
    s = sec % 60
    return f"{h}h {m}m {s}s"


def from_storage(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_storage(dt: datetime | None) -> datetime | None:
    """Normalize to aware UTC; the datetime column rejects naive values."""
    return from_storage(dt)


def isoformat(dt: datetime | None) -> str | None:
    dt = from_storage(dt)
    return dt.isoformat() if dt is not None else None
