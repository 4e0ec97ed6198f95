"""Datetime helpers.

Appointment times are stored as naive UTC. Naive datetimes received from
callers are treated as UTC as well.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Return an aware UTC datetime."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_db(dt: datetime) -> datetime:
    """Naive UTC, the storage representation."""
    return as_utc(dt).replace(tzinfo=None)
