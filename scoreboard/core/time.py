"""Time helpers shared by models and storage backends."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the offset on read)."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat_z(value: Optional[datetime]) -> Optional[str]:
    """Serialise a datetime as ISO-8601 with a trailing ``Z``."""

    if value is None:
        return None
    return as_utc(value).replace(tzinfo=None).isoformat() + "Z"


def parse_iso(raw: str) -> datetime:
    """Parse the ISO-8601 strings written by :func:`isoformat_z`."""

    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(raw))


__all__ = ["as_utc", "isoformat_z", "parse_iso", "utcnow"]
