"""Time helpers. Every datetime the app stores or compares is timezone-aware UTC."""

from datetime import UTC, datetime
from typing import Optional


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime for defaults and onupdate hooks."""
    return datetime.now(UTC)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat a naive datetime as UTC; SQLite drops tzinfo on the way back out."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
