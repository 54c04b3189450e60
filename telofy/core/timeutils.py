# core/timeutils.py
import logging
from datetime import datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from telofy.core.config import settings

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes (SQLite round-trips) are stored as UTC wall time."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_valid_timezone(name: str) -> bool:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def user_timezone(name: Optional[str]) -> tzinfo:
    """Resolve a user's IANA zone, falling back to the configured default."""
    for candidate in (name, settings.DEFAULT_TIMEZONE):
        if not candidate:
            continue
        try:
            return ZoneInfo(candidate)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r, falling back", candidate)
    return timezone.utc


def not_in_future(value: Optional[datetime]) -> Optional[datetime]:
    """UTC-normalize an event time and reject one that has not happened yet."""
    value = as_utc(value)
    if value is not None and value > utcnow():
        raise ValueError("Event time cannot be in the future")
    return value
