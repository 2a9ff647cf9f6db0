"""
Datetime utilities for consistent timezone handling across the client.

Backend payloads mix date-only strings ("2024-01-01"), naive timestamps and
"Z"-suffixed ISO-8601 timestamps. Everything is normalized to timezone-aware
UTC datetimes for comparison.
"""

import logging
from datetime import datetime, timezone, date
from typing import Optional

logger = logging.getLogger(__name__)

# Sort key for records whose date is missing or unparseable
EARLIEST_DATETIME = datetime.min.replace(tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Get the current timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is timezone-aware UTC.

    Naive datetimes are assumed to already be UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso_datetime(value: object) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime string into an aware UTC datetime.

    Args:
        value: String such as "2024-01-01", "2024-01-01T10:00:00" or
            "2024-01-01T10:00:00.000Z". datetime and date objects are accepted.

    Returns:
        Aware UTC datetime, or None if the value is empty or unparseable
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        pass
    try:
        parsed_date = date.fromisoformat(text[:10])
        return datetime(parsed_date.year, parsed_date.month, parsed_date.day, tzinfo=timezone.utc)
    except ValueError:
        logger.debug(f"Unparseable date value: {value!r}")
        return None


def to_iso_string(dt: datetime) -> str:
    """Format a datetime as an ISO-8601 UTC string with millisecond precision."""
    aware = ensure_utc(dt)
    assert aware is not None
    return aware.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def timestamp_id(dt: Optional[datetime] = None) -> str:
    """Millisecond epoch timestamp as a string, used as a client-side record id."""
    moment = ensure_utc(dt) or utc_now()
    return str(int(moment.timestamp() * 1000))
