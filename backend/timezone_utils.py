"""
Timezone utilities for CRM Calendar.

The API delivers appointment timestamps as ISO 8601 strings with an offset.
Everything placed on the calendar grid is converted to the configured local
timezone first; values typed into the quick-create form are naive local times
and are converted to UTC before they are sent.
"""

from datetime import datetime
from typing import Optional
import time as _time
import pytz


# Default timezone - can be overridden by config
_local_timezone_name: str = "UTC"


def set_timezone(timezone_name: str):
    """Set the local timezone for the application."""
    global _local_timezone_name
    _local_timezone_name = timezone_name


def get_local_timezone():
    """
    Get the local timezone as a pytz timezone object.

    Falls back to a fixed offset built from the system clock when the
    configured name is unknown to pytz.
    """
    try:
        return pytz.timezone(_local_timezone_name)
    except pytz.UnknownTimeZoneError:
        is_dst = _time.localtime().tm_isdst
        if is_dst:
            offset_seconds = -_time.altzone
        else:
            offset_seconds = -_time.timezone
        return pytz.FixedOffset(offset_seconds // 60)


def now_local() -> datetime:
    """Current time as a naive datetime in the local timezone."""
    return datetime.now(pytz.UTC).astimezone(get_local_timezone()).replace(tzinfo=None)


def parse_timestamp(value) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp from the API.

    Returns a timezone-aware datetime, or None if the value is missing or
    cannot be parsed. Naive values are taken to be UTC.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return dt


def to_local_datetime(dt: datetime) -> datetime:
    """
    Convert an aware datetime to the local timezone.

    Naive input is returned unchanged.
    """
    if dt.tzinfo is not None:
        return dt.astimezone(get_local_timezone())
    return dt


def local_naive_to_utc(dt: datetime) -> datetime:
    """Convert a naive local datetime to an aware UTC datetime."""
    if dt.tzinfo is None:
        local_dt = get_local_timezone().localize(dt)
        return local_dt.astimezone(pytz.UTC)
    return dt.astimezone(pytz.UTC)
