"""
Fixed bucket geometry for the week and day grids.

Rows cover the hours 7 AM through 8 PM; each row is split into four
15-minute quarters. A start time belongs to the grid when it falls in
[07:00, 21:00).
"""

from dataclasses import dataclass
from datetime import datetime, date
from typing import Optional


FIRST_HOUR = 7
LAST_HOUR = 20
HOURS = tuple(range(FIRST_HOUR, LAST_HOUR + 1))
QUARTERS = (0, 15, 30, 45)


def quarter_bucket(minute: int) -> int:
    """Quarter bucket a minute falls into (0, 15, 30 or 45)."""
    return (minute // 15) * 15


def is_grid_hour(hour: int) -> bool:
    return FIRST_HOUR <= hour <= LAST_HOUR


def slot_for(dt: datetime) -> Optional[tuple[int, int]]:
    """(hour, quarter) for a local datetime, or None when outside the grid."""
    if not is_grid_hour(dt.hour):
        return None
    return dt.hour, quarter_bucket(dt.minute)


def format_hour(hour: int) -> str:
    """12-hour label: 7 -> '7 AM', 12 -> '12 PM', 13 -> '1 PM'."""
    suffix = "AM" if hour < 12 else "PM"
    display = hour % 12 or 12
    return f"{display} {suffix}"


def format_slot(hour: int, quarter: int) -> str:
    """Hover hint text for a slot, e.g. '9am:15'."""
    suffix = "am" if hour < 12 else "pm"
    display = hour % 12 or 12
    return f"{display}{suffix}:{quarter:02d}"


@dataclass(frozen=True)
class TimeMarker:
    """Position of the current-time line inside the day grid."""
    hour: int
    fraction: float  # 0.0 at the top of the hour row, approaching 1.0 at its bottom


def current_time_marker(day: date, now: datetime) -> Optional[TimeMarker]:
    """
    Marker for the current time in the day view.

    Only produced when day is today and the current hour is a grid row.
    """
    if day != now.date() or not is_grid_hour(now.hour):
        return None
    return TimeMarker(hour=now.hour, fraction=now.minute / 60)


def is_past_hour(day: date, hour: int, now: datetime) -> bool:
    """True when the whole hour row lies before now."""
    if day != now.date():
        return day < now.date()
    return hour < now.hour
