"""
Default time ranges for appointments created by clicking the grid.

Month and week clicks book one hour; day view clicks book 30 minutes
starting at the clicked quarter.
"""

from datetime import datetime, date, time as dt_time, timedelta
from typing import Optional

from .date_range import ViewMode


MONTH_DEFAULT_HOUR = 9
HOUR_DURATION = timedelta(hours=1)
DAY_DURATION = timedelta(minutes=30)


def default_time_range(
    view_mode: ViewMode,
    day: date,
    hour: Optional[int] = None,
    quarter: Optional[int] = None
) -> tuple[datetime, datetime]:
    """
    Naive local (start, end) for a click on a grid cell.

    Month ignores hour/quarter. Week uses the hour and ignores the quarter.
    Day uses both; a missing quarter counts as 0.
    """
    if view_mode == ViewMode.MONTH or hour is None:
        start = datetime.combine(day, dt_time(hour=MONTH_DEFAULT_HOUR))
        return start, start + HOUR_DURATION
    if view_mode == ViewMode.WEEK:
        start = datetime.combine(day, dt_time(hour=hour))
        return start, start + HOUR_DURATION
    start = datetime.combine(day, dt_time(hour=hour, minute=quarter or 0))
    return start, start + DAY_DURATION


def new_appointment_range(now: datetime) -> tuple[datetime, datetime]:
    """Default range for the toolbar button: next full hour, one hour long."""
    start = now.replace(minute=0, second=0, microsecond=0)
    if now.minute or now.second or now.microsecond:
        start += timedelta(hours=1)
    return start, start + HOUR_DURATION
