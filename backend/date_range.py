"""
Visible date ranges and navigation for the month, week and day views.

Weeks start on Sunday. Ranges are closed: both start and end dates are part
of the range and are sent as-is to the appointments endpoint.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
import calendar

from .config import LocalizationConfig
from .timezone_utils import now_local


class ViewMode(Enum):
    """Calendar view resolution."""
    MONTH = "month"
    WEEK = "week"
    DAY = "day"


class Direction(Enum):
    PREVIOUS = -1
    NEXT = 1


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar dates."""
    start: date
    end: date

    def days(self) -> list[date]:
        return [self.start + timedelta(days=i) for i in range((self.end - self.start).days + 1)]

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end

    def __len__(self) -> int:
        return (self.end - self.start).days + 1


def week_start(d: date) -> date:
    """The Sunday on or before d."""
    # date.weekday(): Monday=0 ... Sunday=6
    return d - timedelta(days=(d.weekday() + 1) % 7)


def week_end(d: date) -> date:
    """The Saturday on or after d."""
    return week_start(d) + timedelta(days=6)


def month_bounds(d: date) -> tuple[date, date]:
    """First and last day of d's month."""
    last_day = calendar.monthrange(d.year, d.month)[1]
    return d.replace(day=1), d.replace(day=last_day)


def date_range(reference_date: date, view_mode: ViewMode) -> DateRange:
    """Visible range for a reference date in the given view."""
    if view_mode == ViewMode.MONTH:
        first, last = month_bounds(reference_date)
        return DateRange(week_start(first), week_end(last))
    elif view_mode == ViewMode.WEEK:
        start = week_start(reference_date)
        return DateRange(start, start + timedelta(days=6))
    else:  # DAY
        return DateRange(reference_date, reference_date)


def add_months(d: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    month_index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def navigate(reference_date: date, view_mode: ViewMode, direction: Direction) -> date:
    """Move the reference date one period back or forward."""
    step = direction.value
    if view_mode == ViewMode.MONTH:
        return add_months(reference_date, step)
    elif view_mode == ViewMode.WEEK:
        return reference_date + timedelta(days=7 * step)
    else:  # DAY
        return reference_date + timedelta(days=step)


def today() -> date:
    """Current date in the configured timezone."""
    return now_local().date()


def month_grid(reference_date: date) -> list[list[date]]:
    """Rows of seven dates covering the month range of reference_date."""
    days = date_range(reference_date, ViewMode.MONTH).days()
    return [days[i:i + 7] for i in range(0, len(days), 7)]


def header_title(reference_date: date, view_mode: ViewMode,
                 localization: LocalizationConfig = None) -> str:
    """
    Toolbar title for the current view.

    Month: "March 2024"; Week: "Mar 10 - Mar 16, 2024";
    Day: "Friday, March 15, 2024".
    """
    loc = localization or LocalizationConfig()
    if view_mode == ViewMode.MONTH:
        return f"{loc.get_month_name(reference_date.month)} {reference_date.year}"
    elif view_mode == ViewMode.WEEK:
        rng = date_range(reference_date, ViewMode.WEEK)
        start_text = f"{loc.get_short_month_name(rng.start.month)} {rng.start.day}"
        end_text = f"{loc.get_short_month_name(rng.end.month)} {rng.end.day}"
        return f"{start_text} - {end_text}, {rng.end.year}"
    else:  # DAY
        return (
            f"{loc.get_long_day_name(reference_date.weekday())}, "
            f"{loc.get_month_name(reference_date.month)} {reference_date.day}, {reference_date.year}"
        )
