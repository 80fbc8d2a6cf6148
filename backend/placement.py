"""
Placement of appointments into calendar cells.

Month view keys appointments by the local date of their start. Week and day
views key them by (date, hour, quarter) of their start and leave out anything
starting outside the grid hours. Appointments spanning several days are only
placed at their start. All functions here are pure.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, NamedTuple

from .appointment import Appointment
from .date_range import ViewMode
from .time_slots import slot_for, QUARTERS


class SlotKey(NamedTuple):
    day: date
    hour: int
    quarter: int


@dataclass(frozen=True)
class Placement:
    """
    Result of placing an appointment list for one view mode.

    cells maps a date (month) or a SlotKey (week/day) to appointments in
    ascending start order. hidden_count counts appointments that fall outside
    the week/day grid hours.
    """
    view_mode: ViewMode
    cells: dict = field(default_factory=dict)
    hidden_count: int = 0

    def get(self, key) -> list[Appointment]:
        return self.cells.get(key, [])

    def __len__(self) -> int:
        return sum(len(v) for v in self.cells.values())


def _sorted_by_start(appointments: Iterable[Appointment]) -> list[Appointment]:
    # sorted() is stable, so equal starts keep their input order
    return sorted(appointments, key=lambda a: a.start)


def place(appointments: Iterable[Appointment], view_mode: ViewMode) -> Placement:
    """Bucket appointments for the given view mode."""
    cells: dict = {}
    hidden = 0
    for appointment in _sorted_by_start(appointments):
        local_start = appointment.local_start
        if view_mode == ViewMode.MONTH:
            cells.setdefault(local_start.date(), []).append(appointment)
            continue
        slot = slot_for(local_start)
        if slot is None:
            hidden += 1
            continue
        hour, quarter = slot
        cells.setdefault(SlotKey(local_start.date(), hour, quarter), []).append(appointment)
    return Placement(view_mode=view_mode, cells=cells, hidden_count=hidden)


def highlighted_dates(appointments: Iterable[Appointment]) -> frozenset:
    """Local dates on which at least one appointment starts."""
    return frozenset(a.local_date for a in appointments)


def appointments_for_day(placement: Placement, day: date) -> list[Appointment]:
    """All appointments placed on a day, in start order."""
    if placement.view_mode == ViewMode.MONTH:
        return list(placement.get(day))
    result = []
    for key in sorted(k for k in placement.cells if k.day == day):
        result.extend(placement.cells[key])
    return result


def appointments_for_hour(placement: Placement, day: date, hour: int) -> list[Appointment]:
    """Appointments in an hour row, quarter by quarter."""
    result = []
    for quarter in QUARTERS:
        result.extend(placement.get(SlotKey(day, hour, quarter)))
    return result
