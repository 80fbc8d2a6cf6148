"""
Appointment records as delivered by the CRM appointments API.

The calendar only reads appointments; creation goes through
QuickCreatePayload and the API client, after which the range is refetched.
"""

from dataclasses import dataclass
from datetime import datetime, date
from typing import Optional

from .timezone_utils import parse_timestamp, to_local_datetime


DEFAULT_APPOINTMENT_COLOR = "#3b82f6"
DEFAULT_CREATE_COLOR = "#2563eb"
DEFAULT_LOCATION = "office"

STATUS_COLORS = {
    "scheduled": "#3b82f6",
    "confirmed": "#10b981",
    "in_progress": "#f59e0b",
    "completed": "#6b7280",
    "cancelled": "#ef4444",
    "no_show": "#f97316",
    "checked_in": "#8b5cf6",
}

STATUS_LABELS = {
    "scheduled": "Scheduled",
    "confirmed": "Confirmed",
    "in_progress": "In Progress",
    "completed": "Completed",
    "cancelled": "Cancelled",
    "no_show": "No Show",
    "checked_in": "Checked In",
}

LOCATION_LABELS = {
    "office": "Office",
    "virtual": "Virtual",
    "client_site": "Client Site",
    "phone": "Phone",
}

RECURRENCE_LABELS = {
    "daily": "daily",
    "weekly": "weekly",
    "monthly": "monthly",
}

# Quick-create palette: (value, name)
APPOINTMENT_COLORS = [
    ("#dc2626", "Tomato"),
    ("#ea580c", "Tangerine"),
    ("#ca8a04", "Banana"),
    ("#16a34a", "Basil"),
    ("#0d9488", "Sage"),
    ("#0891b2", "Peacock"),
    ("#2563eb", "Blueberry"),
    ("#7c3aed", "Lavender"),
    ("#c026d3", "Grape"),
    ("#db2777", "Flamingo"),
    ("#64748b", "Graphite"),
    ("#78716c", "Birch"),
]


class MalformedAppointmentError(ValueError):
    """Raised when an API record cannot be turned into an Appointment."""


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status.replace('_', ' ').title() if status else "")


def location_label(location: str) -> str:
    return LOCATION_LABELS.get(location, location or "")


def _parse_times(data: dict) -> tuple[datetime, datetime]:
    start = parse_timestamp(data.get('start_datetime'))
    end = parse_timestamp(data.get('end_datetime'))
    if start is None or end is None:
        raise MalformedAppointmentError(
            f"Appointment {data.get('id')!r} has an unparseable timestamp"
        )
    if start >= end:
        raise MalformedAppointmentError(
            f"Appointment {data.get('id')!r} ends before it starts"
        )
    return start, end


@dataclass(frozen=True)
class Appointment:
    """
    A calendar appointment.

    start/end are timezone-aware. color is always set: records without one
    get DEFAULT_APPOINTMENT_COLOR.
    """
    id: str
    title: str
    start: datetime
    end: datetime
    status: str = "scheduled"
    assignee_name: str = ""
    contact_name: str = ""
    location: str = ""
    color: str = DEFAULT_APPOINTMENT_COLOR
    recurrence_pattern: str = "none"
    parent_id: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict) -> 'Appointment':
        """
        Build an Appointment from a calendar API record.

        Raises:
            MalformedAppointmentError: if the id or time range is unusable.
        """
        if not isinstance(data, dict) or data.get('id') in (None, ''):
            raise MalformedAppointmentError(f"Appointment record without id: {data!r}")
        start, end = _parse_times(data)
        parent = data.get('parent_appointment')
        return cls(
            id=str(data['id']),
            title=data.get('title') or "",
            start=start,
            end=end,
            status=data.get('status') or "scheduled",
            assignee_name=data.get('assigned_to_name') or "",
            contact_name=data.get('contact_name') or "",
            location=data.get('location') or "",
            color=data.get('color') or DEFAULT_APPOINTMENT_COLOR,
            recurrence_pattern=data.get('recurrence_pattern') or "none",
            parent_id=str(parent) if parent else None,
        )

    @property
    def is_recurring(self) -> bool:
        """True for series masters and for occurrences generated from one."""
        return self.recurrence_pattern != "none" or self.parent_id is not None

    @property
    def local_start(self) -> datetime:
        return to_local_datetime(self.start)

    @property
    def local_end(self) -> datetime:
        return to_local_datetime(self.end)

    @property
    def local_date(self) -> date:
        return self.local_start.date()

    @property
    def status_color(self) -> str:
        return STATUS_COLORS.get(self.status, DEFAULT_APPOINTMENT_COLOR)


@dataclass(frozen=True)
class AppointmentDetail:
    """Full appointment record shown in the detail panel."""
    appointment: Appointment
    description: str = ""
    notes: str = ""
    case_label: str = ""
    recurrence_end_date: Optional[date] = None
    reminder_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: dict) -> 'AppointmentDetail':
        """
        Build a detail record from GET /api/v1/appointments/{id}/.

        Contact, assignee and case arrive as nested objects here rather than
        the flattened names of the calendar endpoint.
        """
        if not isinstance(data, dict) or data.get('id') in (None, ''):
            raise MalformedAppointmentError(f"Appointment record without id: {data!r}")
        start, end = _parse_times(data)

        contact = data.get('contact') or {}
        contact_name = ""
        if isinstance(contact, dict):
            contact_name = f"{contact.get('first_name', '')} {contact.get('last_name', '')}".strip()

        assigned_to = data.get('assigned_to') or {}
        assignee_name = assigned_to.get('full_name', '') if isinstance(assigned_to, dict) else ""

        case = data.get('case') or {}
        case_label = ""
        if isinstance(case, dict) and case:
            case_label = " - ".join(p for p in (case.get('case_number'), case.get('title')) if p)

        recurrence_end = None
        if data.get('recurrence_end_date'):
            try:
                recurrence_end = date.fromisoformat(data['recurrence_end_date'])
            except ValueError:
                recurrence_end = None

        parent = data.get('parent_appointment')
        appointment = Appointment(
            id=str(data['id']),
            title=data.get('title') or "",
            start=start,
            end=end,
            status=data.get('status') or "scheduled",
            assignee_name=assignee_name,
            contact_name=contact_name,
            location=data.get('location') or "",
            color=data.get('color') or DEFAULT_APPOINTMENT_COLOR,
            recurrence_pattern=data.get('recurrence_pattern') or "none",
            parent_id=str(parent) if parent else None,
        )
        return cls(
            appointment=appointment,
            description=data.get('description') or "",
            notes=data.get('notes') or "",
            case_label=case_label,
            recurrence_end_date=recurrence_end,
            reminder_at=parse_timestamp(data.get('reminder_at')),
        )

    @property
    def recurrence_text(self) -> str:
        """Human readable recurrence, e.g. 'Repeats weekly until Apr 30, 2024'."""
        pattern = self.appointment.recurrence_pattern
        if pattern == "none":
            return ""
        text = f"Repeats {RECURRENCE_LABELS.get(pattern, pattern)}"
        if self.recurrence_end_date:
            text += f" until {self.recurrence_end_date.strftime('%b')} {self.recurrence_end_date.day}, {self.recurrence_end_date.year}"
        return text


@dataclass
class QuickCreatePayload:
    """Body of POST /api/v1/appointments/quick-create/."""
    title: str
    contact: str
    start: datetime              # aware
    end: datetime                # aware
    assigned_to: str = ""
    location: str = DEFAULT_LOCATION
    color: str = DEFAULT_CREATE_COLOR

    def to_api(self) -> dict:
        body = {
            "title": self.title,
            "contact": self.contact,
            "start_datetime": self.start.isoformat(),
            "end_datetime": self.end.isoformat(),
            "location": self.location,
            "color": self.color,
        }
        if self.assigned_to:
            body["assigned_to"] = self.assigned_to
        return body
