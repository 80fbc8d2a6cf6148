"""
CRM Calendar Backend Module

Core functionality behind the calendar window:
- Configuration parsing (config.py)
- Appointment records and display tables (appointment.py)
- Visible ranges and navigation (date_range.py)
- Week/day grid geometry (time_slots.py)
- Placement of appointments into cells (placement.py)
- Default ranges for click-to-create (slot_mapper.py)
- REST client for the appointments API (api_client.py)
- Background execution of API calls (network_worker.py)
- Page controller and quick-create/detail flows (calendar_controller.py, flows.py)
"""

from .config import Config
from .appointment import Appointment, AppointmentDetail
from .date_range import ViewMode, DateRange
from .api_client import AppointmentsClient, ApiError
from .calendar_controller import CalendarPageController, CalendarSnapshot, LoadState, ViewState

__all__ = [
    'Config',
    'Appointment',
    'AppointmentDetail',
    'ViewMode',
    'DateRange',
    'AppointmentsClient',
    'ApiError',
    'CalendarPageController',
    'CalendarSnapshot',
    'LoadState',
    'ViewState',
]
