"""
CRM Calendar GUI Widgets

Custom widgets for displaying appointments.
"""

from .appointment_widget import AppointmentWidget
from .calendar_widget import CalendarWidget, DayView, WeekView, MonthView
from .mini_calendar import MiniCalendar

__all__ = ['AppointmentWidget', 'CalendarWidget', 'DayView', 'WeekView', 'MonthView', 'MiniCalendar']
