"""
CRM Calendar GUI Module

PySide6-based graphical interface for the appointment calendar.
"""

from .main_window import MainWindow
from .quick_create_dialog import QuickCreateDialog
from .appointment_panel import AppointmentPanel

__all__ = ['MainWindow', 'QuickCreateDialog', 'AppointmentPanel']
