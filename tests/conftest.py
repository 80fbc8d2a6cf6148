"""
Pytest configuration and shared fixtures.
"""

import os
from datetime import timedelta

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QObject, Signal
from PySide6.QtWidgets import QApplication

from backend.appointment import Appointment
from backend.timezone_utils import set_timezone


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """One QApplication for the whole run."""
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture(autouse=True)
def utc_timezone():
    """Tests run in UTC unless they switch the timezone themselves."""
    set_timezone("UTC")
    yield
    set_timezone("UTC")


class FakeWorker(QObject):
    """
    Stand-in for NetworkWorker that records submissions.

    Tests complete operations explicitly with resolve() or fail().
    """

    operation_finished = Signal(str, object)
    operation_error = Signal(str, str)

    def __init__(self):
        super().__init__()
        self.submitted: list[tuple] = []
        self.cancelled_kinds: list[str] = []

    def submit(self, operation_id, func, *args, **kwargs):
        self.submitted.append((operation_id, func, args, kwargs))

    def cancel_kind(self, kind):
        self.cancelled_kinds.append(kind)
        return 0

    @property
    def last_operation_id(self) -> str:
        return self.submitted[-1][0]

    @property
    def last_args(self) -> tuple:
        return self.submitted[-1][2]

    def resolve(self, operation_id, result):
        self.operation_finished.emit(operation_id, result)

    def fail(self, operation_id, message="ApiError: boom"):
        self.operation_error.emit(operation_id, message)


@pytest.fixture
def worker():
    return FakeWorker()


@pytest.fixture
def make_appointment():
    """Factory for appointments starting at a UTC wall time."""
    counter = {"n": 0}

    def _make(start, end=None, **kwargs):
        counter["n"] += 1
        if end is None:
            end = start + timedelta(minutes=30)
        kwargs.setdefault("id", str(counter["n"]))
        kwargs.setdefault("title", f"Appointment {counter['n']}")
        return Appointment(start=start, end=end, **kwargs)

    return _make


@pytest.fixture
def api_record():
    """Calendar endpoint record as the API delivers it."""
    return {
        "id": "a1b2",
        "title": "Intake call",
        "start_datetime": "2024-03-15T09:30:00Z",
        "end_datetime": "2024-03-15T10:30:00Z",
        "status": "confirmed",
        "assigned_to_name": "Dana Reyes",
        "contact_name": "Sam Lee",
        "location": "virtual",
        "color": "#16a34a",
        "recurrence_pattern": "none",
        "parent_appointment": None,
    }
