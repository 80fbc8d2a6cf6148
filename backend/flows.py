"""
Quick-create and detail panel flows.

Both are small controllers between a Qt surface (dialog, side panel) and the
API client. They submit their calls through the NetworkWorker and, like the
page controller, only act on the response to their latest request.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from PySide6.QtCore import QObject, Signal

from .appointment import (
    Appointment, QuickCreatePayload, DEFAULT_CREATE_COLOR, DEFAULT_LOCATION
)
from .diagnostics import make_debug_printer
from .network_worker import make_operation_id, parse_operation_id
from .timezone_utils import local_naive_to_utc


_debug_print = make_debug_printer("FLOW")

CREATE_KIND = "create"
DETAIL_KIND = "detail"

MISSING_FIELDS_MESSAGE = "Please fill all required fields."
END_BEFORE_START_MESSAGE = "End time must be after start time."
CREATE_FAILED_MESSAGE = "Failed to create appointment. Check your inputs."
SUBMIT_PENDING_MESSAGE = "Another appointment is still being saved."


@dataclass
class QuickCreateForm:
    """Values entered in the quick-create dialog. Times are naive local."""
    title: str = ""
    contact: str = ""
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    assigned_to: str = ""
    location: str = DEFAULT_LOCATION
    color: str = DEFAULT_CREATE_COLOR


def validate_form(form: QuickCreateForm) -> Optional[str]:
    """Return an error message, or None when the form can be submitted."""
    if not form.title.strip() or not form.contact.strip() or form.start is None or form.end is None:
        return MISSING_FIELDS_MESSAGE
    if form.end <= form.start:
        return END_BEFORE_START_MESSAGE
    return None


def build_payload(form: QuickCreateForm) -> QuickCreatePayload:
    return QuickCreatePayload(
        title=form.title.strip(),
        contact=form.contact.strip(),
        start=local_naive_to_utc(form.start),
        end=local_naive_to_utc(form.end),
        assigned_to=form.assigned_to.strip(),
        location=form.location or DEFAULT_LOCATION,
        color=form.color or DEFAULT_CREATE_COLOR,
    )


class QuickCreateFlow(QObject):
    """Validates the quick-create form and posts it to the API."""

    # Emitted with the created Appointment
    created = Signal(object)

    # Emitted with a user-facing message
    failed = Signal(str)

    def __init__(self, client, worker, parent=None):
        super().__init__(parent)
        self._client = client
        self._worker = worker
        self._seq = 0
        self._submitting = False
        self._worker.operation_finished.connect(self._on_operation_finished)
        self._worker.operation_error.connect(self._on_operation_error)

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    @property
    def current_sequence(self) -> int:
        """Sequence number of the latest submission; 0 before the first."""
        return self._seq

    def submit(self, form: QuickCreateForm) -> Optional[str]:
        """
        Validate and submit the form.

        Returns the validation error, or None once the request is on its way.
        Only one request may be in flight at a time.
        """
        if self._submitting:
            return SUBMIT_PENDING_MESSAGE
        error = validate_form(form)
        if error:
            return error
        self._seq += 1
        self._submitting = True
        payload = build_payload(form)
        _debug_print(f"create #{self._seq}: {payload.title!r} {payload.start} .. {payload.end}")
        self._worker.submit(make_operation_id(CREATE_KIND, self._seq),
                            self._client.create_appointment, payload)
        return None

    def _is_current(self, operation_id: str) -> bool:
        kind, seq = parse_operation_id(operation_id)
        return kind == CREATE_KIND and seq == self._seq

    def _on_operation_finished(self, operation_id: str, result) -> None:
        if not self._is_current(operation_id):
            return
        self._submitting = False
        self.created.emit(result)

    def _on_operation_error(self, operation_id: str, error_message: str) -> None:
        if not self._is_current(operation_id):
            return
        self._submitting = False
        _debug_print(f"create #{self._seq} failed: {error_message}")
        self.failed.emit(CREATE_FAILED_MESSAGE)


class DetailPanelFlow(QObject):
    """Loads the full record of the appointment the user clicked."""

    # Emitted with the clicked Appointment while its detail is loading
    loading = Signal(object)

    # Emitted with the AppointmentDetail
    loaded = Signal(object)

    # Emitted with a user-facing message
    failed = Signal(str)

    LOAD_FAILED_MESSAGE = "Could not load appointment details."

    def __init__(self, client, worker, parent=None):
        super().__init__(parent)
        self._client = client
        self._worker = worker
        self._seq = 0
        self._current: Optional[Appointment] = None
        self._worker.operation_finished.connect(self._on_operation_finished)
        self._worker.operation_error.connect(self._on_operation_error)

    @property
    def current(self) -> Optional[Appointment]:
        return self._current

    def open_appointment(self, appointment: Appointment) -> None:
        self._seq += 1
        self._current = appointment
        self._worker.cancel_kind(DETAIL_KIND)
        self.loading.emit(appointment)
        self._worker.submit(make_operation_id(DETAIL_KIND, self._seq),
                            self._client.fetch_appointment_detail, appointment.id)

    def clear(self) -> None:
        self._seq += 1
        self._current = None

    def _is_current(self, operation_id: str) -> bool:
        kind, seq = parse_operation_id(operation_id)
        return kind == DETAIL_KIND and seq == self._seq and self._current is not None

    def _on_operation_finished(self, operation_id: str, result) -> None:
        if self._is_current(operation_id):
            self.loaded.emit(result)

    def _on_operation_error(self, operation_id: str, error_message: str) -> None:
        if not self._is_current(operation_id):
            return
        _debug_print(f"detail for {self._current.id} failed: {error_message}")
        self.failed.emit(self.LOAD_FAILED_MESSAGE)
