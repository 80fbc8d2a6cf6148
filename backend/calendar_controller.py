"""
Calendar page controller.

Holds the view state (reference date, view mode, assignee filter), runs the
appointment fetch for the visible range and publishes immutable snapshots
for the views to render.

Fetches run on a NetworkWorker. Each one is tagged "appointments:<seq>";
a result is applied only if its sequence is still the latest, so a slow
response for an old range can never overwrite a newer one.
"""

from dataclasses import dataclass, replace, field
from datetime import date, datetime
from enum import Enum
from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal

from .appointment import Appointment
from .date_range import ViewMode, Direction, DateRange, date_range, navigate, today
from .diagnostics import make_debug_printer
from .network_worker import make_operation_id, parse_operation_id
from .placement import Placement, place, highlighted_dates
from .slot_mapper import default_time_range


_debug_print = make_debug_printer("CALENDAR")

FETCH_KIND = "appointments"


class LoadState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass(frozen=True)
class ViewState:
    reference_date: date
    view_mode: ViewMode = ViewMode.MONTH
    assignee_filter: Optional[str] = None

    @property
    def date_range(self) -> DateRange:
        return date_range(self.reference_date, self.view_mode)


@dataclass(frozen=True)
class CalendarSnapshot:
    """Everything a render pass needs, frozen at one point in time."""
    view_state: ViewState
    load_state: LoadState = LoadState.IDLE
    appointments: tuple = ()
    placement: Placement = None
    highlighted: frozenset = field(default_factory=frozenset)
    error: str = ""

    @property
    def date_range(self) -> DateRange:
        return self.view_state.date_range

    @property
    def hidden_count(self) -> int:
        return self.placement.hidden_count if self.placement else 0


class CalendarPageController(QObject):
    """
    Top-level state holder for the calendar page.

    Args:
        client: Object providing fetch_appointments(start, end, assignee)
        worker: NetworkWorker (or anything with the same submit/cancel_kind
            methods and operation_finished/operation_error signals)
        today_provider: Callable returning the current date
    """

    # Emitted with a CalendarSnapshot whenever state or data changes
    snapshot_changed = Signal(object)

    # Emitted with naive local (start, end) after a grid slot was clicked
    slot_selected = Signal(object, object)

    # Emitted with the Appointment that was clicked
    appointment_selected = Signal(object)

    def __init__(self, client, worker, today_provider: Callable[[], date] = today,
                 initial_assignee: Optional[str] = None,
                 initial_view_mode: ViewMode = ViewMode.MONTH, parent=None):
        super().__init__(parent)
        self._client = client
        self._worker = worker
        self._today = today_provider
        self._seq = 0
        self._closed = False

        state = ViewState(reference_date=self._today(), view_mode=initial_view_mode,
                          assignee_filter=initial_assignee or None)
        self._snapshot = self._build_snapshot(state, LoadState.IDLE, ())

        self._worker.operation_finished.connect(self._on_operation_finished)
        self._worker.operation_error.connect(self._on_operation_error)

    # ==================== State access ====================

    @property
    def state(self) -> ViewState:
        return self._snapshot.view_state

    @property
    def snapshot(self) -> CalendarSnapshot:
        return self._snapshot

    @property
    def load_state(self) -> LoadState:
        return self._snapshot.load_state

    @property
    def current_sequence(self) -> int:
        return self._seq

    # ==================== ViewState mutations ====================

    def start(self) -> None:
        """Publish the initial state and fetch the first range."""
        self._fetch()

    def set_view_mode(self, view_mode: ViewMode) -> None:
        self._update(view_mode=view_mode)

    def set_reference_date(self, reference_date: date) -> None:
        self._update(reference_date=reference_date)

    def set_assignee_filter(self, assignee: Optional[str]) -> None:
        self._update(assignee_filter=(assignee or "").strip() or None)

    def go_previous(self) -> None:
        self._update(reference_date=navigate(self.state.reference_date, self.state.view_mode, Direction.PREVIOUS))

    def go_next(self) -> None:
        self._update(reference_date=navigate(self.state.reference_date, self.state.view_mode, Direction.NEXT))

    def go_today(self) -> None:
        """Jump to today, keeping the view mode."""
        self._update(reference_date=self._today())

    def select_date(self, selected: date) -> None:
        """Mini-calendar selection: always drop into the day view."""
        self._update(reference_date=selected, view_mode=ViewMode.DAY)

    def refresh(self) -> None:
        """Refetch the current range without changing state."""
        self._fetch()

    def _update(self, **changes) -> None:
        new_state = replace(self.state, **changes)
        if new_state == self.state:
            return
        _debug_print(f"view state -> {new_state.view_mode.value} {new_state.reference_date} "
                     f"assignee={new_state.assignee_filter or '-'}")
        # Keep the current list while loading; re-place it for the new mode.
        # _fetch() publishes the result.
        self._snapshot = self._build_snapshot(new_state, self.load_state, self._snapshot.appointments)
        self._fetch()

    # ==================== Interaction seams ====================

    def on_slot_click(self, day: date, hour: Optional[int] = None,
                      quarter: Optional[int] = None) -> tuple[datetime, datetime]:
        """Derive a default range for a new appointment and emit slot_selected."""
        start, end = default_time_range(self.state.view_mode, day, hour, quarter)
        _debug_print(f"slot click {day} {hour}:{quarter} -> {start} .. {end}")
        self.slot_selected.emit(start, end)
        return start, end

    def on_event_click(self, appointment: Appointment) -> None:
        self.appointment_selected.emit(appointment)

    def appointment_created(self, appointment: Optional[Appointment] = None) -> None:
        """A collaborator created an appointment; reload the visible range."""
        if appointment is not None:
            _debug_print(f"appointment {appointment.id} created, refetching")
        self.refresh()

    # ==================== Fetching ====================

    def _fetch(self) -> None:
        if self._closed:
            return
        self._seq += 1
        self._worker.cancel_kind(FETCH_KIND)
        state = self.state
        rng = state.date_range
        self._publish(replace(self._snapshot, load_state=LoadState.LOADING, error=""))
        _debug_print(f"fetch #{self._seq}: {rng.start} .. {rng.end}")
        self._worker.submit(
            make_operation_id(FETCH_KIND, self._seq),
            self._client.fetch_appointments,
            rng.start, rng.end, state.assignee_filter
        )

    def _is_current(self, operation_id: str) -> bool:
        kind, seq = parse_operation_id(operation_id)
        if kind != FETCH_KIND:
            return False
        if self._closed or seq != self._seq:
            _debug_print(f"Discarding stale response {operation_id} (current #{self._seq})")
            return False
        return True

    def _on_operation_finished(self, operation_id: str, result) -> None:
        if not self._is_current(operation_id):
            return
        appointments = tuple(result or ())
        self._publish(self._build_snapshot(self.state, LoadState.LOADED, appointments))

    def _on_operation_error(self, operation_id: str, error_message: str) -> None:
        if not self._is_current(operation_id):
            return
        _debug_print(f"fetch #{self._seq} failed, showing empty calendar: {error_message}")
        snapshot = self._build_snapshot(self.state, LoadState.ERROR, ())
        self._publish(replace(snapshot, error=error_message))

    def shutdown(self) -> None:
        """Abandon in-flight fetches; later results are ignored."""
        self._closed = True
        self._seq += 1
        self._worker.cancel_kind(FETCH_KIND)

    # ==================== Snapshots ====================

    @staticmethod
    def _build_snapshot(state: ViewState, load_state: LoadState,
                        appointments: tuple) -> CalendarSnapshot:
        return CalendarSnapshot(
            view_state=state,
            load_state=load_state,
            appointments=appointments,
            placement=place(appointments, state.view_mode),
            highlighted=highlighted_dates(appointments),
        )

    def _publish(self, snapshot: CalendarSnapshot) -> None:
        self._snapshot = snapshot
        self.snapshot_changed.emit(snapshot)
