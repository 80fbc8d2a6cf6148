"""
Main Window for CRM Calendar.

The primary application window: toolbar navigation, the mini calendar
sidebar, the calendar views and the appointment detail panel.
"""

import json
import base64
from datetime import datetime
from typing import Optional

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QToolBar, QPushButton, QLabel,
    QComboBox, QLineEdit, QSplitter, QStatusBar, QMessageBox, QApplication,
    QSizePolicy
)
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QCloseEvent, QFont, QKeySequence, QShortcut

from backend.api_client import AppointmentsClient
from backend.appointment import Appointment
from backend.calendar_controller import CalendarPageController, CalendarSnapshot, LoadState
from backend.config import Config
from backend.date_range import ViewMode, header_title
from backend.diagnostics import make_debug_printer
from backend.flows import QuickCreateFlow, DetailPanelFlow
from backend.network_worker import get_network_worker, shutdown_network_worker
from backend.slot_mapper import new_appointment_range
from backend.time_slots import FIRST_HOUR, LAST_HOUR, format_hour
from backend.timezone_utils import now_local

from .widgets.calendar_widget import (
    CalendarWidget, set_layout_config, set_localization_config, set_colors_config, set_labels_config
)
from .widgets.mini_calendar import MiniCalendar
from .appointment_panel import AppointmentPanel
from .quick_create_dialog import QuickCreateDialog


_debug_print = make_debug_printer("WINDOW")


class MainWindow(QMainWindow):
    """
    Main application window.

    Contains:
    - Toolbar with navigation, view switching and the assignee filter
    - Sidebar with the mini calendar
    - Main calendar view (month/week/day)
    - Appointment detail panel
    """

    def __init__(self, config: Config, client: Optional[AppointmentsClient] = None, parent=None):
        super().__init__(parent)
        self.config = config

        # Widget configs must be in place before any view is built
        set_layout_config(config.layout)
        set_localization_config(config.localization)
        set_colors_config(config.colors)
        set_labels_config(config.labels)

        text_font = QFont(config.layout.text_font, config.layout.text_font_size)
        QApplication.instance().setFont(text_font)
        self._interface_font = QFont(config.layout.interface_font, config.layout.interface_font_size)

        self._client = client or AppointmentsClient(
            config.api.base_url, self._api_token(), timeout=config.api.timeout
        )
        self._state_file = config.state_file
        self._ui_state: dict = {}
        self._load_ui_state()

        self._worker = get_network_worker()
        self.controller = CalendarPageController(
            self._client, self._worker,
            initial_assignee=config.api.default_assignee or None,
            initial_view_mode=self._saved_view_mode(),
            parent=self
        )
        self.create_flow = QuickCreateFlow(self._client, self._worker, parent=self)
        self.detail_flow = DetailPanelFlow(self._client, self._worker, parent=self)
        self._create_dialog: Optional[QuickCreateDialog] = None

        self._auto_refresh_timer = QTimer(self)
        self._auto_refresh_timer.timeout.connect(self.controller.refresh)

        self._setup_window()
        self._setup_ui()
        self._setup_toolbar()
        self._setup_shortcuts()
        self._setup_statusbar()
        self._connect_controller()
        self._load_state()

        self.controller.start()

        if config.refresh_interval > 0:
            self._auto_refresh_timer.start(config.refresh_interval * 1000)
            _debug_print(f"Auto-refresh enabled every {config.refresh_interval} seconds")

    def _api_token(self) -> Optional[str]:
        try:
            return self.config.get_api_token()
        except RuntimeError as e:
            QMessageBox.warning(None, "Authentication Warning", f"{e}\n\nContinuing without an API token.")
            return None

    def _setup_window(self):
        self.setWindowTitle(self.config.labels.window_title)
        self.setMinimumSize(800, 600)

        geometry = self._ui_state.get("geometry")
        if geometry:
            self.restoreGeometry(base64.b64decode(geometry))
        else:
            self.resize(1200, 800)

    def _setup_ui(self):
        self._splitter = QSplitter(Qt.Horizontal)

        self._mini_calendar = MiniCalendar()
        self._mini_calendar.setFont(self._interface_font)
        self._mini_calendar.setMaximumWidth(320)
        self._mini_calendar.date_selected.connect(self.controller.select_date)
        self._splitter.addWidget(self._mini_calendar)

        main_widget = QWidget()
        main_layout = QVBoxLayout(main_widget)
        main_layout.setContentsMargins(0, 0, 0, 0)
        self._calendar_widget = CalendarWidget()
        self._calendar_widget.slot_clicked.connect(self.controller.on_slot_click)
        self._calendar_widget.appointment_clicked.connect(self.controller.on_event_click)
        main_layout.addWidget(self._calendar_widget)
        self._splitter.addWidget(main_widget)

        self._panel = AppointmentPanel(self.config, self.detail_flow)
        self._panel.setMinimumWidth(220)
        self._panel.closed.connect(self._panel.hide)
        self._panel.hide()
        self._splitter.addWidget(self._panel)

        self._splitter.setSizes([220, 900, 280])
        self.setCentralWidget(self._splitter)

    def _setup_toolbar(self):
        labels = self.config.labels
        toolbar = QToolBar("Navigation")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)
        if toolbar.layout():
            toolbar.layout().setContentsMargins(8, 12, 8, 8)

        self._date_label = QLabel()
        date_font = QFont(self._interface_font)
        date_font.setBold(True)
        self._date_label.setFont(date_font)
        self._date_label.setMinimumWidth(220)
        toolbar.addWidget(self._date_label)

        toolbar.addSeparator()

        self._view_combo = QComboBox()
        self._view_combo.setFont(self._interface_font)
        self._view_combo.addItem(labels.view_month, ViewMode.MONTH)
        self._view_combo.addItem(labels.view_week, ViewMode.WEEK)
        self._view_combo.addItem(labels.view_day, ViewMode.DAY)
        self._view_combo.currentIndexChanged.connect(self._on_view_combo_changed)
        toolbar.addWidget(self._view_combo)

        toolbar.addSeparator()

        self._prev_btn = QPushButton(labels.button_prev)
        self._prev_btn.setFont(self._interface_font)
        self._prev_btn.setToolTip("Previous")
        self._prev_btn.clicked.connect(self.controller.go_previous)
        toolbar.addWidget(self._prev_btn)

        self._today_btn = QPushButton(labels.button_today)
        self._today_btn.setFont(self._interface_font)
        self._today_btn.clicked.connect(self.controller.go_today)
        toolbar.addWidget(self._today_btn)

        self._next_btn = QPushButton(labels.button_next)
        self._next_btn.setFont(self._interface_font)
        self._next_btn.setToolTip("Next")
        self._next_btn.clicked.connect(self.controller.go_next)
        toolbar.addWidget(self._next_btn)

        self._loading_label = QLabel(labels.loading)
        self._loading_label.setFont(self._interface_font)
        self._loading_action = toolbar.addWidget(self._loading_label)
        self._loading_action.setVisible(False)

        spacer = QWidget()
        spacer.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Preferred)
        toolbar.addWidget(spacer)

        self._assignee_edit = QLineEdit()
        self._assignee_edit.setFont(self._interface_font)
        self._assignee_edit.setPlaceholderText(labels.assignee_placeholder)
        self._assignee_edit.setClearButtonEnabled(True)
        self._assignee_edit.setMaximumWidth(200)
        self._assignee_edit.setText(self.controller.state.assignee_filter or "")
        self._assignee_edit.editingFinished.connect(self._on_assignee_edited)
        toolbar.addWidget(self._assignee_edit)

        self._new_btn = QPushButton(labels.button_new_appointment)
        self._new_btn.setFont(self._interface_font)
        self._new_btn.clicked.connect(self._on_new_appointment)
        toolbar.addWidget(self._new_btn)

        self._reload_btn = QPushButton(labels.button_reload)
        self._reload_btn.setFont(self._interface_font)
        self._reload_btn.setToolTip("Reload appointments for the visible range")
        self._reload_btn.clicked.connect(self.controller.refresh)
        toolbar.addWidget(self._reload_btn)

    def _setup_shortcuts(self):
        """Keyboard shortcuts from config bindings."""
        bindings = self.config.bindings
        for key, slot in (
            (bindings.prev, self.controller.go_previous),
            (bindings.next, self.controller.go_next),
            (bindings.today, self.controller.go_today),
            (bindings.new_appointment, self._on_new_appointment),
        ):
            if key:
                shortcut = QShortcut(QKeySequence(key), self)
                shortcut.activated.connect(slot)

    def _setup_statusbar(self):
        self._statusbar = QStatusBar()
        self._statusbar.setFont(self._interface_font)
        self.setStatusBar(self._statusbar)
        self._statusbar.showMessage("Ready")

    def _connect_controller(self):
        self.controller.snapshot_changed.connect(self._on_snapshot_changed)
        self.controller.slot_selected.connect(self._open_create_dialog)
        self.controller.appointment_selected.connect(self._on_appointment_selected)
        self.create_flow.created.connect(self._on_appointment_created)

    # ==================== State persistence ====================

    def _load_ui_state(self):
        """Load UI state from the JSON state file."""
        if self._state_file.exists():
            try:
                with open(self._state_file, 'r') as f:
                    self._ui_state = json.load(f).get('ui', {})
            except (OSError, ValueError) as e:
                _debug_print(f"Error loading UI state: {e}")
                self._ui_state = {}
        else:
            self._ui_state = {}

    def _save_ui_state(self):
        """Save UI state to the JSON state file."""
        try:
            self._state_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self._state_file, 'w') as f:
                json.dump({'ui': self._ui_state}, f, indent=2)
        except OSError as e:
            _debug_print(f"Error saving UI state: {e}")

    def _saved_view_mode(self) -> ViewMode:
        try:
            return ViewMode(self._ui_state.get("view_mode", ViewMode.MONTH.value))
        except ValueError:
            return ViewMode.MONTH

    def _load_state(self):
        """Restore splitter sizes."""
        splitter_sizes = self._ui_state.get("splitter_sizes")
        if isinstance(splitter_sizes, list) and len(splitter_sizes) == 3:
            self._splitter.setSizes(splitter_sizes)

    def _save_state(self):
        self._ui_state["geometry"] = base64.b64encode(self.saveGeometry().data()).decode('utf-8')
        self._ui_state["view_mode"] = self.controller.state.view_mode.value
        self._ui_state["splitter_sizes"] = self._splitter.sizes()
        self._save_ui_state()

    # ==================== Controller output ====================

    def _on_snapshot_changed(self, snapshot: CalendarSnapshot):
        state = snapshot.view_state
        self._calendar_widget.render(state.reference_date, state.view_mode, snapshot.placement)
        self._mini_calendar.set_highlighted_dates(snapshot.highlighted)
        self._mini_calendar.set_selected_date(state.reference_date)
        self._date_label.setText(
            header_title(state.reference_date, state.view_mode, self.config.localization)
        )

        index = self._view_combo.findData(state.view_mode)
        if index != self._view_combo.currentIndex():
            self._view_combo.blockSignals(True)
            self._view_combo.setCurrentIndex(index)
            self._view_combo.blockSignals(False)

        self._loading_action.setVisible(snapshot.load_state == LoadState.LOADING)
        self._update_status(snapshot)

    def _update_status(self, snapshot: CalendarSnapshot):
        if snapshot.load_state == LoadState.ERROR:
            self._statusbar.showMessage(f"Error loading appointments: {snapshot.error}")
            return
        if snapshot.load_state != LoadState.LOADED:
            return
        message = f"Loaded {len(snapshot.appointments)} appointment(s)"
        if snapshot.hidden_count:
            hidden_text = self.config.labels.hidden_appointments.format(
                snapshot.hidden_count, format_hour(FIRST_HOUR), format_hour(LAST_HOUR + 1)
            )
            message = f"{message} - {hidden_text}"
        self._statusbar.showMessage(message)

    # ==================== User actions ====================

    def _on_view_combo_changed(self, index: int):
        view_mode = self._view_combo.itemData(index)
        if view_mode is not None:
            self.controller.set_view_mode(view_mode)

    def _on_assignee_edited(self):
        self.controller.set_assignee_filter(self._assignee_edit.text())

    def _on_new_appointment(self):
        start, end = new_appointment_range(now_local())
        self._open_create_dialog(start, end)

    def _open_create_dialog(self, start: datetime, end: datetime):
        """Open the quick-create window; one at a time."""
        if self._create_dialog is not None:
            self._create_dialog.close()
        dialog = QuickCreateDialog(
            self.config, self.create_flow, start, end,
            default_assignee=self.controller.state.assignee_filter or "",
        )
        dialog.setFont(self._interface_font)
        dialog.closed.connect(lambda d=dialog: self._on_create_dialog_closed(d))
        self._create_dialog = dialog
        dialog.show()
        dialog.raise_()
        dialog.activateWindow()

    def _on_create_dialog_closed(self, dialog: QuickCreateDialog):
        if self._create_dialog is dialog:
            self._create_dialog = None

    def _on_appointment_created(self, appointment: Appointment):
        self._statusbar.showMessage(f"Created '{appointment.title}'")
        self.controller.appointment_created(appointment)

    def _on_appointment_selected(self, appointment: Appointment):
        self._panel.show()
        self.detail_flow.open_appointment(appointment)

    def closeEvent(self, close_event: QCloseEvent):
        self._auto_refresh_timer.stop()
        if self._create_dialog is not None:
            self._create_dialog.close()
        self.controller.shutdown()
        self._save_state()
        shutdown_network_worker()
        self._client.close()
        super().closeEvent(close_event)
