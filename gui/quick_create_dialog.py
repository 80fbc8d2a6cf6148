"""
Quick-create window for new appointments.

An independent window (not a modal dialog) opened from a slot click or the
toolbar, pre-filled with the default time range for the clicked slot.
"""

from datetime import datetime
from typing import Optional

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QFormLayout, QGridLayout,
    QLineEdit, QDateTimeEdit, QComboBox, QPushButton, QLabel, QMessageBox
)
from PySide6.QtCore import Qt, Signal, QDateTime, QDate, QTime
from PySide6.QtGui import QCloseEvent

from backend.appointment import APPOINTMENT_COLORS, LOCATION_LABELS, DEFAULT_CREATE_COLOR, DEFAULT_LOCATION
from backend.config import Config
from backend.flows import QuickCreateFlow, QuickCreateForm


def _to_qdatetime(dt: datetime) -> QDateTime:
    return QDateTime(QDate(dt.year, dt.month, dt.day), QTime(dt.hour, dt.minute))


class ColorSwatch(QPushButton):
    """Palette button; checked when it is the selected color."""

    def __init__(self, color: str, name: str, parent=None):
        super().__init__(parent)
        self.color = color
        self.setCheckable(True)
        self.setToolTip(name)
        self.setFixedSize(22, 22)
        self.setCursor(Qt.PointingHandCursor)
        self.setStyleSheet(f"""
            QPushButton {{ background-color: {color}; border-radius: 11px; border: 2px solid transparent; }}
            QPushButton:checked {{ border: 2px solid #111827; }}
        """)


class QuickCreateDialog(QWidget):
    """Window collecting title, contact, time range, location and color."""

    closed = Signal()

    def __init__(self, config: Config, flow: QuickCreateFlow,
                 start: datetime, end: datetime, default_assignee: str = "", parent=None):
        super().__init__(parent)
        self.config = config
        self._flow = flow
        self._color = DEFAULT_CREATE_COLOR
        self._swatches: list[ColorSwatch] = []
        # Sequence of this window's own submission; results of others are ignored
        self._submitted_seq: Optional[int] = None

        self._setup_window()
        self._setup_ui()
        self._populate(start, end, default_assignee)

        self._flow.created.connect(self._on_created)
        self._flow.failed.connect(self._on_failed)

    def _setup_window(self):
        self.setWindowTitle(self.config.labels.dialog_new_appointment)
        self.setWindowFlags(Qt.Window)
        self.setAttribute(Qt.WA_DeleteOnClose)
        self.setMinimumSize(380, 320)

    def _setup_ui(self):
        labels = self.config.labels
        layout = QVBoxLayout(self)
        layout.setSpacing(8)
        layout.setContentsMargins(8, 8, 8, 8)

        form = QFormLayout()
        form.setSpacing(8)

        self._title_edit = QLineEdit()
        self._title_edit.setPlaceholderText("Appointment title")
        form.addRow(labels.field_title, self._title_edit)

        self._contact_edit = QLineEdit()
        self._contact_edit.setPlaceholderText("Contact ID")
        form.addRow(labels.field_contact, self._contact_edit)

        self._assignee_edit = QLineEdit()
        self._assignee_edit.setPlaceholderText("User ID (optional)")
        form.addRow(labels.field_assignee, self._assignee_edit)

        self._start_edit = QDateTimeEdit()
        self._start_edit.setCalendarPopup(True)
        self._start_edit.setDisplayFormat("yyyy-MM-dd HH:mm")
        self._start_edit.dateTimeChanged.connect(self._on_start_changed)
        form.addRow(labels.field_start, self._start_edit)

        self._end_edit = QDateTimeEdit()
        self._end_edit.setCalendarPopup(True)
        self._end_edit.setDisplayFormat("yyyy-MM-dd HH:mm")
        form.addRow(labels.field_end, self._end_edit)

        self._location_combo = QComboBox()
        for value, label in LOCATION_LABELS.items():
            self._location_combo.addItem(label, value)
        self._location_combo.setCurrentIndex(list(LOCATION_LABELS).index(DEFAULT_LOCATION))
        form.addRow(labels.field_location, self._location_combo)

        palette = QGridLayout()
        palette.setSpacing(4)
        for i, (color, name) in enumerate(APPOINTMENT_COLORS):
            swatch = ColorSwatch(color, name)
            swatch.clicked.connect(lambda checked=False, c=color: self._select_color(c))
            palette.addWidget(swatch, i // 6, i % 6)
            self._swatches.append(swatch)
        form.addRow(labels.field_color, palette)

        layout.addLayout(form)

        self._error_label = QLabel()
        self._error_label.setStyleSheet(f"color: {self.config.colors.error_text};")
        self._error_label.setWordWrap(True)
        self._error_label.hide()
        layout.addWidget(self._error_label)
        layout.addStretch()

        button_layout = QHBoxLayout()
        button_layout.addStretch()

        self._cancel_btn = QPushButton(labels.button_cancel)
        self._cancel_btn.clicked.connect(self.close)
        button_layout.addWidget(self._cancel_btn)

        self._save_btn = QPushButton(labels.button_create)
        self._save_btn.setStyleSheet(
            f"background: {self.config.colors.button_save_background}; "
            f"color: {self.config.colors.button_save_text};"
        )
        self._save_btn.clicked.connect(self._on_save)
        self._save_btn.setDefault(True)
        button_layout.addWidget(self._save_btn)

        layout.addLayout(button_layout)

    def _populate(self, start: datetime, end: datetime, default_assignee: str):
        self._start_edit.setDateTime(_to_qdatetime(start))
        self._end_edit.setDateTime(_to_qdatetime(end))
        self._assignee_edit.setText(default_assignee)
        self._select_color(DEFAULT_CREATE_COLOR)

    def _select_color(self, color: str):
        self._color = color
        for swatch in self._swatches:
            swatch.setChecked(swatch.color == color)

    def _on_start_changed(self, dt: QDateTime):
        if self._end_edit.dateTime() <= dt:
            self._end_edit.setDateTime(dt.addSecs(3600))

    def form(self) -> QuickCreateForm:
        """Current field values."""
        return QuickCreateForm(
            title=self._title_edit.text(),
            contact=self._contact_edit.text(),
            start=self._start_edit.dateTime().toPython(),
            end=self._end_edit.dateTime().toPython(),
            assigned_to=self._assignee_edit.text(),
            location=self._location_combo.currentData(),
            color=self._color,
        )

    def _show_error(self, message: str):
        self._error_label.setText(message)
        self._error_label.show()

    def _on_save(self):
        self._error_label.hide()
        error = self._flow.submit(self.form())
        if error:
            QMessageBox.warning(self, "Validation Error", error)
            self._show_error(error)
            return
        self._submitted_seq = self._flow.current_sequence
        self._save_btn.setEnabled(False)

    def _owns_result(self) -> bool:
        return self._submitted_seq is not None and self._submitted_seq == self._flow.current_sequence

    def _reset(self):
        self._title_edit.clear()
        self._contact_edit.clear()
        self._location_combo.setCurrentIndex(list(LOCATION_LABELS).index(DEFAULT_LOCATION))
        self._select_color(DEFAULT_CREATE_COLOR)
        self._error_label.hide()

    def _on_created(self, appointment):
        if not self._owns_result():
            return
        self._submitted_seq = None
        self._reset()
        self.close()

    def _on_failed(self, message: str):
        if not self._owns_result():
            return
        self._submitted_seq = None
        self._save_btn.setEnabled(True)
        self._show_error(message)

    def closeEvent(self, close_event: QCloseEvent):
        try:
            self._flow.created.disconnect(self._on_created)
            self._flow.failed.disconnect(self._on_failed)
        except (RuntimeError, TypeError):
            # Already disconnected
            pass
        self.closed.emit()
        super().closeEvent(close_event)
