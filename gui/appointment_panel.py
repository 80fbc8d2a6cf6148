"""
Side panel showing the appointment that was clicked in the calendar.

The basic fields from the calendar record show immediately; description,
notes, case and recurrence appear once the detail request completes.
"""

from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QFormLayout, QLabel, QFrame, QPushButton
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QFont

from backend.appointment import Appointment, AppointmentDetail, status_label, location_label
from backend.config import Config
from backend.flows import DetailPanelFlow
from .widgets.appointment_widget import format_time


class AppointmentPanel(QWidget):
    """Detail view for one appointment."""

    closed = Signal()

    def __init__(self, config: Config, flow: DetailPanelFlow, parent=None):
        super().__init__(parent)
        self.config = config
        self._flow = flow
        self._setup_ui()
        self.show_empty()

        self._flow.loading.connect(self.show_appointment)
        self._flow.loaded.connect(self.show_detail)
        self._flow.failed.connect(self.show_error)

    def _setup_ui(self):
        labels = self.config.labels
        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)
        layout.setSpacing(6)

        header = QHBoxLayout()
        self._color_bar = QFrame()
        self._color_bar.setFixedWidth(4)
        header.addWidget(self._color_bar)
        self._title_label = QLabel(labels.panel_title)
        title_font = QFont(self.font())
        title_font.setBold(True)
        title_font.setPointSize(title_font.pointSize() + 2)
        self._title_label.setFont(title_font)
        self._title_label.setWordWrap(True)
        header.addWidget(self._title_label, 1)
        self._close_btn = QPushButton("✕")
        self._close_btn.setFlat(True)
        self._close_btn.clicked.connect(self._on_close)
        header.addWidget(self._close_btn)
        layout.addLayout(header)

        self._status_label = QLabel()
        layout.addWidget(self._status_label)

        self._message_label = QLabel()
        self._message_label.setWordWrap(True)
        layout.addWidget(self._message_label)

        form = QFormLayout()
        form.setLabelAlignment(Qt.AlignLeft)
        self._time_value = QLabel()
        self._location_value = QLabel()
        self._contact_value = QLabel()
        self._assignee_value = QLabel()
        self._case_value = QLabel()
        self._recurrence_value = QLabel()
        self._fields = {
            "Time": self._time_value,
            "Location": self._location_value,
            "Contact": self._contact_value,
            "Assigned to": self._assignee_value,
            "Case": self._case_value,
            "Recurrence": self._recurrence_value,
        }
        for name, value in self._fields.items():
            value.setWordWrap(True)
            value.setTextInteractionFlags(Qt.TextSelectableByMouse)
            form.addRow(f"{name}:", value)
        layout.addLayout(form)

        self._description_label = QLabel()
        self._description_label.setWordWrap(True)
        layout.addWidget(self._description_label)

        self._notes_label = QLabel()
        self._notes_label.setWordWrap(True)
        self._notes_label.setStyleSheet(f"color: {self.config.colors.tertiary_text};")
        layout.addWidget(self._notes_label)
        layout.addStretch()

    def _set_field(self, value_label: QLabel, text: str):
        value_label.setText(text or "-")

    def show_empty(self):
        self._title_label.setText(self.config.labels.panel_title)
        self._color_bar.setStyleSheet("background: transparent;")
        self._status_label.clear()
        self._message_label.setText(self.config.labels.panel_empty)
        for value in self._fields.values():
            value.clear()
        self._description_label.clear()
        self._notes_label.clear()

    def show_appointment(self, appointment: Appointment):
        """Fill in what the calendar record already has."""
        self._title_label.setText(appointment.title)
        self._color_bar.setStyleSheet(f"background: {appointment.color};")
        self._status_label.setText(status_label(appointment.status))
        self._status_label.setStyleSheet(f"color: {appointment.status_color}; font-weight: bold;")
        self._message_label.setText(self.config.labels.panel_loading)
        local_start = appointment.local_start
        self._set_field(
            self._time_value,
            f"{local_start.strftime('%a %b')} {local_start.day}, "
            f"{format_time(local_start)} - {format_time(appointment.local_end)}"
        )
        self._set_field(self._location_value, location_label(appointment.location))
        self._set_field(self._contact_value, appointment.contact_name)
        self._set_field(self._assignee_value, appointment.assignee_name)
        self._set_field(self._case_value, "")
        self._set_field(self._recurrence_value, "")
        self._description_label.clear()
        self._notes_label.clear()

    def show_detail(self, detail: AppointmentDetail):
        self.show_appointment(detail.appointment)
        self._message_label.clear()
        self._set_field(self._case_value, detail.case_label)
        self._set_field(self._recurrence_value, detail.recurrence_text)
        self._description_label.setText(detail.description)
        if detail.notes:
            self._notes_label.setText(f"Notes: {detail.notes}")

    def show_error(self, message: str):
        self._message_label.setText(message)

    @property
    def title_text(self) -> str:
        return self._title_label.text()

    @property
    def message_text(self) -> str:
        return self._message_label.text()

    def field_text(self, name: str) -> str:
        return self._fields[name].text()

    def _on_close(self):
        self._flow.clear()
        self.show_empty()
        self.closed.emit()
