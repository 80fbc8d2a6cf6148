"""
Appointment Widget for displaying individual appointments.

Month cells use the compact pill (time, title, recurrence glyph); week and
day cells use the expanded card (title, time range, contact, location).
"""

from PySide6.QtWidgets import QWidget, QLabel, QVBoxLayout, QHBoxLayout, QFrame, QSizePolicy
from PySide6.QtCore import Qt, Signal, QSize
from PySide6.QtGui import QFont, QMouseEvent, QFontMetrics

from backend.appointment import Appointment, location_label, status_label
from backend.config import LayoutConfig, LabelsConfig


# Module-level configs (set by MainWindow at startup via calendar_widget)
_layout_config: LayoutConfig = LayoutConfig()
_labels_config: LabelsConfig = LabelsConfig()


def set_appointment_layout_config(config: LayoutConfig):
    global _layout_config
    _layout_config = config


def set_appointment_labels_config(config: LabelsConfig):
    global _labels_config
    _labels_config = config


def get_text_font() -> QFont:
    """Get the configured text font for appointments."""
    return QFont(_layout_config.text_font, _layout_config.text_font_size)


def get_contrasting_text_color(bg_color: str) -> str:
    """Calculate whether black or white text contrasts better with the background."""
    color = bg_color.lstrip('#')
    if len(color) == 3:
        color = ''.join([c*2 for c in color])

    try:
        r = int(color[0:2], 16)
        g = int(color[2:4], 16)
        b = int(color[4:6], 16)
    except (ValueError, IndexError):
        return "#000000"

    luminance = (0.299 * r + 0.587 * g + 0.114 * b) / 255
    return "#000000" if luminance > 0.5 else "#ffffff"


def lighten_color(hex_color: str, factor: float = 0.3) -> str:
    """Lighten a hex color by the given factor."""
    color = hex_color.lstrip('#')
    if len(color) == 3:
        color = ''.join([c*2 for c in color])

    try:
        r = int(color[0:2], 16)
        g = int(color[2:4], 16)
        b = int(color[4:6], 16)
    except (ValueError, IndexError):
        return hex_color

    r = int(min(255, r + (255 - r) * factor))
    g = int(min(255, g + (255 - g) * factor))
    b = int(min(255, b + (255 - b) * factor))
    return f"#{r:02x}{g:02x}{b:02x}"


def format_time(dt) -> str:
    """'9:00 AM' style time of a local datetime."""
    hour = dt.hour % 12 or 12
    suffix = "AM" if dt.hour < 12 else "PM"
    return f"{hour}:{dt.minute:02d} {suffix}"


def _single_line(text: str) -> str:
    return ' '.join(text.split()) if text else text


class AppointmentWidget(QFrame):
    """
    A single appointment in a calendar cell.

    compact=True renders the month pill, otherwise the week/day card.
    """

    clicked = Signal(object)  # Appointment

    def __init__(self, appointment: Appointment, compact: bool = False, parent: QWidget = None):
        super().__init__(parent)
        self.appointment = appointment
        self.compact = compact
        self._setup_ui()
        self._apply_style()

    def _setup_ui(self) -> None:
        self.setFont(get_text_font())
        if self.compact:
            self._setup_pill_ui()
        else:
            self._setup_card_ui()
        self.setFrameStyle(QFrame.StyledPanel | QFrame.Plain)
        self.setCursor(Qt.PointingHandCursor)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Minimum)
        self._setup_tooltip()

    def _setup_tooltip(self) -> None:
        appt = self.appointment
        lines = [f"<b>{appt.title}</b>",
                 f"{format_time(appt.local_start)} - {format_time(appt.local_end)}"]
        if appt.contact_name:
            lines.append(f"{_labels_config.contact_icon} {appt.contact_name}")
        if appt.location:
            lines.append(f"{_labels_config.location_icon} {location_label(appt.location)}")
        lines.append(f"<i>{status_label(appt.status)}</i>")
        self.setToolTip("<br>".join(lines))

    def _setup_pill_ui(self) -> None:
        """Single line: start time, title and, for series, the recurrence glyph."""
        layout = QHBoxLayout(self)
        layout.setContentsMargins(4, 1, 4, 1)
        layout.setSpacing(4)

        time_label = QLabel(format_time(self.appointment.local_start))
        time_label.setObjectName("pillTime")
        layout.addWidget(time_label)

        title_label = QLabel(_single_line(self.appointment.title))
        title_label.setTextFormat(Qt.PlainText)
        title_font = QFont(get_text_font())
        title_font.setBold(True)
        title_label.setFont(title_font)
        layout.addWidget(title_label, 1)

        if self.appointment.is_recurring:
            glyph = QLabel(_labels_config.recurrence_icon)
            glyph.setObjectName("recurrenceGlyph")
            layout.addWidget(glyph)

    def _setup_card_ui(self) -> None:
        """Title, time range, contact and location."""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 3, 6, 3)
        layout.setSpacing(1)

        appt = self.appointment
        header = QHBoxLayout()
        header.setSpacing(4)
        title_label = QLabel(_single_line(appt.title))
        title_label.setTextFormat(Qt.PlainText)
        title_font = QFont(get_text_font())
        title_font.setBold(True)
        title_label.setFont(title_font)
        header.addWidget(title_label, 1)
        if appt.is_recurring:
            glyph = QLabel(_labels_config.recurrence_icon)
            glyph.setObjectName("recurrenceGlyph")
            header.addWidget(glyph)
        layout.addLayout(header)

        layout.addWidget(QLabel(f"{format_time(appt.local_start)} - {format_time(appt.local_end)}"))

        if appt.contact_name:
            layout.addWidget(QLabel(f"{_labels_config.contact_icon} {_single_line(appt.contact_name)}"))
        if appt.location:
            layout.addWidget(QLabel(f"{_labels_config.location_icon} {location_label(appt.location)}"))

    def _apply_style(self) -> None:
        """Color styling from the appointment color."""
        bg_color = self.appointment.color
        border_color = bg_color
        bg_lighter = lighten_color(bg_color, 0.75 if self.compact else 0.6)
        text_color = get_contrasting_text_color(bg_lighter)

        self.setStyleSheet(f"""
            AppointmentWidget {{
                background-color: {bg_lighter};
                border: 1px solid {border_color};
                border-left: 4px solid {border_color};
                border-radius: 4px;
            }}
            AppointmentWidget:hover {{
                background-color: {lighten_color(bg_color, 0.5)};
            }}
            QLabel {{
                color: {text_color};
                background: transparent;
                border: none;
                padding: 0px;
                margin: 0px;
            }}
        """)

    def mousePressEvent(self, mouse_event: QMouseEvent) -> None:
        if mouse_event.button() == Qt.LeftButton:
            self.clicked.emit(self.appointment)
            # Keep the click from reaching the cell underneath
            mouse_event.accept()
            return
        super().mousePressEvent(mouse_event)

    def sizeHint(self) -> QSize:
        fm = QFontMetrics(self.font())
        line_height = fm.height()
        if self.compact:
            return QSize(120, line_height + 4)
        num_lines = 2
        if self.appointment.contact_name:
            num_lines += 1
        if self.appointment.location:
            num_lines += 1
        return QSize(150, num_lines * line_height + 8)
