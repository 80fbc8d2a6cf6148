"""
Calendar Widget with Month, Week, and Day views.

The three views share one contract: render(reference_date, placement, now).
CalendarWidget keeps them in a QStackedWidget and shows whichever one the
current ViewMode selects.
"""

from datetime import datetime, date
from typing import Optional

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QLabel,
    QScrollArea, QFrame, QStackedWidget, QSizePolicy
)
from PySide6.QtCore import Qt, Signal, QTimer
from PySide6.QtGui import QMouseEvent

from backend.config import LayoutConfig, LocalizationConfig, ColorsConfig, LabelsConfig
from backend.date_range import ViewMode, date_range, month_grid, today
from backend.placement import Placement, appointments_for_day, appointments_for_hour
from backend.time_slots import (
    HOURS, QUARTERS, format_hour, format_slot, current_time_marker, is_past_hour, quarter_bucket
)
from backend.timezone_utils import now_local
from .appointment_widget import (
    AppointmentWidget,
    set_appointment_layout_config, set_appointment_labels_config
)

# Module-level configs (set by MainWindow at startup)
_layout_config: LayoutConfig = LayoutConfig()
_localization_config: LocalizationConfig = LocalizationConfig()
_colors_config: ColorsConfig = ColorsConfig()
_labels_config: LabelsConfig = LabelsConfig()

MARKER_REFRESH_MS = 60000


def set_layout_config(config: LayoutConfig):
    """Set the layout configuration for this module and appointment widgets."""
    global _layout_config
    _layout_config = config
    set_appointment_layout_config(config)


def set_localization_config(config: LocalizationConfig):
    global _localization_config
    _localization_config = config


def get_localization_config() -> LocalizationConfig:
    return _localization_config


def set_colors_config(config: ColorsConfig):
    global _colors_config
    _colors_config = config


def get_colors_config() -> ColorsConfig:
    return _colors_config


def set_labels_config(config: LabelsConfig):
    global _labels_config
    _labels_config = config
    set_appointment_labels_config(config)


def get_labels_config() -> LabelsConfig:
    return _labels_config


def get_hour_height() -> int:
    return _layout_config.hour_height


def _header_style(is_today: bool) -> str:
    colors = get_colors_config()
    font = f"font-family: '{_layout_config.interface_font}'; font-size: {_layout_config.interface_font_size}pt;"
    if is_today:
        return (f"{font} font-weight: bold; padding: 6px; color: {colors.today_highlight_text}; "
                f"background: {colors.today_highlight_background}; border-radius: 4px;")
    return f"{font} font-weight: bold; padding: 6px; background: {colors.header_background};"


class SlotCell(QFrame):
    """
    A clickable time slot in the week or day grid.

    Week cells cover a whole hour (quarter is None); day cells cover one
    quarter of an hour.
    """

    clicked = Signal(object, object, object)  # date, hour, quarter
    appointment_clicked = Signal(object)

    def __init__(self, day: date, hour: int, quarter: Optional[int] = None, parent=None):
        super().__init__(parent)
        self._day = day
        self._hour = hour
        self._quarter = quarter
        self._past = False
        self._widgets: list[AppointmentWidget] = []
        self._setup_ui()

    @property
    def day(self) -> date:
        return self._day

    @property
    def hour(self) -> int:
        return self._hour

    @property
    def quarter(self) -> Optional[int]:
        return self._quarter

    @property
    def appointment_count(self) -> int:
        return len(self._widgets)

    def _setup_ui(self):
        rows = 1 if self._quarter is None else len(QUARTERS)
        self.setMinimumHeight(max(get_hour_height() // rows, 12))
        self.setCursor(Qt.PointingHandCursor)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Minimum)

        self._layout = QVBoxLayout(self)
        self._layout.setContentsMargins(2, 1, 2, 1)
        self._layout.setSpacing(1)
        self._layout.setAlignment(Qt.AlignTop)

        if self._quarter is not None:
            self.setToolTip(f"+ Add at {format_slot(self._hour, self._quarter)}")
        else:
            self.setToolTip(_labels_config.click_to_add)
        self._update_style()

    def _update_style(self):
        colors = get_colors_config()
        bg = colors.past_hour_background if self._past else colors.day_column_background
        # Day cells draw a solid line only at the bottom of the hour
        bottom = "solid" if self._quarter in (None, QUARTERS[-1]) else "dotted"
        self.setStyleSheet(f"""
            SlotCell {{
                background-color: {bg};
                border: none;
                border-right: 1px solid {colors.cell_border};
                border-bottom: 1px {bottom} {colors.hour_line};
            }}
            SlotCell:hover {{
                background-color: {colors.cell_hover};
            }}
        """)

    def set_day(self, day: date):
        self._day = day
        self.clear_appointments()

    def set_past(self, past: bool):
        if past != self._past:
            self._past = past
            self._update_style()

    def add_appointment(self, appointment):
        widget = AppointmentWidget(appointment, compact=False)
        widget.clicked.connect(self.appointment_clicked.emit)
        self._layout.addWidget(widget)
        self._widgets.append(widget)

    def clear_appointments(self):
        for widget in self._widgets:
            widget.deleteLater()
        self._widgets.clear()

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() == Qt.LeftButton:
            self.clicked.emit(self._day, self._hour, self._quarter)
        super().mousePressEvent(event)


class WeekView(QWidget):
    """Seven day columns (Sunday first) by hour rows."""

    slot_clicked = Signal(object, object, object)
    appointment_clicked = Signal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._days: list[date] = []
        self._header_labels: list[QLabel] = []
        self._cells: dict[tuple[int, int], SlotCell] = {}  # (day index, hour) -> cell
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        header = QWidget()
        header_layout = QHBoxLayout(header)
        header_layout.setContentsMargins(0, 0, 0, 0)
        header_layout.setSpacing(1)
        spacer = QLabel("")
        spacer.setFixedWidth(self._time_column_width())
        header_layout.addWidget(spacer)
        for _ in range(7):
            label = QLabel()
            label.setAlignment(Qt.AlignCenter)
            header_layout.addWidget(label, 1)
            self._header_labels.append(label)
        layout.addWidget(header)

        grid_widget = QWidget()
        grid = QGridLayout(grid_widget)
        grid.setContentsMargins(0, 0, 0, 0)
        grid.setSpacing(0)
        for col in range(1, 8):
            grid.setColumnStretch(col, 1)

        placeholder = today()
        for row, hour in enumerate(HOURS):
            hour_label = QLabel(format_hour(hour))
            hour_label.setAlignment(Qt.AlignRight | Qt.AlignTop)
            hour_label.setFixedWidth(self._time_column_width())
            hour_label.setStyleSheet(f"color: {get_colors_config().secondary_text}; padding-right: 4px;")
            grid.addWidget(hour_label, row, 0)
            for day_index in range(7):
                cell = SlotCell(placeholder, hour)
                cell.clicked.connect(lambda d, h, q: self.slot_clicked.emit(d, h, None))
                cell.appointment_clicked.connect(self.appointment_clicked.emit)
                grid.addWidget(cell, row, day_index + 1)
                self._cells[(day_index, hour)] = cell

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        scroll.setWidget(grid_widget)
        layout.addWidget(scroll, 1)

    @staticmethod
    def _time_column_width() -> int:
        return 56

    @property
    def days(self) -> list[date]:
        return list(self._days)

    def cell(self, day_index: int, hour: int) -> SlotCell:
        return self._cells[(day_index, hour)]

    def render(self, reference_date: date, placement: Placement, now: datetime):
        localization = get_localization_config()
        self._days = date_range(reference_date, ViewMode.WEEK).days()
        for day_index, day in enumerate(self._days):
            label = self._header_labels[day_index]
            label.setText(f"{localization.get_day_name(day.weekday())} {day.day}")
            label.setStyleSheet(_header_style(day == now.date()))
            for hour in HOURS:
                cell = self._cells[(day_index, hour)]
                cell.set_day(day)
                for appointment in appointments_for_hour(placement, day, hour):
                    cell.add_appointment(appointment)


class HourRow(QWidget):
    """One hour of the day view: a label and four quarter slots."""

    slot_clicked = Signal(object, object, object)
    appointment_clicked = Signal(object)

    def __init__(self, day: date, hour: int, parent=None):
        super().__init__(parent)
        self._hour = hour
        self._fraction: Optional[float] = None
        self._cells: list[SlotCell] = []
        self._setup_ui(day)

    def _setup_ui(self, day: date):
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        label = QLabel(format_hour(self._hour))
        label.setAlignment(Qt.AlignRight | Qt.AlignTop)
        label.setFixedWidth(56)
        label.setStyleSheet(f"color: {get_colors_config().secondary_text}; padding-right: 4px;")
        layout.addWidget(label)

        quarters = QVBoxLayout()
        quarters.setContentsMargins(0, 0, 0, 0)
        quarters.setSpacing(0)
        for quarter in QUARTERS:
            cell = SlotCell(day, self._hour, quarter)
            cell.clicked.connect(self.slot_clicked.emit)
            cell.appointment_clicked.connect(self.appointment_clicked.emit)
            quarters.addWidget(cell)
            self._cells.append(cell)
        layout.addLayout(quarters, 1)

        self._marker = QFrame(self)
        self._marker.setFrameStyle(QFrame.HLine | QFrame.Plain)
        self._marker.setStyleSheet(f"background-color: {get_colors_config().current_time_line};")
        self._marker.setFixedHeight(2)
        self._marker.hide()

    @property
    def hour(self) -> int:
        return self._hour

    @property
    def cells(self) -> list[SlotCell]:
        return list(self._cells)

    @property
    def marker_visible(self) -> bool:
        return self._fraction is not None

    @property
    def marker_fraction(self) -> Optional[float]:
        return self._fraction

    def set_day(self, day: date, past: bool):
        for cell in self._cells:
            cell.set_day(day)
            cell.set_past(past)

    def add_appointment(self, quarter: int, appointment):
        self._cells[QUARTERS.index(quarter)].add_appointment(appointment)

    def set_marker(self, fraction: Optional[float]):
        self._fraction = fraction
        if fraction is None:
            self._marker.hide()
            return
        self._position_marker()
        self._marker.show()
        self._marker.raise_()

    def _position_marker(self):
        if self._fraction is None:
            return
        y = int(self._fraction * self.height())
        self._marker.setGeometry(56, y, max(self.width() - 56, 0), 2)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._position_marker()


class DayView(QWidget):
    """
    Single day with quarter-hour slots.

    While shown, a timer re-samples the clock every minute to move the
    current-time marker; it stops when the view is hidden.
    """

    slot_clicked = Signal(object, object, object)
    appointment_clicked = Signal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._date = today()
        self._rows: list[HourRow] = []
        self._marker_timer = QTimer(self)
        self._marker_timer.setInterval(MARKER_REFRESH_MS)
        self._marker_timer.timeout.connect(self._refresh_marker)
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        self._header = QLabel()
        self._header.setAlignment(Qt.AlignCenter)
        layout.addWidget(self._header)

        rows_widget = QWidget()
        rows_layout = QVBoxLayout(rows_widget)
        rows_layout.setContentsMargins(0, 0, 0, 0)
        rows_layout.setSpacing(0)
        for hour in HOURS:
            row = HourRow(self._date, hour)
            row.slot_clicked.connect(self.slot_clicked.emit)
            row.appointment_clicked.connect(self.appointment_clicked.emit)
            rows_layout.addWidget(row)
            self._rows.append(row)
        rows_layout.addStretch()

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        scroll.setWidget(rows_widget)
        layout.addWidget(scroll, 1)

    @property
    def rows(self) -> list[HourRow]:
        return list(self._rows)

    @property
    def marker_timer_active(self) -> bool:
        return self._marker_timer.isActive()

    def render(self, reference_date: date, placement: Placement, now: datetime):
        localization = get_localization_config()
        self._date = reference_date
        self._header.setText(
            f"{localization.get_day_name(reference_date.weekday())} {reference_date.day}"
        )
        self._header.setStyleSheet(_header_style(reference_date == now.date()))
        for row in self._rows:
            row.set_day(reference_date, is_past_hour(reference_date, row.hour, now))
        for appointment in appointments_for_day(placement, reference_date):
            local_start = appointment.local_start
            for row in self._rows:
                if row.hour == local_start.hour:
                    row.add_appointment(quarter_bucket(local_start.minute), appointment)
                    break
        self._apply_marker(now)

    def _apply_marker(self, now: datetime):
        marker = current_time_marker(self._date, now)
        for row in self._rows:
            row.set_marker(marker.fraction if marker and marker.hour == row.hour else None)

    def _refresh_marker(self):
        now = now_local()
        self._apply_marker(now)
        for row in self._rows:
            for cell in row.cells:
                cell.set_past(is_past_hour(self._date, row.hour, now))

    def showEvent(self, event):
        super().showEvent(event)
        self._marker_timer.start()

    def hideEvent(self, event):
        self._marker_timer.stop()
        super().hideEvent(event)


class MonthDayCell(QFrame):
    """Single day cell in month view with up to N pills and an overflow label."""

    clicked = Signal(object)  # date
    appointment_clicked = Signal(object)

    def __init__(self, d: date, is_current_month: bool = True, parent=None):
        super().__init__(parent)
        self._date = d
        self.is_current_month = is_current_month
        self._widgets: list[QWidget] = []
        self._overflow = 0
        self._setup_ui()

    @property
    def date(self) -> date:
        return self._date

    @property
    def visible_count(self) -> int:
        return sum(1 for w in self._widgets if isinstance(w, AppointmentWidget))

    @property
    def overflow_count(self) -> int:
        return self._overflow

    def _setup_ui(self):
        self.setFrameStyle(QFrame.Box | QFrame.Plain)
        self.setMinimumSize(80, 80)
        self.setCursor(Qt.PointingHandCursor)
        self.setToolTip(_labels_config.click_to_add)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(2)

        self._day_label = QLabel(str(self._date.day))
        self._day_label.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        layout.addWidget(self._day_label)

        self._appointments_layout = QVBoxLayout()
        self._appointments_layout.setSpacing(1)
        layout.addLayout(self._appointments_layout)
        layout.addStretch()

    def set_today(self, today: date):
        """Restyle for the given current date (today gets a highlighted number)."""
        colors = get_colors_config()
        bg = colors.month_cell_current if self.is_current_month else colors.month_cell_other
        text = colors.month_text_current if self.is_current_month else colors.month_text_other

        if self._date == today:
            self._day_label.setStyleSheet(
                f"color: {colors.today_highlight_text}; font-weight: bold; "
                f"background: {colors.today_highlight_background}; border-radius: 10px; padding: 2px 6px;"
            )
        else:
            self._day_label.setStyleSheet(f"color: {text};")

        self.setStyleSheet(f"MonthDayCell {{ background-color: {bg}; border: 1px solid {colors.cell_border}; }}")

    def set_appointments(self, appointments: list, max_visible: int):
        self.clear_appointments()
        for appointment in appointments[:max_visible]:
            widget = AppointmentWidget(appointment, compact=True)
            widget.clicked.connect(self.appointment_clicked.emit)
            self._appointments_layout.addWidget(widget)
            self._widgets.append(widget)
        self._overflow = max(len(appointments) - max_visible, 0)
        if self._overflow:
            more = QLabel(_labels_config.more_appointments.format(self._overflow))
            more.setStyleSheet(f"color: {get_colors_config().secondary_text};")
            self._appointments_layout.addWidget(more)
            self._widgets.append(more)

    def clear_appointments(self):
        for widget in self._widgets:
            widget.deleteLater()
        self._widgets.clear()
        self._overflow = 0

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() == Qt.LeftButton:
            self.clicked.emit(self._date)
        super().mousePressEvent(event)


class MonthView(QWidget):
    """Month grid from the Sunday before the 1st to the Saturday after the last day."""

    slot_clicked = Signal(object, object, object)
    appointment_clicked = Signal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._cells: list[MonthDayCell] = []
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        header = QWidget()
        header_layout = QHBoxLayout(header)
        header_layout.setContentsMargins(0, 0, 0, 0)
        header_layout.setSpacing(1)
        localization = get_localization_config()
        for name in localization.day_names:
            label = QLabel(name)
            label.setAlignment(Qt.AlignCenter)
            label.setStyleSheet(_header_style(False))
            header_layout.addWidget(label, 1)
        layout.addWidget(header)

        grid_widget = QWidget()
        self._grid_layout = QGridLayout(grid_widget)
        self._grid_layout.setContentsMargins(0, 0, 0, 0)
        self._grid_layout.setSpacing(1)
        for col in range(7):
            self._grid_layout.setColumnStretch(col, 1)
        layout.addWidget(grid_widget, 1)

    @property
    def cells(self) -> list[MonthDayCell]:
        return list(self._cells)

    def _rebuild_grid(self, weeks: list[list[date]], month: int):
        for cell in self._cells:
            self._grid_layout.removeWidget(cell)
            cell.deleteLater()
        self._cells = []
        for row, week in enumerate(weeks):
            for col, day in enumerate(week):
                cell = MonthDayCell(day, day.month == month)
                cell.clicked.connect(lambda d: self.slot_clicked.emit(d, None, None))
                cell.appointment_clicked.connect(self.appointment_clicked.emit)
                self._grid_layout.addWidget(cell, row, col)
                self._cells.append(cell)
        for row in range(len(weeks)):
            self._grid_layout.setRowStretch(row, 1)

    def render(self, reference_date: date, placement: Placement, now: datetime):
        weeks = month_grid(reference_date)
        self._rebuild_grid(weeks, reference_date.month)
        max_visible = _layout_config.month_max_visible
        for cell in self._cells:
            cell.set_today(now.date())
            cell.set_appointments(appointments_for_day(placement, cell.date), max_visible)


class CalendarWidget(QWidget):
    """Main calendar widget with switchable views."""

    slot_clicked = Signal(object, object, object)  # date, hour or None, quarter or None
    appointment_clicked = Signal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._view_mode = ViewMode.MONTH
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self._stack = QStackedWidget()
        self._month_view = MonthView()
        self._week_view = WeekView()
        self._day_view = DayView()
        self._views = {
            ViewMode.MONTH: self._month_view,
            ViewMode.WEEK: self._week_view,
            ViewMode.DAY: self._day_view,
        }
        for view in self._views.values():
            view.slot_clicked.connect(self.slot_clicked.emit)
            view.appointment_clicked.connect(self.appointment_clicked.emit)
            self._stack.addWidget(view)

        layout.addWidget(self._stack)
        self._stack.setCurrentWidget(self._month_view)

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    def view_for(self, view_mode: ViewMode):
        return self._views[view_mode]

    def current_view(self):
        return self._views[self._view_mode]

    def render(self, reference_date: date, view_mode: ViewMode, placement: Placement,
               now: Optional[datetime] = None):
        """Show the view for view_mode and render it."""
        self._view_mode = view_mode
        view = self._views[view_mode]
        if self._stack.currentWidget() is not view:
            self._stack.setCurrentWidget(view)
        view.render(reference_date, placement, now or now_local())
