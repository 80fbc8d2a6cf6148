"""
Mini calendar for the sidebar.

A compact month grid with its own displayed month. Dates that have
appointments get a dot; clicking a date emits date_selected.
"""

from datetime import date

from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QLabel, QPushButton
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QMouseEvent

from backend.date_range import add_months, month_grid, today
from .calendar_widget import get_colors_config, get_localization_config, get_labels_config


class MiniDayLabel(QLabel):
    """One clickable date in the mini calendar."""

    clicked = Signal(object)  # date

    def __init__(self, parent=None):
        super().__init__(parent)
        self._date = today()
        self.setAlignment(Qt.AlignCenter)
        self.setCursor(Qt.PointingHandCursor)
        self.setMinimumSize(24, 24)

    @property
    def date(self) -> date:
        return self._date

    def set_state(self, d: date, in_month: bool, selected: bool, is_today: bool, highlighted: bool):
        colors = get_colors_config()
        self._date = d
        # Dot under the number for days with appointments
        self.setText(f"{d.day}\n•" if highlighted else f"{d.day}\n ")
        if selected:
            style = f"background: {colors.mini_selected_background}; color: {colors.mini_selected_text}; border-radius: 4px;"
        elif is_today:
            style = f"color: {colors.today_highlight_background}; font-weight: bold;"
        elif in_month:
            style = f"color: {colors.month_text_current};"
        else:
            style = f"color: {colors.month_text_other};"
        self.setStyleSheet(f"QLabel {{ {style} font-size: 9pt; }}")

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() == Qt.LeftButton:
            self.clicked.emit(self._date)
        super().mousePressEvent(event)


class MiniCalendar(QWidget):
    """Month picker that marks highlighted dates."""

    date_selected = Signal(object)  # date

    def __init__(self, parent=None):
        super().__init__(parent)
        current = today()
        self._displayed = current.replace(day=1)
        self._selected = current
        self._highlighted: frozenset = frozenset()
        self._day_labels: list[MiniDayLabel] = []
        self._setup_ui()
        self._refresh()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(2)

        labels = get_labels_config()
        nav = QHBoxLayout()
        self._prev_btn = QPushButton(labels.button_prev)
        self._prev_btn.setFlat(True)
        self._prev_btn.clicked.connect(self.show_previous_month)
        nav.addWidget(self._prev_btn)
        self._title = QLabel()
        self._title.setAlignment(Qt.AlignCenter)
        nav.addWidget(self._title, 1)
        self._next_btn = QPushButton(labels.button_next)
        self._next_btn.setFlat(True)
        self._next_btn.clicked.connect(self.show_next_month)
        nav.addWidget(self._next_btn)
        layout.addLayout(nav)

        self._grid = QGridLayout()
        self._grid.setSpacing(1)
        for col, name in enumerate(get_localization_config().day_names):
            header = QLabel(name[:2])
            header.setAlignment(Qt.AlignCenter)
            header.setStyleSheet(f"color: {get_colors_config().secondary_text}; font-size: 8pt;")
            self._grid.addWidget(header, 0, col)
        # Up to six weeks
        for i in range(42):
            label = MiniDayLabel()
            label.clicked.connect(self._on_day_clicked)
            self._grid.addWidget(label, 1 + i // 7, i % 7)
            self._day_labels.append(label)
        layout.addLayout(self._grid)
        layout.addStretch()

    @property
    def displayed_month(self) -> date:
        return self._displayed

    @property
    def day_labels(self) -> list[MiniDayLabel]:
        return [label for label in self._day_labels if label.isVisibleTo(self)]

    def set_highlighted_dates(self, dates: frozenset):
        self._highlighted = frozenset(dates)
        self._refresh()

    def set_selected_date(self, d: date):
        """Follow the page's reference date, switching months when needed."""
        self._selected = d
        self._displayed = d.replace(day=1)
        self._refresh()

    def show_previous_month(self):
        self._displayed = add_months(self._displayed, -1)
        self._refresh()

    def show_next_month(self):
        self._displayed = add_months(self._displayed, 1)
        self._refresh()

    def _refresh(self):
        localization = get_localization_config()
        self._title.setText(f"{localization.get_month_name(self._displayed.month)} {self._displayed.year}")
        days = [d for week in month_grid(self._displayed) for d in week]
        current = today()
        for i, label in enumerate(self._day_labels):
            if i >= len(days):
                label.hide()
                continue
            d = days[i]
            label.set_state(
                d,
                in_month=d.month == self._displayed.month,
                selected=d == self._selected,
                is_today=d == current,
                highlighted=d in self._highlighted,
            )
            label.show()

    def _on_day_clicked(self, d: date):
        self._selected = d
        self._refresh()
        self.date_selected.emit(d)
