"""
Configuration parser for CRM Calendar.

Handles TOML file parsing and secure API token retrieval via an external
password program.
"""

import tomllib
import subprocess
import os
from pathlib import Path
from dataclasses import dataclass, field, fields
from typing import Optional

from .diagnostics import make_debug_printer


_debug_print = make_debug_printer("CONFIG")


@dataclass
class ApiConfig:
    """Connection settings for the CRM REST backend."""
    base_url: str = "http://localhost:8000"
    token_key: str = ""          # Key passed to the password program; empty for no auth
    timeout: int = 30            # Request timeout in seconds
    default_assignee: str = ""   # Assignee filter applied at startup

    _token: Optional[str] = field(default=None, repr=False)

    def get_token(self, password_program: str) -> Optional[str]:
        """Retrieve the API token using the configured password program."""
        if not self.token_key:
            return None
        if self._token is None:
            try:
                result = subprocess.run(
                    [password_program, self.token_key],
                    capture_output=True,
                    text=True,
                    timeout=30
                )
            except subprocess.TimeoutExpired:
                raise RuntimeError(f"Password program timed out for key '{self.token_key}'")
            except FileNotFoundError:
                raise RuntimeError(f"Password program not found: {password_program}")
            if result.returncode != 0:
                raise RuntimeError(
                    f"Password program failed for key '{self.token_key}': {result.stderr}"
                )
            self._token = result.stdout.strip()
        return self._token


@dataclass
class LayoutConfig:
    """Configuration for UI layout and fonts."""
    interface_font: str = "Sans"
    interface_font_size: int = 12
    text_font: str = "Sans"
    text_font_size: int = 11
    hour_height: int = 60         # Height of an hour row in day/week view in pixels
    month_max_visible: int = 3    # Pills shown per month cell before "+N more"


@dataclass
class BindingsConfig:
    """Configuration for keyboard bindings."""
    next: str = "Right"
    prev: str = "Left"
    today: str = "T"
    new_appointment: str = "Ctrl+N"


@dataclass
class ColorsConfig:
    """Configuration for UI colors."""
    # Grid
    day_column_background: str = "#ffffff"
    hour_line: str = "#e8e8e8"
    cell_border: str = "#e0e0e0"
    cell_hover: str = "#eff6ff"
    past_hour_background: str = "#f8fafc"
    current_time_line: str = "#ef4444"

    # Header/Navigation
    header_background: str = "#f5f5f5"
    today_highlight_background: str = "#2563eb"
    today_highlight_text: str = "#ffffff"

    # Month view
    month_cell_current: str = "#ffffff"
    month_cell_other: str = "#f5f5f5"
    month_text_current: str = "#000000"
    month_text_other: str = "#999999"

    # Mini calendar
    mini_selected_background: str = "#2563eb"
    mini_selected_text: str = "#ffffff"

    # Secondary text
    secondary_text: str = "rgba(0, 0, 0, 0.6)"
    tertiary_text: str = "rgba(0, 0, 0, 0.7)"

    # Buttons
    button_save_background: str = "#2563eb"
    button_save_text: str = "#ffffff"

    # Notices
    error_text: str = "#dc2626"


@dataclass
class LabelsConfig:
    """Configuration for UI labels."""
    # Main window
    window_title: str = "CRM Calendar"
    assignee_placeholder: str = "Filter by assignee ID"

    # View switcher
    view_day: str = "Day"
    view_week: str = "Week"
    view_month: str = "Month"

    # Toolbar
    button_prev: str = "◀"
    button_next: str = "▶"
    button_today: str = "Today"
    button_new_appointment: str = "New Appointment"
    button_reload: str = "Reload"
    loading: str = "Loading..."

    # Quick-create dialog
    dialog_new_appointment: str = "New Appointment"
    field_title: str = "Title:"
    field_contact: str = "Contact ID:"
    field_assignee: str = "Assigned to:"
    field_start: str = "Start:"
    field_end: str = "End:"
    field_location: str = "Location:"
    field_color: str = "Color:"
    button_create: str = "Create"
    button_cancel: str = "Cancel"

    # Detail panel
    panel_title: str = "Appointment"
    panel_empty: str = "Select an appointment to see its details."
    panel_loading: str = "Loading details..."

    # Grid
    click_to_add: str = "Click to add"
    more_appointments: str = "+{} more"
    recurrence_icon: str = "↻"
    location_icon: str = "📍"
    contact_icon: str = "👤"
    hidden_appointments: str = "{} appointment(s) outside {} - {}"


@dataclass
class LocalizationConfig:
    """Configuration for localized day and month names."""
    # Sunday-first abbreviated day names
    day_names: list[str] = None
    # Full month names
    month_names: list[str] = None
    # Full Sunday-first day names, used in the day view title
    long_day_names: list[str] = None

    def __post_init__(self):
        if self.day_names is None:
            self.day_names = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
        if self.month_names is None:
            self.month_names = [
                "January", "February", "March", "April", "May", "June",
                "July", "August", "September", "October", "November", "December"
            ]
        if self.long_day_names is None:
            self.long_day_names = [
                "Sunday", "Monday", "Tuesday", "Wednesday",
                "Thursday", "Friday", "Saturday"
            ]

    @staticmethod
    def _sunday_index(weekday: int) -> int:
        # date.weekday() is Monday=0; the lists start on Sunday
        return (weekday + 1) % 7

    def get_day_name(self, weekday: int) -> str:
        """Abbreviated day name for a date.weekday() value (0=Monday)."""
        idx = self._sunday_index(weekday)
        return self.day_names[idx] if idx < len(self.day_names) else ""

    def get_long_day_name(self, weekday: int) -> str:
        """Full day name for a date.weekday() value (0=Monday)."""
        idx = self._sunday_index(weekday)
        return self.long_day_names[idx] if idx < len(self.long_day_names) else ""

    def get_month_name(self, month: int) -> str:
        """Full month name (1=January, 12=December)."""
        return self.month_names[month - 1] if 1 <= month <= len(self.month_names) else ""

    def get_short_month_name(self, month: int) -> str:
        return self.get_month_name(month)[:3]


def _section(cls, data: dict):
    """Build a config dataclass from a TOML table, keeping defaults for missing keys."""
    defaults = cls()
    kwargs = {}
    for f in fields(cls):
        if f.name.startswith('_'):
            continue
        kwargs[f.name] = data.get(f.name, getattr(defaults, f.name))
    return cls(**kwargs)


@dataclass
class Config:
    """Main configuration container for CRM Calendar."""

    password_program: str
    state_file: Path
    refresh_interval: int = 300  # Auto-refresh interval in seconds (0 to disable)
    timezone: str = "UTC"
    api: ApiConfig = field(default_factory=ApiConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    bindings: BindingsConfig = field(default_factory=BindingsConfig)
    localization: LocalizationConfig = field(default_factory=LocalizationConfig)
    colors: ColorsConfig = field(default_factory=ColorsConfig)
    labels: LabelsConfig = field(default_factory=LabelsConfig)

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'crm-calendar' / 'crm-calendar.toml'

    @classmethod
    def get_default_state_path(cls) -> Path:
        """Get the default state file path."""
        xdg_state = os.environ.get('XDG_STATE_HOME', os.path.expanduser('~/.local/state'))
        return Path(xdg_state) / 'crm-calendar' / 'state.json'

    def get_api_token(self) -> Optional[str]:
        return self.api.get_token(self.password_program)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """Load configuration from TOML file."""
        if config_path is None:
            config_path = cls.get_default_config_path()

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'rb') as f:
            data = tomllib.load(f)
        _debug_print(f"TOML sections: {list(data.keys())}")

        # Parse General section
        general = data.get('General', {})
        password_program = general.get('password_program', '/usr/bin/pass')
        refresh_interval = general.get('refresh_interval', 300)
        timezone = general.get('timezone', 'UTC')

        state_file_str = general.get('state_file', str(cls.get_default_state_path()))
        state_file = Path(os.path.expanduser(state_file_str))

        api = _section(ApiConfig, data.get('Api', {}))
        api.base_url = api.base_url.rstrip('/')
        _debug_print(f"API base_url={api.base_url} token_key={'set' if api.token_key else 'unset'}")

        layout = _section(LayoutConfig, data.get('Layout', {}))
        bindings = _section(BindingsConfig, data.get('Bindings', {}))
        colors = _section(ColorsConfig, data.get('Colors', {}))
        labels = _section(LabelsConfig, data.get('Labels', {}))

        # Localization names are space-separated strings
        localization_data = data.get('Localization', {})
        day_names_str = localization_data.get('day_names', '')
        month_names_str = localization_data.get('month_names', '')
        long_day_names_str = localization_data.get('long_day_names', '')
        localization = LocalizationConfig(
            day_names=day_names_str.split() if day_names_str else None,
            month_names=month_names_str.split() if month_names_str else None,
            long_day_names=long_day_names_str.split() if long_day_names_str else None,
        )

        return cls(
            password_program=password_program,
            state_file=state_file,
            refresh_interval=refresh_interval,
            timezone=timezone,
            api=api,
            layout=layout,
            bindings=bindings,
            localization=localization,
            colors=colors,
            labels=labels,
        )
