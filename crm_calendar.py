#!/usr/bin/env python3
"""
CRM Calendar - A PySide6 desktop calendar for CRM appointments.

This is the main entry point for the application.
"""

import sys
import argparse
from pathlib import Path

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import Qt

from backend.config import Config
from backend.diagnostics import set_debug
from backend.timezone_utils import set_timezone
from gui.main_window import MainWindow


EXAMPLE_CONFIG = """
[General]
password_program = "/usr/bin/pass"
timezone = "Europe/Berlin"
refresh_interval = 300

[Api]
base_url = "https://crm.example.com"
token_key = "crm/api-token"
default_assignee = ""

[Bindings]
next = "Right"
prev = "Left"
today = "T"
new_appointment = "Ctrl+N"
"""


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="CRM Calendar - A desktop calendar for CRM appointments"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to configuration file (default: auto-detect)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )
    return parser.parse_args()


def main():
    """Main entry point."""
    args = parse_args()
    set_debug(args.debug)

    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv)
    app.setApplicationName("CRM Calendar")
    app.setApplicationVersion("0.1")
    app.setStyle("Fusion")

    try:
        config = Config.load(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print("\nPlease create a configuration file at:")
        print(f"  - {Config.get_default_config_path()}")
        print("\nExample configuration:")
        print(EXAMPLE_CONFIG)
        sys.exit(1)
    except (OSError, ValueError) as e:
        print(f"Error loading configuration: {e}")
        sys.exit(1)

    set_timezone(config.timezone)

    if args.debug:
        print(f"Loaded configuration from: {args.config or Config.get_default_config_path()}")
        print(f"  API: {config.api.base_url}")
        print(f"  Timezone: {config.timezone}")

    window = MainWindow(config)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
