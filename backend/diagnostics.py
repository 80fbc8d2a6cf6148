"""
Debug output for CRM Calendar.

Modules create a tagged printer with make_debug_printer() and write
timestamped lines to stderr. Output is off unless enabled by --debug.
"""

from datetime import datetime
from typing import Callable
import sys


_debug_enabled: bool = False


def set_debug(enabled: bool):
    """Enable or disable debug output for the whole application."""
    global _debug_enabled
    _debug_enabled = enabled


def is_debug() -> bool:
    return _debug_enabled


def make_debug_printer(component: str) -> Callable[[str], None]:
    """Return a printer that prefixes messages with a timestamp and component tag."""
    def _debug_print(msg: str) -> None:
        if not _debug_enabled:
            return
        timestamp = datetime.now().strftime("%H:%M:%S")
        print(f"[{timestamp}] {component}: {msg}", file=sys.stderr)
    return _debug_print
