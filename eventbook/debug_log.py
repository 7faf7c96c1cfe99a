"""
Diagnostic output for Eventbook.

Messages go to stderr with a timestamp and a component tag, e.g.
``[14:02:11] REPO: Loaded 12 events``. Debug lines are silent unless
enabled by the shell; warnings are always printed.
"""

import sys
from datetime import datetime


_debug_enabled: bool = False


def set_debug(enabled: bool):
    """Enable or disable debug output for the whole application."""
    global _debug_enabled
    _debug_enabled = enabled


def _emit(tag: str, msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] {tag}: {msg}", file=sys.stderr)


def debug_print(tag: str, msg: str) -> None:
    if _debug_enabled:
        _emit(tag, msg)


def warning_print(tag: str, msg: str) -> None:
    _emit(tag, f"WARNING: {msg}")
