"""Terminal UI components for bookdrop.

    from bookdrop.ui import console, print_success
"""

from bookdrop.ui.core import BOOKDROP_THEME, console, err_console
from bookdrop.ui.messages import (
    ask,
    confirm,
    fatal_error,
    print_dry_run,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from bookdrop.ui.prompts import ConsoleDestinationPicker, ConsolePermissionGate

__all__ = [
    "BOOKDROP_THEME",
    "ConsoleDestinationPicker",
    "ConsolePermissionGate",
    "ask",
    "confirm",
    "console",
    "err_console",
    "fatal_error",
    "print_dry_run",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
