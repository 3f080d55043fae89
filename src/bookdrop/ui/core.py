"""Core console configuration and theme for the bookdrop UI.

This module provides the Rich console instances and theme that the other UI
modules build upon.
"""

from __future__ import annotations

from rich.console import Console
from rich.theme import Theme

BOOKDROP_THEME = Theme(
    {
        # Status colors
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        # Text styles
        "title": "bold white",
        "dim": "dim",
        # Semantic styles
        "path": "cyan",
        "decision": "magenta",
    }
)

# Primary console for normal output
console = Console(theme=BOOKDROP_THEME, stderr=False)

# Error console for stderr output
err_console = Console(theme=BOOKDROP_THEME, stderr=True)
