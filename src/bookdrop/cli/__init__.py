"""bookdrop CLI built with Typer and Rich.

Commands:
- import: import a file or shared link
- dest show / dest set / dest forget: the remembered destination folder
- history: recent imports
"""

from __future__ import annotations

from bookdrop.cli._app import (
    CORE_COMMANDS,
    DEST_COMMANDS,
    STATE_COMMANDS,
    create_main_callback,
    make_app,
    make_dest_app,
)
from bookdrop.cli._context import RuntimeContext, get_runtime_context
from bookdrop.cli.dest import register_dest_commands
from bookdrop.cli.history import register_history_commands
from bookdrop.cli.imports import register_import_commands

app = make_app()
dest_app = make_dest_app()

app.add_typer(dest_app, name="dest", rich_help_panel=DEST_COMMANDS)

# Handles --version, --verbose, --config, --dry-run
create_main_callback(app)

register_import_commands(app)
register_dest_commands(dest_app)
register_history_commands(app)


def main() -> None:
    """Entry point for the bookdrop console script."""
    app()


__all__ = [
    "CORE_COMMANDS",
    "DEST_COMMANDS",
    "STATE_COMMANDS",
    "RuntimeContext",
    "app",
    "dest_app",
    "get_runtime_context",
    "main",
]
