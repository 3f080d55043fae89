"""History command.

Commands: history
"""

from __future__ import annotations

import json
from typing import Annotated

import typer

from bookdrop.cli._app import STATE_COMMANDS


def register_history_commands(app: typer.Typer) -> None:
    """Register the history command on the main app."""

    @app.command("history", rich_help_panel=STATE_COMMANDS)
    def history_command(
        ctx: typer.Context,
        limit: Annotated[
            int,
            typer.Option("--limit", "-n", min=1, help="Maximum entries to show."),
        ] = 20,
        json_output: Annotated[
            bool,
            typer.Option("--json", "-j", help="Output as JSON."),
        ] = False,
    ) -> None:
        """List recent imports, newest first."""
        from rich.table import Table

        from bookdrop.cli._context import exit_on_state_error, get_runtime_context
        from bookdrop.store import ImportHistory
        from bookdrop.ui import console, print_info

        runtime = get_runtime_context(ctx)
        with exit_on_state_error():
            records = ImportHistory(runtime.state_file).recent(limit)

        if json_output:
            typer.echo(json.dumps([r.model_dump() for r in records], indent=2))
            return

        if not records:
            print_info("No imports yet")
            return

        table = Table(title="Recent imports", show_lines=False)
        table.add_column("When", style="dim", no_wrap=True)
        table.add_column("Book")
        table.add_column("Result", style="decision")
        table.add_column("Destination", style="path")
        for record in records:
            table.add_row(
                record.imported_at[:19].replace("T", " "),
                record.name,
                record.decision.replace("_", " "),
                record.destination,
            )
        console.print(table)
