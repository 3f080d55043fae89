"""Destination commands.

Commands: dest show, dest set, dest forget
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


def register_dest_commands(dest_app: typer.Typer) -> None:
    """Register destination commands on the dest sub-app."""

    @dest_app.command("show")
    def dest_show(ctx: typer.Context) -> None:
        """Show where imports go."""
        from bookdrop.cli._context import exit_on_state_error, get_runtime_context
        from bookdrop.store import DestinationStore
        from bookdrop.ui import console

        runtime = get_runtime_context(ctx)
        store = DestinationStore(runtime.state_file)
        paths = runtime.settings.paths

        with exit_on_state_error():
            remembered = store.get()
            remembered_at = store.remembered_at() if remembered else None
        if remembered:
            console.print(f"[title]Shared books:[/]  [path]{remembered}[/]")
            console.print(f"  [dim]remembered at {remembered_at}[/]")
        else:
            console.print("[title]Shared books:[/]  [dim]not chosen yet (asked on next import)[/]")
        console.print(f"[title]Local files:[/]   [path]{paths.library_dir}[/]")
        console.print(f"[title]Fallback:[/]      [path]{paths.fallback_dir}[/]")

    @dest_app.command("set")
    def dest_set(
        ctx: typer.Context,
        folder: Annotated[
            Path,
            typer.Argument(metavar="FOLDER", help="Folder to save shared books in."),
        ],
    ) -> None:
        """Remember a folder for shared books."""
        from bookdrop.backends import tree_locator
        from bookdrop.cli._context import exit_on_state_error, get_runtime_context
        from bookdrop.ui import print_dry_run, print_success

        runtime = get_runtime_context(ctx)
        if folder.exists() and not folder.is_dir():
            raise typer.BadParameter(f"Not a folder: {folder}", param_hint="FOLDER")

        locator = tree_locator(folder)
        if runtime.dry_run:
            print_dry_run(f"Would remember {locator}")
            return

        with exit_on_state_error():
            runtime.build_resolver().grant(locator)
        print_success(f"Shared books will be saved to {locator}")

    @dest_app.command("forget")
    def dest_forget(ctx: typer.Context) -> None:
        """Forget the remembered folder (you will be asked again)."""
        from bookdrop.cli._context import exit_on_state_error, get_runtime_context
        from bookdrop.store import DestinationStore
        from bookdrop.ui import print_dry_run, print_info, print_success

        runtime = get_runtime_context(ctx)
        store = DestinationStore(runtime.state_file)
        if runtime.dry_run:
            with exit_on_state_error():
                remembered = store.get()
            print_dry_run(f"Would forget {remembered or 'nothing'}")
            return

        with exit_on_state_error():
            forgotten = store.forget()
        if forgotten:
            print_success("Forgot the remembered folder")
        else:
            print_info("No folder was remembered")
