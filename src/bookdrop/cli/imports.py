"""Import command.

Commands: import
"""

from __future__ import annotations

import logging
from typing import Annotated

import typer

from bookdrop.cli._app import CORE_COMMANDS

logger = logging.getLogger(__name__)


def _format_size(num_bytes: int) -> str:
    size = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def register_import_commands(app: typer.Typer) -> None:
    """Register the import command on the main app."""

    @app.command("import", rich_help_panel=CORE_COMMANDS)
    def import_command(
        ctx: typer.Context,
        source: Annotated[
            str,
            typer.Argument(metavar="SOURCE", help="File path, file:// URI or http(s) link."),
        ],
        dest: Annotated[
            str | None,
            typer.Option(
                "--dest",
                "-d",
                help="Destination folder or locator (tree:///path); skips the remembered one.",
            ),
        ] = None,
        yes: Annotated[
            bool,
            typer.Option("--yes", "-y", help="Grant storage access without asking."),
        ] = False,
    ) -> None:
        """Import a book into the library.

        Copies the book unless an entry with the same name is already as new.

        [bold]Examples:[/]
          bookdrop import ~/Downloads/book.epub
          bookdrop import https://example.org/book.epub
          bookdrop import book.epub --dest tree:///mnt/books
        """
        from bookdrop.backends import DestinationRef, parse_destination
        from bookdrop.cli._context import get_runtime_context
        from bookdrop.exceptions import BookdropError
        from bookdrop.reconcile import ImportDecision
        from bookdrop.sources import http_client, open_document
        from bookdrop.ui import fatal_error, print_dry_run, print_success, print_warning

        runtime = get_runtime_context(ctx)
        settings = runtime.settings

        destination: DestinationRef | None = None
        if dest is not None:
            try:
                destination = parse_destination(dest)
            except ValueError as e:
                raise typer.BadParameter(str(e), param_hint="--dest") from e

        try:
            with http_client(settings.http.timeout_seconds, settings.http.user_agent) as client:
                document = open_document(source, client, retries=settings.http.retries)
                flow = runtime.build_flow(assume_yes=yes)
                outcome = flow.run(document, destination=destination)
        except BookdropError as e:
            logger.debug("Import failed: %s %s", type(e).__name__, e.details)
            fatal_error(e.message)
            raise typer.Exit(1) from e

        if outcome.advisory:
            print_warning(outcome.advisory)

        if outcome.dry_run:
            verb = "skip" if outcome.decision is ImportDecision.UP_TO_DATE else "copy"
            print_dry_run(f"Would {verb} {outcome.name} -> {outcome.locator}")
        elif outcome.decision is ImportDecision.UP_TO_DATE:
            print_success(f"Already up to date: {outcome.locator}")
        else:
            print_success(
                f"Imported {outcome.name} -> {outcome.locator} "
                f"({_format_size(outcome.bytes_copied)})"
            )
