"""App configuration and main callback for the CLI.

This module contains the Typer application factories, the main callback and
the help panel names shared by the command modules.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer

from bookdrop.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# =============================================================================
# Help Panel Names
# =============================================================================

CORE_COMMANDS = "Import"
DEST_COMMANDS = "Destination"
STATE_COMMANDS = "History"


# =============================================================================
# Version Callback
# =============================================================================


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from bookdrop import __version__
        from bookdrop.ui import console

        console.print(f"[title]bookdrop[/] {__version__}")
        raise typer.Exit()


# =============================================================================
# App Factory
# =============================================================================


MAIN_EPILOG = """
[bold cyan]Examples:[/]
  bookdrop import ~/Downloads/book.epub            [dim]# Copy into the library folder[/]
  bookdrop import https://example.org/book.epub    [dim]# Import a shared link[/]
  bookdrop --dry-run import book.epub              [dim]# Show what would happen[/]

[bold cyan]Tips:[/]
  - Shared links go to the folder you picked last time ([green]bookdrop dest show[/])
  - Global flags like [green]--dry-run[/] go [bold]BEFORE[/] the command
"""


def make_app() -> typer.Typer:
    """Create and configure the main Typer application."""
    return typer.Typer(
        name="bookdrop",
        help="Import shared books into your library folder",
        epilog=MAIN_EPILOG,
        rich_markup_mode="rich",
        pretty_exceptions_enable=False,
        no_args_is_help=True,
        add_completion=False,
        context_settings={"help_option_names": ["-h", "--help"]},
    )


DEST_EPILOG = """
[bold cyan]Common Tasks:[/]
  bookdrop dest show           [dim]# Where shared books go[/]
  bookdrop dest set ~/Books    [dim]# Remember a folder[/]
  bookdrop dest forget         [dim]# Ask again next time[/]
"""


def make_dest_app() -> typer.Typer:
    """Create the destination sub-app."""
    return typer.Typer(
        name="dest",
        help="Manage the remembered destination folder",
        epilog=DEST_EPILOG,
        rich_markup_mode="rich",
        no_args_is_help=True,
    )


# =============================================================================
# Main Callback Factory
# =============================================================================


def create_main_callback(app: typer.Typer) -> None:
    """Register the main callback on the app."""

    @app.callback(invoke_without_command=True)
    def main_callback(
        ctx: typer.Context,
        version: Annotated[
            bool,
            typer.Option(
                "--version",
                "-V",
                callback=version_callback,
                is_eager=True,
                help="Show version and exit.",
            ),
        ] = False,
        verbose: Annotated[
            bool,
            typer.Option("--verbose", "-v", help="Enable verbose (DEBUG) logging."),
        ] = False,
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to config.yaml (default: config/config.yaml).",
                exists=False,  # Missing config means defaults
            ),
        ] = None,
        dry_run: Annotated[
            bool,
            typer.Option("--dry-run", help="Show what would happen without making changes."),
        ] = False,
    ) -> None:
        """Import shared books into your library folder.

        [cyan]source → destination → copy if newer[/]
        """
        from bookdrop.cli._context import RuntimeContext
        from bookdrop.config import reload_settings
        from bookdrop.logging_setup import setup_logging
        from bookdrop.paths import default_config_file
        from bookdrop.ui import fatal_error

        config_path = config or default_config_file()
        try:
            settings = reload_settings(config_file=config_path)
        except ConfigurationError as e:
            fatal_error(e.message, hint=f"Check {config_path}")
            raise typer.Exit(2) from e

        setup_logging(settings.log_level, settings.paths.log_file, verbose=verbose)
        logger.debug("Loaded settings from %s", settings.config_file or "defaults")

        ctx.obj = RuntimeContext(
            config_path=config_path,
            settings=settings,
            dry_run=dry_run,
            verbose=verbose,
        )
