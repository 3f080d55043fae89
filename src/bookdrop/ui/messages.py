"""Simple message printing helpers for the bookdrop UI."""

from __future__ import annotations

from rich.markup import escape

from bookdrop.ui.core import console, err_console


def print_success(message: str) -> None:
    """Print a success message with checkmark.

    Example:
        >>> print_success("Imported book.epub")
          ✓ Imported book.epub
    """
    console.print(f"  [success]✓[/] {escape(message)}")


def print_error(message: str) -> None:
    """Print an error message with X."""
    err_console.print(f"  [error]✗[/] {escape(message)}")


def print_warning(message: str) -> None:
    """Print a warning message.

    Example:
        >>> print_warning("No folder chosen")
          ! No folder chosen
    """
    console.print(f"  [warning]![/] {escape(message)}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"  [info]→[/] {escape(message)}")


def print_dry_run(message: str) -> None:
    """Print a dry-run message.

    Example:
        >>> print_dry_run("Would copy book.epub")
          [DRY RUN] Would copy book.epub
    """
    console.print(f"  [warning]\\[DRY RUN][/] {escape(message)}")


def confirm(message: str, default: bool = False) -> bool:
    """Ask for user confirmation.

    Args:
        message: The question to ask
        default: Default answer if user presses Enter

    Returns:
        True if user confirmed, False otherwise
    """
    suffix = " [Y/n]" if default else " [y/N]"
    try:
        response = console.input(f"[warning]?[/] {escape(message)}{escape(suffix)} ")
        if not response:
            return default
        return response.strip().lower() in ("y", "yes")
    except (KeyboardInterrupt, EOFError):
        console.print()
        return False


def ask(message: str) -> str:
    """Ask for a line of input; empty string on Ctrl-C/EOF."""
    try:
        return console.input(f"[warning]?[/] {escape(message)} ").strip()
    except (KeyboardInterrupt, EOFError):
        console.print()
        return ""


def fatal_error(message: str, hint: str | None = None) -> None:
    """Print a fatal error and an optional hint.

    Example:
        >>> fatal_error("Config not found", "Check --config")
    """
    err_console.print(f"\n[error]Error:[/] {escape(message)}")
    if hint:
        err_console.print(f"[dim]Hint: {escape(hint)}[/]")
