"""Logging configuration for bookdrop.

Console output goes to stderr so it never mixes with ``history --json`` on
stdout. Without ``--verbose`` the console only shows warnings; the log file
always receives everything the package logger lets through.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "bookdrop"
FILE_FORMAT = "%(asctime)s | %(levelname)-5s | [%(name)s] %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _console_handler(level: int, rich_console: bool) -> logging.Handler:
    handler: logging.Handler
    if rich_console:
        # Book titles and paths may contain [brackets]
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    handler.setLevel(level)
    return handler


def _file_handler(log_file: Path) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_file: Path | str | None = None,
    *,
    verbose: bool = False,
    rich_console: bool = True,
) -> logging.Logger:
    """
    Configure the ``bookdrop`` logger.

    Safe to call more than once; earlier handlers are replaced.

    Args:
        log_level: Level for the package logger (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file; its directory is created if needed
        verbose: DEBUG everywhere, including the console
        rich_console: Use RichHandler for the console (plain stderr otherwise)

    Returns:
        The package logger
    """
    level = logging.DEBUG if verbose else getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    logger.addHandler(_console_handler(level if verbose else logging.WARNING, rich_console))
    if log_file:
        logger.addHandler(_file_handler(Path(log_file)))

    return logger
