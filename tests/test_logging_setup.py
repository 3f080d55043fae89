"""Tests for logging configuration."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from rich.logging import RichHandler

from bookdrop.logging_setup import LOGGER_NAME, setup_logging


@pytest.fixture(autouse=True)
def reset_bookdrop_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


class TestSetupLogging:
    def test_console_is_quiet_by_default(self) -> None:
        logger = setup_logging("INFO")

        assert logger.name == "bookdrop"
        assert logger.level == logging.INFO
        [handler] = logger.handlers
        assert isinstance(handler, RichHandler)
        assert handler.level == logging.WARNING

    def test_verbose_overrides_level(self) -> None:
        logger = setup_logging("ERROR", verbose=True)

        assert logger.level == logging.DEBUG
        assert logger.handlers[0].level == logging.DEBUG

    def test_plain_console_handler(self) -> None:
        logger = setup_logging("INFO", rich_console=False)

        [handler] = logger.handlers
        assert isinstance(handler, logging.StreamHandler)
        assert not isinstance(handler, RichHandler)

    def test_file_gets_info_the_console_hides(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "bookdrop.log"
        logger = setup_logging("INFO", log_file=log_file)

        logging.getLogger("bookdrop.reconcile").info("Imported %s", "book.epub")
        logging.getLogger("bookdrop.reconcile").debug("not at INFO")
        for handler in logger.handlers:
            handler.flush()

        text = log_file.read_text(encoding="utf-8")
        assert "INFO  | [bookdrop.reconcile] Imported book.epub" in text
        assert "not at INFO" not in text

    def test_verbose_file_logs_debug(self, tmp_path: Path) -> None:
        log_file = tmp_path / "bookdrop.log"
        logger = setup_logging("INFO", log_file=log_file, verbose=True)

        logging.getLogger("bookdrop.flow").debug("copied %d bytes", 12)
        for handler in logger.handlers:
            handler.flush()

        assert "[bookdrop.flow] copied 12 bytes" in log_file.read_text(encoding="utf-8")

    def test_repeat_setup_replaces_handlers(self, tmp_path: Path) -> None:
        setup_logging("INFO", log_file=tmp_path / "a.log")
        logger = setup_logging("INFO")

        assert len(logger.handlers) == 1

    def test_unknown_level_defaults_to_info(self) -> None:
        assert setup_logging("LOUD").level == logging.INFO
