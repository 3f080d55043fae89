"""
Persisted state: the remembered destination and the import history.

Uses a JSON file with file locking and atomic writes so concurrent bookdrop
processes never see a half-written file.

State Structure:
    {
        "version": 1,
        "remembered_destination": "tree:///home/me/Books" | null,
        "remembered_at": ISO datetime | null,
        "history": [
            {
                "name": str,
                "source": str,
                "destination": str,
                "decision": "created" | "updated" | "up_to_date",
                "bytes_copied": int,
                "imported_at": ISO datetime,
                "advisory": str | null
            }
        ]
    }

The remembered destination is exposed through ``DestinationStore`` only; the
destination resolver is its single writer.
"""

from __future__ import annotations

import contextlib
import fcntl
import json
import logging
import os
import shutil
from collections.abc import Callable, Generator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from bookdrop.exceptions import StateCorruptionError, StateError, StateLockError
from bookdrop.reconcile import ImportOutcome
from bookdrop.schemas.state import (
    MAX_HISTORY_ENTRIES,
    BookdropState,
    ImportRecord,
    create_empty_state,
    validate_state,
)

logger = logging.getLogger(__name__)


class _Unreadable(Exception):
    """State file content could not be parsed or validated."""


def _parse_state_file(file_path: Path) -> BookdropState:
    try:
        with open(file_path, encoding="utf-8") as f:
            data: dict[str, Any] = json.load(f)
        return validate_state(data)
    except (json.JSONDecodeError, PydanticValidationError) as e:
        raise _Unreadable(str(e)) from e
    except OSError as e:
        raise StateError(f"Cannot read state file {file_path}: {e}", state_file=file_path) from e


class StateFile:
    """Locked, atomically written JSON state file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    @property
    def backup_path(self) -> Path:
        return self.path.with_suffix(self.path.suffix + ".bak")

    @property
    def lock_path(self) -> Path:
        return self.path.with_suffix(self.path.suffix + ".lock")

    @contextmanager
    def _locked(self) -> Generator[None, None, None]:
        """
        Exclusive state file access.

        Uses a dedicated .lock file (not the state file itself) so the atomic
        rename in _save_unsafe never swaps out the locked inode.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            lockf = open(self.lock_path, "a+")
        except OSError as e:
            raise StateLockError(
                f"Cannot open state lock file {self.lock_path}: {e}\n"
                "Check permissions or configure a valid paths.state_file.",
                lock_file=self.lock_path,
                state_file=self.path,
            ) from e

        with lockf:
            fcntl.flock(lockf.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lockf.fileno(), fcntl.LOCK_UN)

    def _load_unsafe(self) -> BookdropState:
        """
        Load state without locking.

        Recovery strategy:
        1. Try main state file
        2. If corrupt, try .bak backup
        3. If both fail, raise StateCorruptionError with recovery instructions
        """
        if not self.path.exists():
            if self.backup_path.exists():
                try:
                    state = _parse_state_file(self.backup_path)
                    logger.warning(
                        "Main state missing, recovered from backup: %s", self.backup_path
                    )
                    return state
                except _Unreadable:
                    logger.warning("Orphaned corrupt backup found: %s", self.backup_path)
            return create_empty_state()

        try:
            return _parse_state_file(self.path)
        except _Unreadable as e:
            main_error: Exception = e
            logger.warning("Corrupt state file %s: %s", self.path, e)

        if self.backup_path.exists():
            try:
                state = _parse_state_file(self.backup_path)
            except _Unreadable as backup_error:
                raise StateCorruptionError(
                    f"State file corrupt and backup also corrupt.\n\n"
                    f"Main file: {self.path}\n"
                    f"  Error: {main_error}\n\n"
                    f"Backup file: {self.backup_path}\n"
                    f"  Error: {backup_error}\n\n"
                    f"Delete both files to start fresh (the remembered folder "
                    f"and import history will be lost):\n"
                    f"   rm '{self.path}' '{self.backup_path}'",
                    state_file=self.path,
                ) from backup_error
            logger.warning("Main state corrupt, recovered from backup: %s", self.backup_path)
            self._save_unsafe(state)
            return state

        raise StateCorruptionError(
            f"State file corrupt and no backup found.\n\n"
            f"File: {self.path}\n"
            f"Error: {main_error}\n\n"
            f"Delete the file to start fresh:\n"
            f"   rm '{self.path}'",
            state_file=self.path,
        )

    def _save_unsafe(self, state: BookdropState) -> None:
        """
        Save state atomically without locking.

        1. Preserve last-known-good as .bak
        2. Write to .tmp and fsync
        3. os.replace() the tmp file over the state file
        """
        temp_file = self.path.with_suffix(self.path.suffix + ".tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.path.exists():
                shutil.copy2(self.path, self.backup_path)

            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(state.model_dump(), f, indent=2, ensure_ascii=False, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())

            os.replace(temp_file, self.path)
            logger.debug("Saved state to %s", self.path)

        except Exception as e:
            if temp_file.exists():
                with contextlib.suppress(OSError):
                    temp_file.unlink()
            logger.error("Failed to save state: %s", e)
            if isinstance(e, OSError):
                raise StateError(
                    f"Cannot write state file {self.path}: {e}", state_file=self.path
                ) from e
            raise

    def load(self) -> BookdropState:
        """Load state with locking (empty state if the file doesn't exist)."""
        with self._locked():
            return self._load_unsafe()

    def update(self, fn: Callable[[BookdropState], None]) -> BookdropState:
        """
        Read-modify-write under the lock.

        Args:
            fn: Function that mutates the state in place

        Returns:
            The saved state
        """
        with self._locked():
            state = self._load_unsafe()
            fn(state)
            self._save_unsafe(state)
            return state


class RememberedDestination(Protocol):
    """Narrow read/write interface to the remembered tree destination."""

    def get(self) -> str | None: ...

    def remember(self, locator: str) -> None: ...


class DestinationStore:
    """RememberedDestination backed by the state file."""

    def __init__(self, state_file: StateFile) -> None:
        self._state_file = state_file

    def get(self) -> str | None:
        return self._state_file.load().remembered_destination or None

    def remember(self, locator: str) -> None:
        def _set(state: BookdropState) -> None:
            state.remembered_destination = locator
            state.remembered_at = datetime.now().isoformat()

        self._state_file.update(_set)
        logger.info("Remembered destination: %s", locator)

    def forget(self) -> bool:
        """Clear the remembered destination. Returns True if one was set."""
        cleared = False

        def _clear(state: BookdropState) -> None:
            nonlocal cleared
            cleared = state.remembered_destination is not None
            state.remembered_destination = None
            state.remembered_at = None

        self._state_file.update(_clear)
        return cleared

    def remembered_at(self) -> str | None:
        return self._state_file.load().remembered_at


class ImportHistory:
    """Recent imports recorded in the state file."""

    def __init__(self, state_file: StateFile, *, max_entries: int = MAX_HISTORY_ENTRIES) -> None:
        self._state_file = state_file
        self.max_entries = max_entries

    def record(self, source: str, outcome: ImportOutcome) -> ImportRecord:
        record = ImportRecord(
            name=outcome.name,
            source=source,
            destination=outcome.locator,
            decision=outcome.decision.value,
            bytes_copied=outcome.bytes_copied,
            imported_at=datetime.now().isoformat(),
            advisory=outcome.advisory,
        )

        def _append(state: BookdropState) -> None:
            state.history.append(record)
            del state.history[: -self.max_entries]

        self._state_file.update(_append)
        return record

    def recent(self, limit: int = 20) -> list[ImportRecord]:
        """Most recent imports first."""
        history = self._state_file.load().history
        return list(reversed(history[-limit:])) if limit > 0 else []
