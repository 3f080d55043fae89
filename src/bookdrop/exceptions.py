"""
Bookdrop exception hierarchy.

Provides typed exceptions so callers can match on recoverable conditions
instead of catching raw I/O failures.

Exception Hierarchy:
    BookdropError (base)
    ├── ConfigurationError - Config file issues, invalid settings
    ├── ImportFailure - Import attempt failures
    │   ├── PermissionDenied - Destination refused entry creation (re-select)
    │   ├── SourceUnreadable - Source could not be opened or read
    │   ├── DestinationWriteFailed - Copy started but did not complete
    │   ├── UserDeclinedSelection - Destination picker dismissed
    │   └── StoragePermissionRefused - Storage access not granted
    └── StateError - State file operations
        ├── StateLockError - Lock acquisition failures
        └── StateCorruptionError - State file corruption
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class BookdropError(Exception):
    """Base exception for all bookdrop errors."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """
        Initialize bookdrop exception.

        Args:
            message: Human-readable error message
            details: Optional structured error details for logging/debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(BookdropError):
    """Configuration file or settings error."""

    def __init__(
        self,
        message: str,
        *,
        config_file: Path | str | None = None,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if config_file:
            details["config_file"] = str(config_file)
        if field:
            details["field"] = field
        super().__init__(message, details=details)
        self.config_file = config_file
        self.field = field


# =============================================================================
# Import Errors
# =============================================================================


class ImportFailure(BookdropError):
    """Import attempt failure."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        destination: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if source:
            details["source"] = source
        if destination:
            details["destination"] = destination
        super().__init__(message, details=details)
        self.source = source
        self.destination = destination


class PermissionDenied(ImportFailure):
    """Destination refused to create a writable entry.

    Recoverable: the caller should re-enter destination selection.
    """

    def __init__(self, message: str, *, entry_name: str | None = None, **kwargs: Any) -> None:
        details = kwargs.get("details") or {}
        if entry_name:
            details["entry_name"] = entry_name
        kwargs["details"] = details
        super().__init__(message, **kwargs)
        self.entry_name = entry_name


class SourceUnreadable(ImportFailure):
    """Source document could not be opened or read to completion."""

    pass


class DestinationWriteFailed(ImportFailure):
    """Copy started but could not be completed."""

    def __init__(
        self,
        message: str,
        *,
        partial_entry: str | None = None,
        bytes_written: int = 0,
        **kwargs: Any,
    ) -> None:
        details = kwargs.get("details") or {}
        if partial_entry:
            details["partial_entry"] = partial_entry
        details["bytes_written"] = bytes_written
        kwargs["details"] = details
        super().__init__(message, **kwargs)
        self.partial_entry = partial_entry
        self.bytes_written = bytes_written


class UserDeclinedSelection(ImportFailure):
    """User dismissed the destination picker and no fallback was allowed."""

    pass


class StoragePermissionRefused(ImportFailure):
    """Storage access was not granted; nothing was imported."""

    def __init__(
        self,
        message: str,
        *,
        capabilities: tuple[str, ...] = (),
        **kwargs: Any,
    ) -> None:
        details = kwargs.get("details") or {}
        if capabilities:
            details["capabilities"] = list(capabilities)
        kwargs["details"] = details
        super().__init__(message, **kwargs)
        self.capabilities = capabilities


# =============================================================================
# State Errors
# =============================================================================


class StateError(BookdropError):
    """State file operation failure."""

    def __init__(
        self,
        message: str,
        *,
        state_file: Path | str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if state_file:
            details["state_file"] = str(state_file)
        super().__init__(message, details=details)
        self.state_file = state_file


class StateLockError(StateError):
    """Failed to acquire state file lock."""

    def __init__(
        self,
        message: str,
        *,
        lock_file: Path | str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.get("details") or {}
        if lock_file:
            details["lock_file"] = str(lock_file)
        kwargs["details"] = details
        super().__init__(message, **kwargs)
        self.lock_file = lock_file


class StateCorruptionError(StateError):
    """State file is corrupted and could not be recovered."""

    pass

