"""Tests for the bookdrop exception hierarchy."""

from __future__ import annotations

import pytest

from bookdrop.exceptions import (
    BookdropError,
    ConfigurationError,
    DestinationWriteFailed,
    ImportFailure,
    PermissionDenied,
    SourceUnreadable,
    StateCorruptionError,
    StateError,
    StateLockError,
    StoragePermissionRefused,
    UserDeclinedSelection,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_type",
        [
            PermissionDenied,
            SourceUnreadable,
            DestinationWriteFailed,
            UserDeclinedSelection,
            StoragePermissionRefused,
        ],
    )
    def test_import_errors(self, exc_type: type[ImportFailure]) -> None:
        assert issubclass(exc_type, ImportFailure)
        assert issubclass(exc_type, BookdropError)

    def test_state_errors(self) -> None:
        assert issubclass(StateLockError, StateError)
        assert issubclass(StateCorruptionError, StateError)

    def test_permission_denied_is_not_an_oserror(self) -> None:
        assert not issubclass(PermissionDenied, OSError)


class TestDetails:
    def test_base_message(self) -> None:
        error = BookdropError("boom")

        assert str(error) == "boom"
        assert error.details == {}

    def test_configuration_error(self) -> None:
        error = ConfigurationError("bad", config_file="config.yaml", field="import.chunk_size")

        assert error.details == {"config_file": "config.yaml", "field": "import.chunk_size"}

    def test_import_failure_locators(self) -> None:
        error = SourceUnreadable("gone", source="file:///a.epub", destination="/lib")

        assert error.source == "file:///a.epub"
        assert error.details == {"source": "file:///a.epub", "destination": "/lib"}

    def test_permission_denied_entry_name(self) -> None:
        error = PermissionDenied("no", entry_name="a.epub", destination="tree:///lib")

        assert error.entry_name == "a.epub"
        assert error.details["entry_name"] == "a.epub"
        assert error.details["destination"] == "tree:///lib"

    def test_destination_write_failed(self) -> None:
        error = DestinationWriteFailed("disk full", partial_entry="/lib/a.epub", bytes_written=10)

        assert error.details["partial_entry"] == "/lib/a.epub"
        assert error.details["bytes_written"] == 10

    def test_destination_write_failed_without_partial(self) -> None:
        error = DestinationWriteFailed("disk full")

        assert error.partial_entry is None
        assert "partial_entry" not in error.details

    def test_storage_permission_refused(self) -> None:
        error = StoragePermissionRefused("denied", capabilities=("storage",))

        assert error.details["capabilities"] == ["storage"]

    def test_state_lock_error(self) -> None:
        error = StateLockError("locked", lock_file="/tmp/s.lock", state_file="/tmp/s.json")

        assert error.details == {"state_file": "/tmp/s.json", "lock_file": "/tmp/s.lock"}
