"""Shared pytest fixtures and helpers for bookdrop tests."""

from __future__ import annotations

import io
import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from bookdrop.backends import TreeEntry
from bookdrop.config import clear_settings
from bookdrop.env_settings import clear_env_settings_cache

_ENV_VARS = (
    "LOG_LEVEL",
    "BOOKDROP_ENV",
    "BOOKDROP_LIBRARY_DIR",
    "BOOKDROP_HTTP_TIMEOUT",
    "BOOKDROP_HTTP_USER_AGENT",
    "BOOKDROP_HTTP_RETRIES",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point every bookdrop directory at tmp_path and reset cached settings."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("BOOKDROP_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("BOOKDROP_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("BOOKDROP_CONFIG_DIR", str(tmp_path / "config"))
    clear_env_settings_cache()
    clear_settings()
    yield tmp_path
    clear_env_settings_cache()
    clear_settings()


# =============================================================================
# In-memory source documents
# =============================================================================


class _FailingReader(io.BytesIO):
    """Reader that raises after ``fail_after`` bytes."""

    def __init__(self, content: bytes, fail_after: int) -> None:
        super().__init__(content)
        self.fail_after = fail_after

    def read(self, size: int | None = -1) -> bytes:
        remaining = self.fail_after - self.tell()
        if remaining <= 0:
            raise OSError("Connection reset by peer")
        if size is None or size < 0 or size > remaining:
            size = remaining
        return super().read(size)


class MemoryDocument:
    """DocumentRef backed by bytes in memory."""

    def __init__(
        self,
        name: str,
        content: bytes = b"",
        last_modified: float = 0.0,
        *,
        structured: bool = True,
        fail_open: bool = False,
        fail_after: int | None = None,
    ) -> None:
        self.name = name
        self.content = content
        self.last_modified = last_modified
        self.is_structured_share = structured
        self.fail_open = fail_open
        self.fail_after = fail_after
        self.opens = 0

    @property
    def locator(self) -> str:
        return f"memory://{self.name}"

    def open(self) -> io.BytesIO:
        if self.fail_open:
            raise OSError("Document provider went away")
        self.opens += 1
        if self.fail_after is not None:
            return _FailingReader(self.content, self.fail_after)
        return io.BytesIO(self.content)


# =============================================================================
# In-memory document tree
# =============================================================================


class _EntryWriter(io.BytesIO):
    """Buffers writes and commits them to the tree on close."""

    def __init__(self, tree: MemoryTree, name: str) -> None:
        super().__init__()
        self._tree = tree
        self._name = name

    def write(self, data: bytes) -> int:  # type: ignore[override]
        if self._tree.fail_write:
            raise OSError("No space left on device")
        return super().write(data)

    def close(self) -> None:
        if not self.closed:
            self._tree._commit(self._name, self.getvalue())
        super().close()


class MemoryTree:
    """DocumentTree kept in a dict; each commit ticks a fake clock."""

    locator = "tree://memory/library"

    def __init__(
        self,
        *,
        refuse_create: bool = False,
        fail_write: bool = False,
        clock: float = 1000.0,
    ) -> None:
        self.files: dict[str, tuple[bytes, float]] = {}
        self.refuse_create = refuse_create
        self.fail_write = fail_write
        self.clock = clock
        self.created: list[tuple[str, str]] = []
        self.deleted: list[str] = []
        self.writes = 0

    def add(self, name: str, content: bytes, last_modified: float) -> None:
        self.files[name] = (content, last_modified)

    def content(self, name: str) -> bytes:
        return self.files[name][0]

    def _entry(self, name: str) -> TreeEntry:
        return TreeEntry(
            name=name,
            last_modified=self.files[name][1],
            locator=f"{self.locator}/{name}",
        )

    def _tick(self) -> float:
        self.clock += 1
        return self.clock

    def _commit(self, name: str, data: bytes) -> None:
        self.files[name] = (data, self._tick())

    def find(self, name: str) -> TreeEntry | None:
        return self._entry(name) if name in self.files else None

    def create(self, mime_type: str, name: str) -> TreeEntry | None:
        if self.refuse_create:
            return None
        self.files[name] = (b"", self._tick())
        self.created.append((name, mime_type))
        return self._entry(name)

    def open_write(self, entry: TreeEntry) -> _EntryWriter:
        self.writes += 1
        return _EntryWriter(self, entry.name)

    def delete(self, entry: TreeEntry) -> bool:
        self.files.pop(entry.name, None)
        self.deleted.append(entry.name)
        return True


# =============================================================================
# Fixtures
# =============================================================================


class InMemoryDestinationStore:
    """RememberedDestination kept in process memory."""

    def __init__(self, locator: str | None = None) -> None:
        self.locator = locator
        self.writes = 0

    def get(self) -> str | None:
        return self.locator

    def remember(self, locator: str) -> None:
        self.locator = locator
        self.writes += 1


def write_file(path: Path, content: bytes, mtime: float) -> Path:
    """Create a file with a fixed modification time."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def memory_tree() -> MemoryTree:
    return MemoryTree()


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    """A source book on disk with last_modified=100."""
    return write_file(tmp_path / "incoming" / "book.epub", b"EPUB book contents", 100.0)
