"""
Import reconciliation: copy a source document into a destination if needed.

The algorithm is the same for both destination variants:

1. Look up the child entry named after the source.
2. Copy when the entry is missing or strictly older than the source.
3. Skip when the entry is as recent or newer (equal timestamps never re-copy).
4. Return a locator for the now-current entry.

Backend-specific primitives live in the ``_TreeSlot`` / ``_PathSlot``
adapters; every low-level failure is translated into a bookdrop ImportFailure
before it leaves this module.
"""

from __future__ import annotations

import io
import logging
import mimetypes
import os
import stat
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import BinaryIO
from urllib.parse import quote

from pathvalidate import sanitize_filename

from bookdrop.backends import (
    DestinationRef,
    DocumentTree,
    PathDestination,
    TreeDestination,
    TreeEntry,
    remove_quietly,
)
from bookdrop.config import DEFAULT_CHUNK_SIZE
from bookdrop.exceptions import (
    DestinationWriteFailed,
    PermissionDenied,
    SourceUnreadable,
)
from bookdrop.sources import DocumentRef

logger = logging.getLogger(__name__)

FALLBACK_ENTRY_NAME = "document"
DEFAULT_MIME_TYPE = "application/octet-stream"


class ImportDecision(str, Enum):
    """What reconcile did (or would do) with the destination entry."""

    CREATED = "created"
    UPDATED = "updated"
    UP_TO_DATE = "up_to_date"

    @property
    def copies(self) -> bool:
        return self is not ImportDecision.UP_TO_DATE


@dataclass(frozen=True)
class ImportOutcome:
    """Result of a successful reconcile."""

    locator: str
    name: str
    decision: ImportDecision
    bytes_copied: int = 0
    advisory: str | None = None
    dry_run: bool = False

    def with_advisory(self, advisory: str | None) -> ImportOutcome:
        return replace(self, advisory=advisory)


def decide(existing_modified: float | None, source_modified: float) -> ImportDecision:
    """Copy/skip decision for an entry (None when the entry does not exist)."""
    if existing_modified is None:
        return ImportDecision.CREATED
    if source_modified > existing_modified:
        return ImportDecision.UPDATED
    return ImportDecision.UP_TO_DATE


def entry_name_for(source: DocumentRef) -> str:
    """Child entry name for a source, safe to join onto any destination."""
    name = str(sanitize_filename(source.name, platform="universal")).strip()
    if name in ("", ".", ".."):
        return FALLBACK_ENTRY_NAME
    return name


def guess_mime_type(name: str) -> str:
    """MIME type used when creating tree entries."""
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type or DEFAULT_MIME_TYPE


# =============================================================================
# Backend slots
# =============================================================================


class _TreeSlot:
    """Child entry of a DocumentTree, created lazily on first write."""

    def __init__(self, tree: DocumentTree, name: str) -> None:
        self.tree = tree
        self.name = name
        self.created = False
        try:
            self.entry: TreeEntry | None = tree.find(name)
        except PermissionError as e:
            raise PermissionDenied(
                f"Cannot list destination folder: {e}", entry_name=name, destination=tree.locator
            ) from e
        except OSError as e:
            raise DestinationWriteFailed(
                f"Cannot inspect destination folder: {e}", destination=tree.locator
            ) from e

    @property
    def existing_modified(self) -> float | None:
        return self.entry.last_modified if self.entry else None

    @property
    def locator(self) -> str:
        if self.entry is not None:
            return self.entry.locator
        return f"{self.tree.locator}/{quote(self.name)}"

    def open_write(self) -> BinaryIO:
        if self.entry is None:
            entry = self.tree.create(guess_mime_type(self.name), self.name)
            if entry is None:
                raise PermissionDenied(
                    f"Permission denied creating '{self.name}'",
                    entry_name=self.name,
                    destination=self.tree.locator,
                )
            self.entry = entry
            self.created = True
        return self.tree.open_write(self.entry)

    def discard(self) -> bool:
        """Remove a partially written entry that this slot created."""
        if self.created and self.entry is not None:
            return self.tree.delete(self.entry)
        return False


class _PathSlot:
    """Child file of a plain directory.

    Only regular files count as entries; a directory or other object holding
    the name is refused on write, as a DocumentTree refuses to create it.
    """

    def __init__(self, root: Path, name: str) -> None:
        self.root = root
        self.path = root / name
        self.name = name
        self.created = False
        self._existing: float | None = None
        self._occupied = False
        try:
            st = self.path.stat()
        except FileNotFoundError:
            return
        except PermissionError as e:
            raise PermissionDenied(
                f"Cannot access destination folder: {e}", entry_name=name, destination=str(root)
            ) from e
        except OSError as e:
            raise DestinationWriteFailed(
                f"Cannot inspect destination folder: {e}", destination=str(root)
            ) from e
        if stat.S_ISREG(st.st_mode):
            self._existing = st.st_mtime
        else:
            self._occupied = True

    @property
    def existing_modified(self) -> float | None:
        return self._existing

    @property
    def locator(self) -> str:
        return str(self.path)

    def open_write(self) -> BinaryIO:
        if self._occupied:
            raise PermissionDenied(
                f"Permission denied creating '{self.name}': not a regular file",
                entry_name=self.name,
                destination=str(self.root),
            )
        self.root.mkdir(parents=True, exist_ok=True)
        stream = open(self.path, "wb")
        self.created = self._existing is None
        return stream

    def discard(self) -> bool:
        if self.created:
            remove_quietly(self.path)
            return True
        return False


def _slot_for(dest: DestinationRef, name: str) -> _TreeSlot | _PathSlot:
    if isinstance(dest, TreeDestination):
        return _TreeSlot(dest.tree, name)
    if isinstance(dest, PathDestination):
        return _PathSlot(dest.root, name)
    raise TypeError(f"Unsupported destination type: {type(dest).__name__}")


# =============================================================================
# Copy
# =============================================================================


class _CopyInterrupted(Exception):
    """Copy stopped part way; ``side`` is "source" or "destination"."""

    def __init__(self, side: str, error: OSError, bytes_written: int) -> None:
        super().__init__(str(error))
        self.side = side
        self.error = error
        self.bytes_written = bytes_written


def _sync(stream: BinaryIO) -> None:
    stream.flush()
    try:
        fileno = stream.fileno()
    except (AttributeError, io.UnsupportedOperation):
        return
    os.fsync(fileno)


def copy_stream(src: BinaryIO, dst: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """Stream all bytes from src into dst, flushing before returning.

    Returns:
        Number of bytes written

    Raises:
        _CopyInterrupted: If reading or writing fails
    """
    total = 0
    while True:
        try:
            chunk = src.read(chunk_size)
        except OSError as e:
            raise _CopyInterrupted("source", e, total) from e
        if not chunk:
            break
        try:
            dst.write(chunk)
        except OSError as e:
            raise _CopyInterrupted("destination", e, total) from e
        total += len(chunk)
    try:
        _sync(dst)
    except OSError as e:
        raise _CopyInterrupted("destination", e, total) from e
    return total


# =============================================================================
# Reconcile
# =============================================================================


def _source_modified(source: DocumentRef) -> float:
    try:
        return source.last_modified
    except OSError as e:
        raise SourceUnreadable(f"Cannot read source metadata: {e}", source=source.locator) from e


def _inspect(
    dest: DestinationRef, source: DocumentRef
) -> tuple[str, float, _TreeSlot | _PathSlot, ImportDecision]:
    name = entry_name_for(source)
    source_modified = _source_modified(source)
    slot = _slot_for(dest, name)
    return name, source_modified, slot, decide(slot.existing_modified, source_modified)


def plan(dest: DestinationRef, source: DocumentRef) -> ImportOutcome:
    """Decide copy vs skip without writing anything (dry runs)."""
    name, source_modified, slot, decision = _inspect(dest, source)
    logger.debug(
        "Would import %s: %s (source=%s, entry=%s)",
        name,
        decision.value,
        source_modified,
        slot.existing_modified,
    )
    return ImportOutcome(locator=slot.locator, name=name, decision=decision, dry_run=True)


def reconcile(
    dest: DestinationRef,
    source: DocumentRef,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> ImportOutcome:
    """
    Bring the destination entry named after ``source`` up to date.

    Performs at most one stream copy. Never touches unrelated entries or the
    remembered destination.

    Args:
        dest: Tree or path destination
        source: Document to import
        chunk_size: Copy buffer size in bytes

    Returns:
        ImportOutcome pointing at the now-current entry

    Raises:
        PermissionDenied: If the destination refuses to create/open the entry
        SourceUnreadable: If the source cannot be opened or read
        DestinationWriteFailed: If the copy started but did not complete
    """
    name, source_modified, slot, decision = _inspect(dest, source)

    if not decision.copies:
        logger.debug(
            "Skipping %s: %s (source=%s, entry=%s)",
            name,
            decision.value,
            source_modified,
            slot.existing_modified,
        )
        return ImportOutcome(locator=slot.locator, name=name, decision=decision)

    try:
        src_stream = source.open()
    except OSError as e:
        raise SourceUnreadable(f"Cannot open source: {e}", source=source.locator) from e

    with src_stream:
        try:
            dst_stream = slot.open_write()
        except PermissionError as e:
            slot.discard()
            raise PermissionDenied(
                f"Permission denied writing '{name}': {e}",
                entry_name=name,
                source=source.locator,
                destination=dest.locator,
            ) from e
        except OSError as e:
            slot.discard()
            raise DestinationWriteFailed(
                f"Cannot open destination entry: {e}",
                source=source.locator,
                destination=dest.locator,
            ) from e

        try:
            with dst_stream:
                copied = copy_stream(src_stream, dst_stream, chunk_size)
        except _CopyInterrupted as e:
            discarded = slot.discard()
            partial = None if discarded else slot.locator
            if e.side == "source":
                raise SourceUnreadable(
                    f"Source read failed after {e.bytes_written} bytes: {e.error}",
                    source=source.locator,
                    destination=dest.locator,
                    details={"partial_entry": partial} if partial else None,
                ) from e.error
            raise DestinationWriteFailed(
                f"Write failed after {e.bytes_written} bytes: {e.error}",
                partial_entry=partial,
                bytes_written=e.bytes_written,
                source=source.locator,
                destination=dest.locator,
            ) from e.error
        except OSError as e:
            # close() can still fail on buffered backends
            discarded = slot.discard()
            raise DestinationWriteFailed(
                f"Closing destination entry failed: {e}",
                partial_entry=None if discarded else slot.locator,
                source=source.locator,
                destination=dest.locator,
            ) from e

    logger.info("Imported %s -> %s (%s, %d bytes)", name, slot.locator, decision.value, copied)
    return ImportOutcome(
        locator=slot.locator,
        name=name,
        decision=decision,
        bytes_copied=copied,
    )
