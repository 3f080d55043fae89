"""
Destination backends for imported documents.

A destination is exactly one of two variants:

- ``TreeDestination``: a structured container (``DocumentTree``) that lists,
  creates and opens named child entries and reports per-entry metadata.
  Creation may be refused, which the reconciler reports as PermissionDenied.
- ``PathDestination``: a plain directory; children are the root joined with
  the entry name.

Locators:
    tree:///home/me/Books     -> TreeDestination over LocalDocumentTree
    file:///home/me/Books     -> PathDestination
    /home/me/Books            -> PathDestination
"""

from __future__ import annotations

import contextlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable
from urllib.parse import quote, unquote, urlsplit

logger = logging.getLogger(__name__)

TREE_SCHEME = "tree"


@dataclass(frozen=True)
class TreeEntry:
    """Metadata for a child entry of a DocumentTree."""

    name: str
    last_modified: float
    locator: str


@runtime_checkable
class DocumentTree(Protocol):
    """Structured container of named entries."""

    @property
    def locator(self) -> str: ...

    def find(self, name: str) -> TreeEntry | None:
        """Return the child entry called ``name``, or None."""
        ...

    def create(self, mime_type: str, name: str) -> TreeEntry | None:
        """Create an empty child entry; None when the container refuses."""
        ...

    def open_write(self, entry: TreeEntry) -> BinaryIO:
        """Open an entry for writing, truncating existing content."""
        ...

    def delete(self, entry: TreeEntry) -> bool:
        """Remove an entry; False if it could not be removed."""
        ...


def tree_locator(directory: Path) -> str:
    """Build the tree locator for a local directory."""
    return f"{TREE_SCHEME}://{quote(str(directory.expanduser().resolve()))}"


class LocalDocumentTree:
    """DocumentTree over a local directory.

    Entries are looked up by listing the directory, and creation is exclusive
    so an entry appearing concurrently is never clobbered by ``create``.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def __repr__(self) -> str:
        return f"LocalDocumentTree({str(self.root)!r})"

    @property
    def locator(self) -> str:
        return tree_locator(self.root)

    def _entry(self, path: Path) -> TreeEntry:
        return TreeEntry(
            name=path.name,
            last_modified=path.stat().st_mtime,
            locator=f"{self.locator}/{quote(path.name)}",
        )

    def find(self, name: str) -> TreeEntry | None:
        if not self.root.is_dir():
            return None
        with os.scandir(self.root) as it:
            for item in it:
                if item.name == name and item.is_file():
                    return self._entry(Path(item.path))
        return None

    def create(self, mime_type: str, name: str) -> TreeEntry | None:
        path = self.root / name
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with open(path, "xb"):
                pass
        except (PermissionError, FileExistsError) as e:
            logger.debug("Tree refused entry %s (%s): %s", name, mime_type, e)
            return None
        logger.debug("Created tree entry %s (%s)", name, mime_type)
        return self._entry(path)

    def open_write(self, entry: TreeEntry) -> BinaryIO:
        return open(self.root / entry.name, "wb")

    def delete(self, entry: TreeEntry) -> bool:
        try:
            (self.root / entry.name).unlink()
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.warning("Could not delete entry %s: %s", entry.locator, e)
            return False
        return True


@dataclass(frozen=True)
class TreeDestination:
    """Destination backed by a structured DocumentTree."""

    tree: DocumentTree

    @property
    def locator(self) -> str:
        return self.tree.locator


@dataclass(frozen=True)
class PathDestination:
    """Destination backed by a plain directory."""

    root: Path

    @property
    def locator(self) -> str:
        return str(self.root)


DestinationRef = TreeDestination | PathDestination


def is_tree_locator(locator: str) -> bool:
    """Whether a locator names a tree destination."""
    return urlsplit(locator).scheme.lower() == TREE_SCHEME


def parse_destination(locator: str) -> DestinationRef:
    """Rebuild a DestinationRef from its locator string.

    Raises:
        ValueError: If the locator is empty or uses an unsupported scheme
    """
    if not locator or not locator.strip():
        raise ValueError("Empty destination locator")

    parts = urlsplit(locator.strip())
    scheme = parts.scheme.lower()
    if scheme == TREE_SCHEME:
        return TreeDestination(LocalDocumentTree(Path(unquote(parts.netloc + parts.path))))
    if scheme == "file":
        return PathDestination(Path(unquote(parts.path)))
    if scheme == "" or len(scheme) == 1:  # Windows drive letters parse as a scheme
        return PathDestination(Path(locator.strip()).expanduser())
    raise ValueError(f"Unsupported destination scheme: {scheme}://")


def remove_quietly(path: Path) -> None:
    """Delete a file, ignoring a missing one."""
    with contextlib.suppress(FileNotFoundError):
        path.unlink()
