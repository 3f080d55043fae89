"""
Destination resolution.

Shared documents need a tree destination: the remembered one if present,
otherwise the caller must ask the user to pick one. Direct filesystem
documents go to the fixed library folder once storage access is granted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from bookdrop.backends import (
    DestinationRef,
    PathDestination,
    TreeDestination,
    is_tree_locator,
    parse_destination,
)
from bookdrop.exceptions import StoragePermissionRefused
from bookdrop.store import RememberedDestination

logger = logging.getLogger(__name__)

SELECT_FOLDER_TITLE = "Choose a folder to save books"
NO_FOLDER_ADVISORY = "No folder chosen; access may not survive a restart."
STORAGE_CAPABILITIES: tuple[str, ...] = ("storage",)
STORAGE_RATIONALE = "bookdrop needs to write to your library folder to import books."


class PermissionGate(Protocol):
    """Grants or denies a set of capabilities."""

    def request(self, capabilities: tuple[str, ...], rationale: str) -> bool: ...


class DestinationPicker(Protocol):
    """Asks the user for a tree destination; None means they declined."""

    def pick(self, title: str) -> str | None: ...


@dataclass(frozen=True)
class Resolved:
    """A usable destination, optionally with a message for the user."""

    destination: DestinationRef
    advisory: str | None = None


@dataclass(frozen=True)
class NeedsInteractiveSelection:
    """The caller must prompt the user to pick a tree destination."""

    title: str = SELECT_FOLDER_TITLE


class DestinationResolver:
    """Decides where an import goes.

    The only writer of the remembered destination: ``grant`` persists a
    locator after the user picked it, nothing else does.
    """

    def __init__(
        self,
        remembered: RememberedDestination,
        gate: PermissionGate,
        *,
        library_dir: Path,
        fallback_dir: Path,
    ) -> None:
        self.remembered = remembered
        self.gate = gate
        self.library_dir = library_dir
        self.fallback_dir = fallback_dir

    def resolve(self, is_structured_share: bool) -> Resolved | NeedsInteractiveSelection:
        """
        Resolve the destination for a source document.

        Raises:
            StoragePermissionRefused: If a direct import was denied storage access
        """
        if is_structured_share:
            locator = self.remembered.get()
            if not locator:
                logger.debug("No remembered destination; selection required")
                return NeedsInteractiveSelection()
            if not is_tree_locator(locator):
                logger.warning("Ignoring remembered destination that is not a tree: %s", locator)
                return NeedsInteractiveSelection()
            logger.debug("Using remembered destination %s", locator)
            return Resolved(parse_destination(locator))

        if not self.gate.request(STORAGE_CAPABILITIES, STORAGE_RATIONALE):
            raise StoragePermissionRefused(
                "Storage access was not granted; nothing was imported.",
                capabilities=STORAGE_CAPABILITIES,
                destination=str(self.library_dir),
            )
        return Resolved(PathDestination(self.library_dir))

    def grant(self, locator: str, *, persist: bool = True) -> Resolved:
        """
        Accept a destination the user picked and remember it.

        With persist=False (dry runs) the choice is used but not remembered.

        Raises:
            ValueError: If the locator does not name a tree destination
        """
        destination = parse_destination(locator)
        if not isinstance(destination, TreeDestination):
            raise ValueError(f"Selected destination is not a folder tree: {locator}")
        if persist:
            self.remembered.remember(destination.locator)
        return Resolved(destination)

    def decline(self) -> Resolved:
        """Best-effort destination when the user did not pick a folder."""
        logger.warning(NO_FOLDER_ADVISORY)
        return Resolved(PathDestination(self.fallback_dir), advisory=NO_FOLDER_ADVISORY)
