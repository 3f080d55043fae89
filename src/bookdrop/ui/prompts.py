"""Console collaborators for the import flow: permission gate and folder picker."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from bookdrop.backends import tree_locator
from bookdrop.ui.messages import ask, confirm, print_info, print_warning

logger = logging.getLogger(__name__)


class ConsolePermissionGate:
    """Grants storage access after confirmation, if the folder is writable."""

    def __init__(self, library_dir: Path, *, assume_yes: bool = False) -> None:
        self.library_dir = library_dir
        self.assume_yes = assume_yes

    def _writable(self) -> bool:
        # Nearest existing ancestor decides whether the folder can be created
        candidate = self.library_dir
        while not candidate.exists() and candidate != candidate.parent:
            candidate = candidate.parent
        return candidate.is_dir() and os.access(candidate, os.W_OK | os.X_OK)

    def request(self, capabilities: tuple[str, ...], rationale: str) -> bool:
        if not self.assume_yes:
            print_info(rationale)
            if not confirm(f"Allow {', '.join(capabilities)} access to {self.library_dir}?"):
                logger.info("Storage access declined by user")
                return False
        if not self._writable():
            print_warning(f"Library folder is not writable: {self.library_dir}")
            return False
        return True


class ConsoleDestinationPicker:
    """Prompts for a folder; an empty answer declines."""

    def pick(self, title: str) -> str | None:
        while True:
            answer = ask(f"{title} (leave empty to skip):")
            if not answer:
                return None
            folder = Path(answer).expanduser()
            if folder.exists() and not folder.is_dir():
                print_warning(f"Not a folder: {folder}")
                continue
            return tree_locator(folder)
