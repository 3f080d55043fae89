"""
Import flow: resolve the destination, reconcile, recover from denials.

    source -> DestinationResolver -> (picker) -> reconcile -> ImportOutcome

PermissionDenied sends the flow back to destination selection; a declined
selection falls back to a plain folder with an advisory. Every other
ImportFailure ends the flow.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass

from bookdrop.backends import DestinationRef
from bookdrop.config import DEFAULT_CHUNK_SIZE
from bookdrop.exceptions import PermissionDenied, StateError, UserDeclinedSelection
from bookdrop.reconcile import ImportOutcome, plan, reconcile
from bookdrop.resolver import (
    DestinationPicker,
    DestinationResolver,
    NeedsInteractiveSelection,
    Resolved,
)
from bookdrop.sources import DocumentRef
from bookdrop.store import ImportHistory

logger = logging.getLogger(__name__)


@dataclass
class ImportFlow:
    """Runs one import request end to end."""

    resolver: DestinationResolver
    picker: DestinationPicker
    history: ImportHistory | None = None
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_reselect_attempts: int = 3
    allow_fallback: bool = True
    dry_run: bool = False
    # Runs the blocking reconcile job; None runs it inline
    execute: Callable[[Callable[[], ImportOutcome]], ImportOutcome] | None = None

    def _select(self, request: NeedsInteractiveSelection, source: DocumentRef) -> Resolved:
        choice = self.picker.pick(request.title)
        if choice:
            return self.resolver.grant(choice, persist=not self.dry_run)
        if not self.allow_fallback:
            raise UserDeclinedSelection("No destination folder was chosen.", source=source.locator)
        return self.resolver.decline()

    def run(self, source: DocumentRef, destination: DestinationRef | None = None) -> ImportOutcome:
        """
        Import ``source``.

        Args:
            source: Document to import
            destination: Explicit destination; skips resolution

        Returns:
            ImportOutcome for the imported (or already present) entry

        Raises:
            ImportFailure: Any fatal import error, or PermissionDenied once the
                re-selection attempts are used up
        """
        if destination is not None:
            resolution: Resolved | NeedsInteractiveSelection = Resolved(destination)
        else:
            resolution = self.resolver.resolve(source.is_structured_share)

        attempts = 0
        while True:
            if isinstance(resolution, NeedsInteractiveSelection):
                resolution = self._select(resolution, source)

            if self.dry_run:
                job = functools.partial(plan, resolution.destination, source)
            else:
                job = functools.partial(
                    reconcile, resolution.destination, source, chunk_size=self.chunk_size
                )
            try:
                outcome = self.execute(job) if self.execute else job()
            except PermissionDenied as e:
                attempts += 1
                if attempts > self.max_reselect_attempts:
                    logger.error("Giving up after %d destination selections: %s", attempts - 1, e)
                    raise
                logger.warning("%s; asking for another destination", e)
                resolution = NeedsInteractiveSelection()
                continue

            outcome = outcome.with_advisory(resolution.advisory)
            if self.history is not None and not self.dry_run:
                try:
                    self.history.record(source.locator, outcome)
                except StateError as e:
                    # The entry is already in place
                    logger.warning("Could not record import history: %s", e)
            return outcome
