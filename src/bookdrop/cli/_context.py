"""Runtime context for CLI commands.

Initialized once in the main callback and available to all commands via
ctx.obj. Builds the state file, resolver and import flow on demand so
commands that don't need them pay nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import typer

if TYPE_CHECKING:
    from collections.abc import Callable

    from bookdrop.config import Settings
    from bookdrop.flow import ImportFlow
    from bookdrop.reconcile import ImportOutcome
    from bookdrop.resolver import DestinationResolver
    from bookdrop.store import StateFile

logger = logging.getLogger(__name__)


def run_in_background(job: Callable[[], ImportOutcome]) -> ImportOutcome:
    """Run a blocking import job on a worker thread behind a spinner."""
    from bookdrop.ui import console

    with (
        ThreadPoolExecutor(max_workers=1, thread_name_prefix="bookdrop-import") as pool,
        console.status("[info]Importing...[/]"),
    ):
        return pool.submit(job).result()


@dataclass
class RuntimeContext:
    """Typed runtime context available to all commands via ctx.obj."""

    config_path: Path
    settings: Settings
    dry_run: bool = False
    verbose: bool = False

    _state_file: StateFile | None = field(default=None, repr=False)

    @property
    def state_file(self) -> StateFile:
        if self._state_file is None:
            from bookdrop.store import StateFile

            self._state_file = StateFile(self.settings.paths.state_file)
        return self._state_file

    def build_resolver(self, *, assume_yes: bool = False) -> DestinationResolver:
        from bookdrop.resolver import DestinationResolver
        from bookdrop.store import DestinationStore
        from bookdrop.ui import ConsolePermissionGate

        paths = self.settings.paths
        return DestinationResolver(
            DestinationStore(self.state_file),
            ConsolePermissionGate(paths.library_dir, assume_yes=assume_yes),
            library_dir=paths.library_dir,
            fallback_dir=paths.fallback_dir,
        )

    def build_flow(self, *, assume_yes: bool = False) -> ImportFlow:
        from bookdrop.flow import ImportFlow
        from bookdrop.store import ImportHistory
        from bookdrop.ui import ConsoleDestinationPicker

        import_config = self.settings.import_
        return ImportFlow(
            resolver=self.build_resolver(assume_yes=assume_yes),
            picker=ConsoleDestinationPicker(),
            history=ImportHistory(self.state_file),
            chunk_size=import_config.chunk_size,
            max_reselect_attempts=import_config.max_reselect_attempts,
            allow_fallback=import_config.allow_fallback,
            dry_run=self.dry_run,
            execute=run_in_background,
        )


@contextmanager
def exit_on_state_error() -> Iterator[None]:
    """Report an unusable state file and exit 1 instead of a traceback."""
    from bookdrop.exceptions import StateError
    from bookdrop.ui import fatal_error

    try:
        yield
    except StateError as e:
        logger.debug("State file error: %s %s", type(e).__name__, e.details)
        fatal_error(e.message)
        raise typer.Exit(1) from e


def get_runtime_context(ctx: typer.Context) -> RuntimeContext:
    """Get the RuntimeContext stored by the main callback."""
    runtime = ctx.find_object(RuntimeContext)
    if runtime is None:
        raise RuntimeError("RuntimeContext not initialized - main callback did not run")
    return runtime
