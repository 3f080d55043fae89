"""Cross-platform path handling using platformdirs.

Provides XDG-compliant paths with environment variable overrides for flexibility.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

from platformdirs import user_data_dir, user_log_dir

logger = logging.getLogger(__name__)

APP_NAME = "bookdrop"
APPAUTHOR: Literal[False] = False  # Avoid "CompanyName/AppName" nesting on Windows


def _env_override(env_var: str) -> Path | None:
    """Check for environment variable override.

    Args:
        env_var: Environment variable name to check

    Returns:
        Path from environment variable if set, None otherwise
    """
    v = os.environ.get(env_var)
    return Path(v).expanduser() if v else None


def data_dir(*, ensure: bool = True) -> Path:
    """Get application data directory.

    Linux: ~/.local/share/bookdrop
    macOS: ~/Library/Application Support/bookdrop
    Windows: C:\\Users\\<user>\\AppData\\Local\\bookdrop

    Override with BOOKDROP_DATA_DIR env var.

    Args:
        ensure: Create directory if it doesn't exist

    Returns:
        Path to data directory
    """
    d = _env_override("BOOKDROP_DATA_DIR") or Path(user_data_dir(APP_NAME, APPAUTHOR))
    if ensure:
        d.mkdir(parents=True, exist_ok=True)
    return d


def log_dir(*, ensure: bool = True) -> Path:
    """Get application log directory.

    Override with BOOKDROP_LOG_DIR env var.
    """
    d = _env_override("BOOKDROP_LOG_DIR") or Path(user_log_dir(APP_NAME, APPAUTHOR))
    if ensure:
        d.mkdir(parents=True, exist_ok=True)
    return d


def config_dir() -> Path:
    """Get the project config directory.

    Returns config/ in the current working directory, where config.yaml lives.
    Override with BOOKDROP_CONFIG_DIR env var.

    Returns:
        Path to config directory (does NOT auto-create)
    """
    return _env_override("BOOKDROP_CONFIG_DIR") or Path("config")


def default_config_file() -> Path:
    """Default config.yaml location."""
    return config_dir() / "config.yaml"


def default_library_dir() -> Path:
    """Application-managed library folder for direct imports."""
    return data_dir(ensure=False) / "books"


def default_fallback_dir() -> Path:
    """Best-effort folder used when no tree destination was chosen."""
    return data_dir(ensure=False) / "unsorted"


def default_state_file() -> Path:
    """State file holding the remembered destination and import history."""
    return data_dir(ensure=False) / "state.json"


def default_log_file() -> Path:
    """Default log file path."""
    return log_dir(ensure=False) / "bookdrop.log"
