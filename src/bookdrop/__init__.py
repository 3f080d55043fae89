"""bookdrop - Import shared books into your library folder."""

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

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Base exception
    "BookdropError",
    # Configuration
    "ConfigurationError",
    # Import
    "ImportFailure",
    "PermissionDenied",
    "SourceUnreadable",
    "DestinationWriteFailed",
    "UserDeclinedSelection",
    "StoragePermissionRefused",
    # State
    "StateError",
    "StateLockError",
    "StateCorruptionError",
]
