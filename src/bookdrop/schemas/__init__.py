"""Pydantic schemas for bookdrop data files."""

from bookdrop.schemas.state import (
    CURRENT_SCHEMA_VERSION,
    MAX_HISTORY_ENTRIES,
    BookdropState,
    ImportRecord,
    create_empty_state,
    validate_state,
)

__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "MAX_HISTORY_ENTRIES",
    "BookdropState",
    "ImportRecord",
    "create_empty_state",
    "validate_state",
]
