"""Pydantic schemas for state.json validation."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

CURRENT_SCHEMA_VERSION = 1
MAX_HISTORY_ENTRIES = 100


def _validate_iso(v: str | None) -> str | None:
    if v is None:
        return v
    try:
        datetime.fromisoformat(v)
    except ValueError as e:
        raise ValueError(f"Invalid datetime format: {v}") from e
    return v


class ImportRecord(BaseModel):
    """One completed import in the history list."""

    name: str
    source: str
    destination: str
    decision: str
    bytes_copied: int = 0
    imported_at: str  # ISO format datetime string
    advisory: str | None = None

    @field_validator("imported_at")
    @classmethod
    def validate_datetime(cls, v: str) -> str:
        """Validate that imported_at is a valid ISO datetime string."""
        _validate_iso(v)
        return v

    model_config = {"extra": "ignore"}


class BookdropState(BaseModel):
    """
    Schema for state.json.

    Holds the remembered tree destination and recent import history.
    """

    version: int = CURRENT_SCHEMA_VERSION
    remembered_destination: str | None = None
    remembered_at: str | None = None
    history: list[ImportRecord] = Field(default_factory=list)

    @field_validator("remembered_at")
    @classmethod
    def validate_remembered_at(cls, v: str | None) -> str | None:
        """Validate that remembered_at is a valid ISO datetime string."""
        return _validate_iso(v)

    model_config = {"extra": "ignore"}  # Allow unknown top-level keys


def validate_state(data: dict[str, Any]) -> BookdropState:
    """
    Validate state.json data.

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return BookdropState.model_validate(data)


def create_empty_state() -> BookdropState:
    """Create a new empty state with default values."""
    return BookdropState()
