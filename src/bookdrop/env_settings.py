"""Environment-based settings using pydantic-settings.

Environment variables are loaded automatically and can be overridden by YAML config.

Usage:
    from bookdrop.env_settings import get_env_settings

    env = get_env_settings()
    print(env.http.timeout)  # From BOOKDROP_HTTP_TIMEOUT env var

Environment Variables:
    Application:
        BOOKDROP_ENV - Environment name (default: "production")
        LOG_LEVEL - Logging level (default: "INFO")
        BOOKDROP_LIBRARY_DIR - Library folder for direct imports

    HTTP sources:
        BOOKDROP_HTTP_TIMEOUT - Request timeout in seconds (default: 30)
        BOOKDROP_HTTP_USER_AGENT - User-Agent header for shared links
        BOOKDROP_HTTP_RETRIES - Extra attempts for shared-link lookups (default: 2)
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class HttpEnvSettings(BaseSettings):
    """HTTP source settings from environment variables.

    Reads from BOOKDROP_HTTP_TIMEOUT, BOOKDROP_HTTP_USER_AGENT, BOOKDROP_HTTP_RETRIES env vars.
    """

    model_config = SettingsConfigDict(
        env_prefix="BOOKDROP_HTTP_",
        extra="ignore",
    )

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    user_agent: str = Field(default="bookdrop", description="User-Agent header")
    retries: int = Field(default=2, ge=0, description="Extra attempts for link lookups")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Reject non-positive timeouts."""
        if v <= 0:
            raise ValueError(f"BOOKDROP_HTTP_TIMEOUT must be positive, got: {v}")
        return v


class AppEnvSettings(BaseSettings):
    """Application-level settings from environment variables.

    Reads from BOOKDROP_ENV, LOG_LEVEL, BOOKDROP_LIBRARY_DIR env vars.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    env: str = Field(
        default="production",
        validation_alias="BOOKDROP_ENV",
        description="Environment name (development/production)",
    )
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level",
    )
    library_dir: Path | None = Field(
        default=None,
        validation_alias="BOOKDROP_LIBRARY_DIR",
        description="Library folder for direct imports",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}, got: {v}")
        return upper


class EnvSettings(BaseSettings):
    """Combined environment settings.

    Use get_env_settings() to get a cached instance.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    http: HttpEnvSettings = Field(default_factory=HttpEnvSettings)
    app: AppEnvSettings = Field(default_factory=AppEnvSettings)


@lru_cache(maxsize=1)
def get_env_settings() -> EnvSettings:
    """Get cached environment settings.

    The cache is populated on first call.
    """
    return EnvSettings()


def clear_env_settings_cache() -> None:
    """Clear the cached environment settings.

    Useful for testing to ensure fresh settings are loaded.
    """
    get_env_settings.cache_clear()


def load_env_settings_from_file(env_file: Path) -> EnvSettings:
    """Load environment settings from a specific .env file.

    Args:
        env_file: Path to .env file to load.

    Returns:
        EnvSettings instance with configuration from the file.
    """
    from dotenv import load_dotenv

    load_dotenv(env_file, override=True)

    clear_env_settings_cache()
    return get_env_settings()
