"""
Configuration loading from config.yaml and the environment.

Setting Sources and Precedence
==============================
1. **config.yaml** (highest priority):
   - paths: library_dir, fallback_dir, state_file, log_file
   - import: chunk_size, max_reselect_attempts, allow_fallback
   - http: timeout_seconds, user_agent, retries
   - environment: env, log_level

2. **Environment / .env file** (see bookdrop.env_settings):
   - BOOKDROP_ENV, LOG_LEVEL, BOOKDROP_LIBRARY_DIR
   - BOOKDROP_HTTP_TIMEOUT, BOOKDROP_HTTP_USER_AGENT, BOOKDROP_HTTP_RETRIES

3. **Defaults** (platformdirs-based, see bookdrop.paths)

A missing config.yaml is not an error: every setting has a default.

Path Resolution
===============
- Absolute paths are used as-is, ``~`` is expanded
- Relative paths in config.yaml are resolved relative to the directory that
  contains config.yaml
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from bookdrop.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
MAX_CHUNK_SIZE = 64 * 1024 * 1024


@dataclass
class PathsConfig:
    """Path configuration settings (from config.yaml paths section)."""

    library_dir: Path  # Fixed application folder for direct imports
    fallback_dir: Path  # Best-effort folder when no tree was chosen
    state_file: Path
    log_file: Path


@dataclass
class ImportConfig:
    """Import behaviour (from config.yaml import section)."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_reselect_attempts: int = 3
    allow_fallback: bool = True


@dataclass
class HttpConfig:
    """Shared-link fetching (from config.yaml http section)."""

    timeout_seconds: float = 30.0
    user_agent: str = "bookdrop"
    retries: int = 2


@dataclass
class Settings:
    """Complete application settings.

    See module docstring for setting sources.
    """

    env: str
    log_level: str
    paths: PathsConfig
    import_: ImportConfig = field(default_factory=ImportConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    config_file: Path | None = None


def load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"config.yaml must contain a mapping, got {type(data).__name__}",
            config_file=config_path,
        )
    return data


def validate_settings(settings: Settings) -> list[str]:
    """
    Validate settings.

    Returns:
        List of warning messages (non-fatal issues)

    Raises:
        ConfigurationError: If critical validation fails
    """
    warnings: list[str] = []
    config_file = settings.config_file

    chunk_size = settings.import_.chunk_size
    if chunk_size < 1 or chunk_size > MAX_CHUNK_SIZE:
        raise ConfigurationError(
            f"import.chunk_size must be between 1 and {MAX_CHUNK_SIZE}, got: {chunk_size}\n"
            f"Fix: Update import.chunk_size in config/config.yaml",
            config_file=config_file,
            field="import.chunk_size",
        )

    if settings.import_.max_reselect_attempts < 0:
        raise ConfigurationError(
            "import.max_reselect_attempts cannot be negative, "
            f"got: {settings.import_.max_reselect_attempts}",
            config_file=config_file,
            field="import.max_reselect_attempts",
        )

    if settings.http.timeout_seconds <= 0:
        raise ConfigurationError(
            f"http.timeout_seconds must be positive, got: {settings.http.timeout_seconds}",
            config_file=config_file,
            field="http.timeout_seconds",
        )
    if settings.http.timeout_seconds > 300:
        warnings.append(
            f"http.timeout_seconds is unusual: {settings.http.timeout_seconds} "
            f"(recommended: 10-60 seconds)"
        )

    if settings.http.retries < 0:
        raise ConfigurationError(
            f"http.retries cannot be negative, got: {settings.http.retries}",
            config_file=config_file,
            field="http.retries",
        )

    if settings.paths.library_dir == settings.paths.fallback_dir:
        warnings.append(
            f"paths.fallback_dir is the same as paths.library_dir: {settings.paths.library_dir}"
        )

    for name, path in [
        ("library_dir", settings.paths.library_dir),
        ("fallback_dir", settings.paths.fallback_dir),
    ]:
        if path.exists() and not path.is_dir():
            raise ConfigurationError(
                f"paths.{name} exists but is not a directory: {path}",
                config_file=config_file,
                field=f"paths.{name}",
            )

    return warnings


def _value(section: dict[str, Any], field: str, default: Any) -> Any:
    return section.get(field.rsplit(".", 1)[-1], default)


def _as_int(section: dict[str, Any], field: str, default: int, config_file: Path | None) -> int:
    value = _value(section, field, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(
            f"{field} must be an integer, got: {value!r}", config_file=config_file, field=field
        )
    return value


def _as_float(
    section: dict[str, Any], field: str, default: float, config_file: Path | None
) -> float:
    value = _value(section, field, default)
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ConfigurationError(
            f"{field} must be a number, got: {value!r}", config_file=config_file, field=field
        )
    return float(value)


def _as_bool(section: dict[str, Any], field: str, default: bool, config_file: Path | None) -> bool:
    value = _value(section, field, default)
    if not isinstance(value, bool):
        raise ConfigurationError(
            f"{field} must be true or false, got: {value!r}", config_file=config_file, field=field
        )
    return value


def load_settings(
    config_file: Path | None = None,
    env_file: Path | None = None,
    *,
    validate: bool = True,
) -> Settings:
    """
    Load settings from config.yaml and the environment.

    Args:
        config_file: Path to config.yaml (default: config/config.yaml)
        env_file: Optional .env file loaded before reading the environment
        validate: If True, validate values and log warnings

    Returns:
        Populated Settings object

    Raises:
        ConfigurationError: If the config file is malformed or validation fails
    """
    from bookdrop.env_settings import get_env_settings, load_env_settings_from_file
    from bookdrop.paths import (
        default_config_file,
        default_fallback_dir,
        default_library_dir,
        default_log_file,
        default_state_file,
    )

    config_path = config_file or default_config_file()
    env = load_env_settings_from_file(env_file) if env_file else get_env_settings()

    try:
        yaml_config = load_yaml_config(config_path)
        loaded_from: Path | None = config_path
    except FileNotFoundError:
        logger.debug("No config file at %s, using defaults", config_path)
        yaml_config = {}
        loaded_from = None
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in {config_path}: {e}", config_file=config_path
        ) from e

    base_dir = config_path.resolve().parent

    def resolve_path(value: str | Path) -> Path:
        """Resolve a path, making relative paths relative to the config directory."""
        p = Path(value).expanduser()
        if p.is_absolute():
            return p
        return (base_dir / p).resolve()

    paths_data = yaml_config.get("paths") or {}
    library_default = env.app.library_dir or default_library_dir()
    paths = PathsConfig(
        library_dir=resolve_path(paths_data.get("library_dir", library_default)),
        fallback_dir=resolve_path(paths_data.get("fallback_dir", default_fallback_dir())),
        state_file=resolve_path(paths_data.get("state_file", default_state_file())),
        log_file=resolve_path(paths_data.get("log_file", default_log_file())),
    )

    import_data = yaml_config.get("import") or {}
    import_config = ImportConfig(
        chunk_size=_as_int(import_data, "import.chunk_size", DEFAULT_CHUNK_SIZE, loaded_from),
        max_reselect_attempts=_as_int(
            import_data, "import.max_reselect_attempts", 3, loaded_from
        ),
        allow_fallback=_as_bool(import_data, "import.allow_fallback", True, loaded_from),
    )

    http_data = yaml_config.get("http") or {}
    http = HttpConfig(
        timeout_seconds=_as_float(
            http_data, "http.timeout_seconds", env.http.timeout, loaded_from
        ),
        user_agent=str(http_data.get("user_agent", env.http.user_agent)),
        retries=_as_int(http_data, "http.retries", env.http.retries, loaded_from),
    )

    # Environment: YAML config > env var > default
    env_data = yaml_config.get("environment") or {}
    settings = Settings(
        env=env_data.get("env", env.app.env),
        log_level=str(env_data.get("log_level", env.app.log_level)).upper(),
        paths=paths,
        import_=import_config,
        http=http,
        config_file=loaded_from,
    )

    if validate:
        for warning in validate_settings(settings):
            logger.warning(warning)

    return settings


# Lazy-loaded global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance (lazy-loaded)."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reload_settings(
    config_file: Path | None = None,
    env_file: Path | None = None,
    *,
    validate: bool = True,
) -> Settings:
    """
    Reload settings from files.

    Useful for testing or when config files have changed.
    """
    global _settings
    _settings = load_settings(config_file, env_file, validate=validate)
    return _settings


def clear_settings() -> None:
    """
    Clear the cached settings instance.

    Useful for testing to ensure a fresh settings load.
    """
    global _settings
    _settings = None
