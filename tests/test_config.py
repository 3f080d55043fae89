"""Tests for settings loading."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from bookdrop.config import (
    DEFAULT_CHUNK_SIZE,
    MAX_CHUNK_SIZE,
    clear_settings,
    get_settings,
    load_settings,
    load_yaml_config,
    reload_settings,
    validate_settings,
)
from bookdrop.exceptions import ConfigurationError


def write_config(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults_without_config_file(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "missing.yaml")

        assert settings.config_file is None
        assert settings.env == "production"
        assert settings.log_level == "INFO"
        assert settings.paths.library_dir == tmp_path / "data" / "books"
        assert settings.paths.fallback_dir == tmp_path / "data" / "unsorted"
        assert settings.paths.state_file == tmp_path / "data" / "state.json"
        assert settings.paths.log_file == tmp_path / "logs" / "bookdrop.log"
        assert settings.import_.chunk_size == DEFAULT_CHUNK_SIZE
        assert settings.import_.max_reselect_attempts == 3
        assert settings.import_.allow_fallback is True
        assert settings.http.timeout_seconds == 30.0
        assert settings.http.retries == 2

    def test_default_config_location(self, tmp_path: Path) -> None:
        write_config(tmp_path / "config" / "config.yaml", "import:\n  chunk_size: 1024\n")

        settings = load_settings()

        assert settings.config_file == tmp_path / "config" / "config.yaml"
        assert settings.import_.chunk_size == 1024

    def test_yaml_values(self, tmp_path: Path) -> None:
        config = write_config(
            tmp_path / "conf" / "config.yaml",
            """
paths:
  library_dir: /srv/books
  fallback_dir: unsorted
import:
  chunk_size: 4096
  max_reselect_attempts: 1
  allow_fallback: false
http:
  timeout_seconds: 5
  user_agent: test-agent
  retries: 0
environment:
  env: development
  log_level: debug
""",
        )

        settings = load_settings(config)

        assert settings.paths.library_dir == Path("/srv/books")
        # Relative paths resolve against the config file's directory
        assert settings.paths.fallback_dir == (tmp_path / "conf" / "unsorted").resolve()
        assert settings.import_.chunk_size == 4096
        assert settings.import_.max_reselect_attempts == 1
        assert settings.import_.allow_fallback is False
        assert settings.http.timeout_seconds == 5.0
        assert settings.http.user_agent == "test-agent"
        assert settings.http.retries == 0
        assert settings.env == "development"
        assert settings.log_level == "DEBUG"

    def test_env_fills_missing_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BOOKDROP_LIBRARY_DIR", str(tmp_path / "env-books"))
        monkeypatch.setenv("BOOKDROP_HTTP_TIMEOUT", "12")
        monkeypatch.setenv("LOG_LEVEL", "warning")

        settings = load_settings(tmp_path / "missing.yaml")

        assert settings.paths.library_dir == tmp_path / "env-books"
        assert settings.http.timeout_seconds == 12.0
        assert settings.log_level == "WARNING"

    def test_yaml_beats_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BOOKDROP_HTTP_TIMEOUT", "12")
        config = write_config(tmp_path / "config.yaml", "http:\n  timeout_seconds: 7\n")

        assert load_settings(config).http.timeout_seconds == 7.0

    def test_env_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        env_file = write_config(tmp_path / ".env", "BOOKDROP_HTTP_USER_AGENT=from-dotenv\n")
        # Registers the variable with monkeypatch so the dotenv value is undone
        monkeypatch.setenv("BOOKDROP_HTTP_USER_AGENT", "from-environment")

        settings = load_settings(tmp_path / "missing.yaml", env_file)

        assert settings.http.user_agent == "from-dotenv"

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        config = write_config(tmp_path / "config.yaml", "paths: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_settings(config)

    def test_non_mapping_yaml(self, tmp_path: Path) -> None:
        config = write_config(tmp_path / "config.yaml", "- a\n- b\n")

        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            load_yaml_config(config)

    def test_non_integer_chunk_size(self, tmp_path: Path) -> None:
        config = write_config(tmp_path / "config.yaml", "import:\n  chunk_size: big\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(config)

        assert exc_info.value.field == "import.chunk_size"

    def test_non_numeric_timeout(self, tmp_path: Path) -> None:
        config = write_config(tmp_path / "config.yaml", "http:\n  timeout_seconds: fast\n")

        with pytest.raises(ConfigurationError, match="must be a number") as exc_info:
            load_settings(config)

        assert exc_info.value.field == "http.timeout_seconds"

    @pytest.mark.parametrize("value", ['"false"', "no_thanks", "0"])
    def test_allow_fallback_must_be_boolean(self, tmp_path: Path, value: str) -> None:
        config = write_config(tmp_path / "config.yaml", f"import:\n  allow_fallback: {value}\n")

        with pytest.raises(ConfigurationError, match="must be true or false") as exc_info:
            load_settings(config)

        assert exc_info.value.field == "import.allow_fallback"

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        config = write_config(tmp_path / "config.yaml", "")

        settings = load_settings(config)

        assert settings.config_file == config
        assert settings.import_.chunk_size == DEFAULT_CHUNK_SIZE


class TestValidateSettings:
    """Tests for validate_settings."""

    @pytest.mark.parametrize("chunk_size", [0, MAX_CHUNK_SIZE + 1])
    def test_chunk_size_bounds(self, tmp_path: Path, chunk_size: int) -> None:
        config = write_config(tmp_path / "config.yaml", f"import:\n  chunk_size: {chunk_size}\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(config)

        assert exc_info.value.field == "import.chunk_size"

    def test_negative_reselect_attempts(self, tmp_path: Path) -> None:
        config = write_config(
            tmp_path / "config.yaml", "import:\n  max_reselect_attempts: -1\n"
        )

        with pytest.raises(ConfigurationError, match="cannot be negative"):
            load_settings(config)

    def test_nonpositive_timeout(self, tmp_path: Path) -> None:
        config = write_config(tmp_path / "config.yaml", "http:\n  timeout_seconds: 0\n")

        with pytest.raises(ConfigurationError, match="must be positive"):
            load_settings(config)

    def test_negative_http_retries(self, tmp_path: Path) -> None:
        config = write_config(tmp_path / "config.yaml", "http:\n  retries: -2\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(config)

        assert exc_info.value.field == "http.retries"

    def test_warnings(self, tmp_path: Path) -> None:
        config = write_config(
            tmp_path / "config.yaml",
            "paths:\n  library_dir: books\n  fallback_dir: books\nhttp:\n  timeout_seconds: 600\n",
        )
        settings = load_settings(config, validate=False)

        warnings = validate_settings(settings)

        assert any("timeout_seconds is unusual" in w for w in warnings)
        assert any("fallback_dir is the same" in w for w in warnings)

    def test_warnings_are_logged(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        config = write_config(tmp_path / "config.yaml", "http:\n  timeout_seconds: 600\n")

        with caplog.at_level(logging.WARNING, logger="bookdrop.config"):
            load_settings(config)

        assert "timeout_seconds is unusual" in caplog.text

    def test_library_dir_is_a_file(self, tmp_path: Path) -> None:
        (tmp_path / "books").write_text("oops")
        config = write_config(tmp_path / "config.yaml", "paths:\n  library_dir: books\n")

        with pytest.raises(ConfigurationError, match="not a directory"):
            load_settings(config)


class TestSettingsCache:
    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_reload_replaces_cache(self, tmp_path: Path) -> None:
        first = get_settings()
        config = write_config(tmp_path / "config.yaml", "import:\n  chunk_size: 2048\n")

        reloaded = reload_settings(config)

        assert reloaded is not first
        assert get_settings() is reloaded
        assert reloaded.import_.chunk_size == 2048

    def test_clear_settings(self) -> None:
        first = get_settings()
        clear_settings()
        assert get_settings() is not first
