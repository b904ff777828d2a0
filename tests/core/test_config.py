"""Tests for engine configuration."""

from pathlib import Path

import pytest

from tribelist.core.config import EngineConfig


class TestEngineConfigDefaults:
    """Tests for default values."""

    def test_defaults(self) -> None:
        """Config should have sensible defaults."""
        config = EngineConfig()
        assert config.db_path == Path("tribelist.db")
        assert config.log_path is None
        assert config.log_level == "INFO"
        assert config.apply_max_attempts == 3
        assert config.timeout_seconds is None
        assert config.import_dir == Path("imports")

    def test_normalizes_log_level(self) -> None:
        """Log level should be upper-cased."""
        assert EngineConfig(log_level="debug").log_level == "DEBUG"

    def test_rejects_unknown_log_level(self) -> None:
        """Unknown log levels should be rejected."""
        with pytest.raises(ValueError, match="log level"):
            EngineConfig(log_level="chatty")

    def test_rejects_zero_attempts(self) -> None:
        """At least one compare-and-swap attempt is required."""
        with pytest.raises(ValueError, match="apply_max_attempts"):
            EngineConfig(apply_max_attempts=0)

    def test_rejects_non_positive_timeout(self) -> None:
        """Timeouts must be positive."""
        with pytest.raises(ValueError, match="timeout_seconds"):
            EngineConfig(timeout_seconds=0)


class TestEngineConfigFromEnv:
    """Tests for loading from environment variables."""

    def test_empty_environment_gives_defaults(self) -> None:
        """No variables should give the defaults."""
        assert EngineConfig.from_env({}) == EngineConfig()

    def test_reads_all_variables(self, tmp_path) -> None:
        """Every TRIBELIST_* variable should be honored."""
        env = {
            "TRIBELIST_DB_PATH": str(tmp_path / "lists.db"),
            "TRIBELIST_LOG_PATH": str(tmp_path / "tribelist.log"),
            "TRIBELIST_LOG_LEVEL": "warning",
            "TRIBELIST_APPLY_MAX_ATTEMPTS": "5",
            "TRIBELIST_TIMEOUT_SECONDS": "2.5",
            "TRIBELIST_IMPORT_DIR": str(tmp_path / "exports"),
        }
        config = EngineConfig.from_env(env)
        assert config.db_path == tmp_path / "lists.db"
        assert config.log_path == tmp_path / "tribelist.log"
        assert config.log_level == "WARNING"
        assert config.apply_max_attempts == 5
        assert config.timeout_seconds == 2.5
        assert config.import_dir == tmp_path / "exports"

    def test_invalid_integer_names_variable(self) -> None:
        """A bad integer should mention the variable."""
        with pytest.raises(ValueError, match="TRIBELIST_APPLY_MAX_ATTEMPTS"):
            EngineConfig.from_env({"TRIBELIST_APPLY_MAX_ATTEMPTS": "many"})

    def test_invalid_float_names_variable(self) -> None:
        """A bad number should mention the variable."""
        with pytest.raises(ValueError, match="TRIBELIST_TIMEOUT_SECONDS"):
            EngineConfig.from_env({"TRIBELIST_TIMEOUT_SECONDS": "soon"})

    def test_reads_os_environ_by_default(self, monkeypatch) -> None:
        """Without a mapping, os.environ should be used."""
        monkeypatch.setenv("TRIBELIST_LOG_LEVEL", "ERROR")
        assert EngineConfig.from_env().log_level == "ERROR"
