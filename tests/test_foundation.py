"""
Test suite for the foundation components: logging, errors and configuration.
"""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from anitowatch.anitowatch.logging import (
    setup_logging, get_logger, set_log_level, temporary_log_level, verbosity_to_level,
    AniToWatchError, ConfigError, APIError, StorageError, ValidationError,
    UnsupportedOperationError, BridgeError
)
from anitowatch.anitowatch.config import (
    setup_config, get_config, reload_config, AniToWatchConfig,
    BridgeConfig, LoggingConfig, StorageConfig,
    get_data_dir, get_bridge_config, get_jikan_config, get_logging_config
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("BRIDGE_MODE", "BRIDGE_PORT", "BRIDGE_HOST", "STORAGE_DATA_DIR", "JIKAN_TIMEOUT", "LOG_CONSOLE_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestLogging:
    """Test the centralized logging system."""

    def test_setup_logging(self, tmp_path):
        """Test that logging writes to the configured file."""
        log_file = str(tmp_path / "anitowatch.log")
        logger_instance = setup_logging(log_file, force=True)
        assert logger_instance.log_file == log_file
        assert Path(log_file).exists()

        get_logger("anitowatch.test").warning("written to file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "written to file" in Path(log_file).read_text(encoding="utf-8")

    def test_setup_replaces_handlers(self, tmp_path):
        """Re-running setup replaces the file handler."""
        setup_logging(str(tmp_path / "a.log"), force=True)
        setup_logging(str(tmp_path / "b.log"), force=True)
        file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].baseFilename.endswith("b.log")

    def test_get_logger_uses_root_handlers(self):
        """Module loggers rely on the root handlers."""
        logger = get_logger("test.module")
        assert logger.name == "test.module"
        assert len(logger.handlers) == 0

    def test_log_levels(self, tmp_path):
        """Test that log levels can be changed."""
        setup_logging(str(tmp_path / "levels.log"), force=True)
        set_log_level("DEBUG", "console")
        assert logging.getLogger().level == logging.DEBUG
        set_log_level("WARNING", "both")

    def test_temporary_log_level(self, tmp_path):
        """Temporary levels are restored afterwards."""
        setup_logging(str(tmp_path / "temp.log"), force=True)
        root = logging.getLogger()
        before = [h.level for h in root.handlers]
        with temporary_log_level("DEBUG"):
            pass
        assert [h.level for h in root.handlers] == before

    def test_verbosity_to_level(self):
        """-v counts map to console levels."""
        assert verbosity_to_level(0) == logging.WARNING
        assert verbosity_to_level(1) == logging.INFO
        assert verbosity_to_level(3) == logging.DEBUG


class TestExceptions:
    """Test the custom exception hierarchy."""
    def test_hierarchy(self):
        """All custom errors derive from AniToWatchError."""
        for cls in (ConfigError, APIError, StorageError, ValidationError, UnsupportedOperationError, BridgeError):
            assert issubclass(cls, AniToWatchError)

    def test_message(self):
        """Errors keep their message."""
        with pytest.raises(AniToWatchError, match="disk full"):
            raise StorageError("disk full")


class TestConfig:
    """Test the configuration system."""
    def test_defaults(self):
        """Defaults apply when nothing is set."""
        config = reload_config()
        assert isinstance(config, AniToWatchConfig)
        assert config.storage.data_dir == Path("data")
        assert config.storage.indent == 2
        assert config.bridge.mode == "store"
        assert config.bridge.uri == "ws://127.0.0.1:8765"
        assert config.jikan.base_url == "https://api.jikan.moe/v4"
        assert config.logging.console_level == "WARNING"

    def test_environment_overrides(self, monkeypatch):
        """Environment variables override defaults."""
        monkeypatch.setenv("BRIDGE_MODE", "Browser")
        monkeypatch.setenv("BRIDGE_PORT", "9001")
        monkeypatch.setenv("JIKAN_TIMEOUT", "3")
        config = reload_config()
        assert config.bridge.mode == "browser"
        assert config.bridge.port == 9001
        assert get_jikan_config().timeout == 3

    def test_invalid_values_are_rejected(self):
        """Section validators reject bad values."""
        with pytest.raises(PydanticValidationError):
            BridgeConfig(mode="carrier-pigeon")
        with pytest.raises(PydanticValidationError):
            LoggingConfig(console_level="LOUD")
        with pytest.raises(PydanticValidationError):
            StorageConfig(indent=-1)

    def test_setup_config_overrides(self, tmp_path):
        """setup_config applies CLI overrides and moves the local storage file."""
        config = setup_config(data_dir=tmp_path, bridge_mode="remote")
        assert config is get_config()
        assert get_data_dir() == tmp_path
        assert get_bridge_config().mode == "remote"
        assert config.bridge.local_storage_file == tmp_path / "local_storage.json"

    def test_setup_config_rejects_bad_mode(self):
        """Bad bridge modes are rejected by setup_config."""
        with pytest.raises(PydanticValidationError):
            setup_config(bridge_mode="smoke-signals")

    def test_logging_section(self, monkeypatch):
        """Log levels from the environment are normalised."""
        monkeypatch.setenv("LOG_CONSOLE_LEVEL", "debug")
        reload_config()
        assert get_logging_config().console_level == "DEBUG"
