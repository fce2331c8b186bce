"""
Centralized configuration management for AniToWatch.

This module provides type-safe, validated configuration using Pydantic.
Every setting can come from the environment or a .env file.
"""

from pathlib import Path
from typing import Optional, Union
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import (
    BRIDGE_MODES,
    DEFAULT_BRIDGE_HOST,
    DEFAULT_BRIDGE_MODE,
    DEFAULT_BRIDGE_PORT,
    DEFAULT_DATA_DIR,
    DEFAULT_LOCAL_STORAGE_FILENAME,
    JIKAN_BASE_URL,
    JIKAN_RATE_LIMIT_DELAY,
    JIKAN_SEARCH_PAGE_LIMIT,
    JIKAN_TIMEOUT_SECONDS,
    JSON_INDENT,
)


class StorageConfig(BaseSettings):
    """Configuration for the JSON list files"""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    data_dir: Path = Field(default=Path(DEFAULT_DATA_DIR), description="Directory holding the list files")
    indent: int = Field(default=JSON_INDENT, ge=0, description="Indentation used when writing list files")


class JikanConfig(BaseSettings):
    """Configuration for Jikan (MyAnimeList) API"""

    model_config = SettingsConfigDict(
        env_prefix="JIKAN_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    base_url: str = Field(default=JIKAN_BASE_URL, description="Jikan API base URL")
    rate_limit_delay: float = Field(default=JIKAN_RATE_LIMIT_DELAY, ge=0, description="Delay before each request in seconds")
    timeout: int = Field(default=JIKAN_TIMEOUT_SECONDS, description="API timeout in seconds")
    page_limit: int = Field(default=JIKAN_SEARCH_PAGE_LIMIT, ge=1, le=25, description="Results per search page")


class BridgeConfig(BaseSettings):
    """Configuration for the request bridge between the UI and the list store"""

    model_config = SettingsConfigDict(
        env_prefix="BRIDGE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    mode: str = Field(default=DEFAULT_BRIDGE_MODE, description="Bridge mode: store, remote, browser")
    host: str = Field(default=DEFAULT_BRIDGE_HOST, description="Bridge host address")
    port: int = Field(default=DEFAULT_BRIDGE_PORT, description="Bridge host port")
    local_storage_file: Path = Field(
        default=Path(DEFAULT_DATA_DIR) / DEFAULT_LOCAL_STORAGE_FILENAME,
        description="Key/value file used when no bridge host is reachable"
    )

    @field_validator('mode')
    @classmethod
    def validate_mode(cls, v: str) -> str:
        v = v.lower()
        if v not in BRIDGE_MODES:
            raise ValueError(f"Bridge mode must be one of {BRIDGE_MODES}")
        return v

    @property
    def uri(self) -> str:
        return f"ws://{self.host}:{self.port}"


class LoggingConfig(BaseSettings):
    """Configuration for logging behavior"""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    level: str = Field(default="INFO", description="Default logging level")
    file_level: str = Field(default="INFO", description="File logging level")
    console_level: str = Field(default="WARNING", description="Console logging level")
    file: str = Field(default="anitowatch.log", description="Log file path")

    @field_validator('level', 'file_level', 'console_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log level is one of the allowed values"""
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class AniToWatchConfig(BaseSettings):
    """
    Main configuration class for AniToWatch.

    This class serves as the single source of truth for all configuration.
    It automatically loads from environment variables and .env files.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore"
    )

    storage: StorageConfig = Field(default_factory=StorageConfig, description="List storage configuration")
    jikan: JikanConfig = Field(default_factory=JikanConfig, description="Jikan API configuration")
    bridge: BridgeConfig = Field(default_factory=BridgeConfig, description="Request bridge configuration")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")

    verbose: bool = Field(default=False, description="Enable verbose output")


# Global configuration instance
_config_instance: Optional[AniToWatchConfig] = None


def setup_config(
    data_dir: Optional[Union[str, Path]] = None,
    bridge_mode: Optional[str] = None,
    env_file: Optional[Union[str, Path]] = None,
    **kwargs
) -> AniToWatchConfig:
    """
    Set up the global configuration.

    Args:
        data_dir: Directory holding the list files
        bridge_mode: One of store, remote, browser
        env_file: Path to .env file
        **kwargs: Additional configuration overrides

    Returns:
        AniToWatchConfig instance
    """
    global _config_instance

    config_kwargs = {}
    if env_file:
        config_kwargs["_env_file"] = str(env_file)
    config_kwargs.update(kwargs)

    config = AniToWatchConfig(**config_kwargs)

    # Section overrides go through the section model so validators still run
    if data_dir:
        storage_values = config.storage.model_dump()
        storage_values["data_dir"] = Path(data_dir)
        config.storage = StorageConfig(**storage_values)
    if data_dir or bridge_mode:
        bridge_values = config.bridge.model_dump()
        if bridge_mode:
            bridge_values["mode"] = bridge_mode
        # The key/value file follows the data dir unless it was set explicitly
        default_storage_file = Path(DEFAULT_DATA_DIR) / DEFAULT_LOCAL_STORAGE_FILENAME
        if data_dir and Path(bridge_values["local_storage_file"]) == default_storage_file:
            bridge_values["local_storage_file"] = Path(data_dir) / DEFAULT_LOCAL_STORAGE_FILENAME
        config.bridge = BridgeConfig(**bridge_values)

    _config_instance = config
    return _config_instance


def get_config() -> AniToWatchConfig:
    """
    Get the global configuration instance, creating it from the
    environment on first use.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = AniToWatchConfig()
    return _config_instance


def reload_config() -> AniToWatchConfig:
    """Reload configuration from environment and .env files."""
    global _config_instance
    _config_instance = AniToWatchConfig()
    return _config_instance


# Convenience functions for common configuration access
def get_data_dir() -> Path:
    """Get the configured list data directory."""
    return get_config().storage.data_dir


def get_storage_config() -> StorageConfig:
    return get_config().storage


def get_jikan_config() -> JikanConfig:
    return get_config().jikan


def get_bridge_config() -> BridgeConfig:
    return get_config().bridge


def get_logging_config() -> LoggingConfig:
    return get_config().logging


__all__ = [
    "StorageConfig",
    "JikanConfig",
    "BridgeConfig",
    "LoggingConfig",
    "AniToWatchConfig",
    "setup_config",
    "get_config",
    "reload_config",
    "get_data_dir",
    "get_storage_config",
    "get_jikan_config",
    "get_bridge_config",
    "get_logging_config",
]
