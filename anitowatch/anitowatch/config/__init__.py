"""
Configuration package for AniToWatch.

This package provides centralized, type-safe configuration management.
"""

from .manager import (
    StorageConfig,
    JikanConfig,
    BridgeConfig,
    LoggingConfig,
    AniToWatchConfig,
    setup_config,
    get_config,
    reload_config,
    get_data_dir,
    get_storage_config,
    get_jikan_config,
    get_bridge_config,
    get_logging_config,
)

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
