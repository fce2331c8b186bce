"""
Centralized logging and error handling for AniToWatch.

This module provides consistent logging configuration and custom exceptions
across the entire application.
"""

import logging
from contextlib import contextmanager
from typing import Optional, Union
from rich.logging import RichHandler
from rich.console import Console

# Global console instance for the entire application
console = Console()


class AniToWatchError(Exception):
    """Base exception for all AniToWatch-specific errors."""
    pass


class ConfigError(AniToWatchError):
    """Raised when there's a configuration-related error."""
    pass


class APIError(AniToWatchError):
    """Raised when a call to the Jikan catalog API fails."""
    pass


class StorageError(AniToWatchError):
    """Raised when a list file cannot be written."""
    pass


class ValidationError(AniToWatchError):
    """Raised when an incoming record or argument is malformed."""
    pass


class UnsupportedOperationError(AniToWatchError):
    """Raised when a list kind does not support the requested operation."""
    pass


class BridgeError(AniToWatchError):
    """Raised when the request bridge transport or protocol fails."""
    pass


class AniToWatchLogger:
    """
    Centralized logging configuration for AniToWatch.

    Owns the root logger's handlers: a UTF-8 file handler with full detail and
    a Rich console handler that only shows warnings unless raised.
    """

    def __init__(self, log_file: str = "anitowatch.log", file_level: str = "INFO", console_level: str = "WARNING"):
        self.log_file = log_file
        self.console = console
        self._setup_root_logger(file_level, console_level)

    def _setup_root_logger(self, file_level: str, console_level: str) -> None:
        """Configure the root logger with file and console handlers."""
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        # Use UTF-8 so titles with Japanese characters never break the log
        file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
        file_handler.setLevel(file_level)
        file_handler.setFormatter(file_formatter)

        console_handler = RichHandler(
            console=self.console,
            show_path=False,
            show_time=True,
            show_level=True,
            markup=True,
            keywords=[]
        )
        console_handler.setLevel(console_level)

        root_logger = logging.getLogger()
        root_logger.setLevel(logging.INFO)

        # Clear existing handlers to avoid duplicates
        for handler in root_logger.handlers:
            handler.close()
        root_logger.handlers = []
        root_logger.addHandler(file_handler)
        root_logger.addHandler(console_handler)

    def get_logger(self, name: str) -> logging.Logger:
        return logging.getLogger(name)

    def set_console_level(self, level: Union[str, int], clean: bool = False) -> None:
        """
        Set the console logging level.

        Args:
            level: Logging level (e.g., 'DEBUG', 'INFO', 'WARNING')
            clean: If True, hides time and level for a cleaner UI-like look
        """
        _lower_root_level(level)
        for handler in logging.getLogger().handlers:
            if isinstance(handler, RichHandler):
                handler.setLevel(level)
                handler.show_time = not clean
                handler.show_level = not clean
                break

    def set_file_level(self, level: Union[str, int]) -> None:
        _lower_root_level(level)
        for handler in logging.getLogger().handlers:
            if isinstance(handler, logging.FileHandler):
                handler.setLevel(level)
                break


def _lower_root_level(level: Union[str, int]) -> None:
    # The root logger must let records through before any handler sees them
    root_logger = logging.getLogger()
    numeric_level = level
    if isinstance(level, str):
        numeric_level = getattr(logging, level.upper(), logging.INFO)
    if numeric_level < root_logger.level:
        root_logger.setLevel(numeric_level)


# Global logger instance
_logger_instance: Optional[AniToWatchLogger] = None


def setup_logging(
    log_file: str = "anitowatch.log",
    file_level: str = "INFO",
    console_level: str = "WARNING",
    force: bool = False
) -> AniToWatchLogger:
    """
    Set up the global logging configuration.

    Args:
        log_file: Path to the log file
        file_level: Level for the file handler
        console_level: Level for the Rich console handler
        force: Rebuild the handlers even if logging was already set up

    Returns:
        The configured AniToWatchLogger instance
    """
    global _logger_instance
    if _logger_instance is None or force:
        _logger_instance = AniToWatchLogger(log_file, file_level=file_level, console_level=console_level)
    return _logger_instance


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    This should be called in each module as:
        from anitowatch.anitowatch.logging import get_logger
        logger = get_logger(__name__)
    """
    if _logger_instance is None:
        setup_logging()
    return logging.getLogger(name)


def set_log_level(level: Union[str, int], handler_type: str = "both", clean: bool = False) -> None:
    """
    Set the logging level for console, file, or both handlers.

    Args:
        level: Logging level (e.g., 'DEBUG', 'INFO', 'WARNING', 'ERROR')
        handler_type: 'console', 'file', or 'both'
        clean: If True, hides time and level for console handler
    """
    if _logger_instance is None:
        setup_logging()

    if handler_type in ("console", "both"):
        _logger_instance.set_console_level(level, clean=clean)
    if handler_type in ("file", "both"):
        _logger_instance.set_file_level(level)


def verbosity_to_level(verbose: int) -> int:
    """Maps a -v count to a console level: none=WARNING, -v=INFO, -vv=DEBUG."""
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


@contextmanager
def temporary_log_level(level: Union[str, int], handler_type: str = "console"):
    """
    Temporarily change the log level.

    Usage:
        with temporary_log_level("DEBUG"):
            # Debug logging enabled here
            ...
        # Original log level restored
    """
    if _logger_instance is None:
        setup_logging()

    handler_cls = RichHandler if handler_type == "console" else logging.FileHandler
    target = None
    for handler in logging.getLogger().handlers:
        if isinstance(handler, handler_cls):
            target = handler
            break

    previous_level = target.level if target else None
    if target:
        target.setLevel(level)

    try:
        yield
    finally:
        if target and previous_level is not None:
            target.setLevel(previous_level)


def log_api_call(url: str, method: str, params: Optional[dict] = None) -> None:
    """
    Log an API call with sensitive data masking.
    Logs at DEBUG level.
    """
    logger = logging.getLogger("anitowatch.api")

    # Quick check to avoid processing if not debug
    if not logger.isEnabledFor(logging.DEBUG):
        return

    safe_params = "None"
    if params:
        masked = dict(params)
        keys_to_mask = ['api_key', 'token', 'password', 'secret', 'key']
        for k in masked:
            if isinstance(k, str) and any(m in k.lower() for m in keys_to_mask):
                masked[k] = "********"
        safe_params = str(masked)

    logger.debug(f"API CALL: {method} {url} | Params: {safe_params}")


__all__ = [
    "AniToWatchError",
    "ConfigError",
    "APIError",
    "StorageError",
    "ValidationError",
    "UnsupportedOperationError",
    "BridgeError",
    "AniToWatchLogger",
    "setup_logging",
    "get_logger",
    "set_log_level",
    "verbosity_to_level",
    "temporary_log_level",
    "log_api_call",
]
