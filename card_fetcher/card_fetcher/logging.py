"""
Centralized logging and error handling for card-fetcher.

This module provides consistent logging configuration and the base exceptions
shared by the whole package. Library modules only ever call
``logging.getLogger(__name__)``; handlers are installed by ``setup_logging``,
which the CLI calls once at startup.
"""

import logging
from contextlib import contextmanager
from typing import Optional, Union
from rich.logging import RichHandler
from rich.console import Console

# Global console instance for the entire application
console = Console()


class CardFetcherError(Exception):
    """Base exception for all card-fetcher errors."""
    pass


class ConfigError(CardFetcherError):
    """Raised when there's a configuration-related error."""
    pass


class CardFetcherLogger:
    """
    Centralized logging configuration for card-fetcher.

    Owns the root logger handlers: a UTF-8 file handler with full detail and a
    Rich console handler that only shows warnings and errors by default.
    """

    def __init__(self, log_file: str = "card_fetcher.log"):
        self.log_file = log_file
        self.console = console
        self._setup_root_logger()

    def _setup_root_logger(self) -> None:
        """Configure the root logger with file and console handlers."""
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(file_formatter)

        console_handler = RichHandler(
            console=self.console,
            show_path=False,
            show_time=True,
            show_level=True,
            markup=False,
            keywords=[]
        )
        console_handler.setLevel(logging.WARNING)

        root_logger = logging.getLogger()
        root_logger.setLevel(logging.INFO)

        # Clear existing handlers to avoid duplicates
        root_logger.handlers = []
        root_logger.addHandler(file_handler)
        root_logger.addHandler(console_handler)

    def set_console_level(self, level: Union[str, int], clean: bool = False) -> None:
        """
        Set the console logging level.

        Args:
            level: Logging level (e.g., 'DEBUG', 'INFO', 'WARNING')
            clean: If True, hides time and level for a cleaner output
        """
        numeric_level = _to_numeric_level(level)
        root_logger = logging.getLogger()
        if numeric_level < root_logger.level:
            root_logger.setLevel(numeric_level)

        for handler in root_logger.handlers:
            if isinstance(handler, RichHandler):
                handler.setLevel(numeric_level)
                handler._log_render.show_time = not clean
                handler._log_render.show_level = not clean
                break

    def set_file_level(self, level: Union[str, int]) -> None:
        """Set the file logging level."""
        numeric_level = _to_numeric_level(level)
        root_logger = logging.getLogger()
        if numeric_level < root_logger.level:
            root_logger.setLevel(numeric_level)

        for handler in root_logger.handlers:
            if isinstance(handler, logging.FileHandler):
                handler.setLevel(numeric_level)
                break


def _to_numeric_level(level: Union[str, int]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


# Global logger instance
_logger_instance: Optional[CardFetcherLogger] = None


def setup_logging(log_file: str = "card_fetcher.log") -> CardFetcherLogger:
    """
    Set up the global logging configuration.

    Args:
        log_file: Path to the log file

    Returns:
        The configured CardFetcherLogger instance
    """
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = CardFetcherLogger(log_file)
    return _logger_instance


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


@contextmanager
def temporary_log_level(level: Union[str, int], handler_type: str = "console"):
    """
    Temporarily change the log level of one handler.

    Usage:
        with temporary_log_level("DEBUG"):
            ...
    """
    if _logger_instance is None:
        setup_logging()

    handler_class = RichHandler if handler_type == "console" else logging.FileHandler
    root_logger = logging.getLogger()
    target = next((h for h in root_logger.handlers if isinstance(h, handler_class)), None)
    previous_level = target.level if target is not None else None

    if target is not None:
        target.setLevel(level)
    try:
        yield
    finally:
        if target is not None:
            target.setLevel(previous_level)


def log_api_call(url: str, method: str, params: Optional[dict] = None) -> None:
    """
    Log an API call with sensitive data masking.
    Logs at DEBUG level.
    """
    logger = logging.getLogger("card_fetcher.api")

    if not logger.isEnabledFor(logging.DEBUG):
        return

    safe_params = "None"
    if params:
        masked = dict(params)
        keys_to_mask = ['api_key', 'token', 'password', 'secret', 'key', 'cookie']
        for k in masked:
            if isinstance(k, str) and any(m in k.lower() for m in keys_to_mask):
                masked[k] = "********"
        safe_params = str(masked)

    logger.debug(f"API CALL: {method} {url} | Params: {safe_params}")


__all__ = [
    "console",
    "CardFetcherError",
    "ConfigError",
    "CardFetcherLogger",
    "setup_logging",
    "set_log_level",
    "temporary_log_level",
    "log_api_call",
]
