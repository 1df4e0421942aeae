"""
Configuration package for card-fetcher.

This package provides centralized, type-safe configuration management.
"""

from .manager import (
    HTTPConfig,
    IntegrationConfig,
    LoggingConfig,
    CardFetcherConfig,
    setup_config,
    get_config,
    reload_config,
    get_http_config,
    get_integration_config,
    get_logging_config,
)

__all__ = [
    "HTTPConfig",
    "IntegrationConfig",
    "LoggingConfig",
    "CardFetcherConfig",
    "setup_config",
    "get_config",
    "reload_config",
    "get_http_config",
    "get_integration_config",
    "get_logging_config",
]
