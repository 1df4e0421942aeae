"""
Centralized configuration management for card-fetcher.

Type-safe, validated configuration using Pydantic settings. The configuration
is loaded once at process start and handed to the Router explicitly; nothing
reads it behind the caller's back afterwards.
"""

import json
from pathlib import Path
from typing import Optional, Dict, List, Union
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import (
    DEFAULT_USER_AGENT,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_HTTP_RETRY_COUNT,
    DEFAULT_HTTP_RETRY_BACKOFF_FACTOR,
    DEFAULT_SNAPSHOT_DIR,
)


class HTTPConfig(BaseSettings):
    """Configuration for the shared HTTP session"""

    model_config = SettingsConfigDict(
        env_prefix="HTTP_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT_SECONDS, description="Request timeout in seconds")
    max_retries: int = Field(default=DEFAULT_HTTP_RETRY_COUNT, description="Maximum number of retries")
    backoff_factor: float = Field(default=DEFAULT_HTTP_RETRY_BACKOFF_FACTOR, description="Retry backoff factor")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent header")


class IntegrationConfig(BaseSettings):
    """Canonical URLs and stored snapshots used by the integration check"""

    model_config = SettingsConfigDict(
        env_prefix="INTEGRATION_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    snapshot_dir: Path = Field(default=Path(DEFAULT_SNAPSHOT_DIR), description="Directory holding <source>.json snapshots")
    resource_urls: Dict[str, str] = Field(default_factory=dict, description="Source ID -> canonical character URL")

    def resource_url(self, source_id: str) -> Optional[str]:
        return self.resource_urls.get(source_id)


class LoggingConfig(BaseSettings):
    """Configuration for logging behavior"""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    file_level: str = Field(default="INFO", description="File logging level")
    console_level: str = Field(default="WARNING", description="Console logging level")
    log_file: str = Field(default="card_fetcher.log", description="Log file path")

    @field_validator('file_level', 'console_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log level is one of the allowed values"""
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class CardFetcherConfig(BaseSettings):
    """
    Main configuration class for card-fetcher.

    Loads from environment variables and .env files. ``handlers`` lists the
    site handler factories to register, as ``module:attribute`` paths, in
    registration (and therefore routing) order.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore"
    )

    handlers: List[str] = Field(default_factory=list, description="Handler factories, 'module:attribute'")
    add_source_tag: bool = Field(default=False, description="Tag every card with the tag of its source")

    http: HTTPConfig = Field(default_factory=HTTPConfig, description="HTTP session configuration")
    integration: IntegrationConfig = Field(default_factory=IntegrationConfig, description="Integration check configuration")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")

    def save_to_file(self, path: Union[str, Path]) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = self.model_dump(mode='json')

        with open(path, "w", encoding="utf-8") as f:
            json.dump(config_dict, f, indent=2, ensure_ascii=False)

    @classmethod
    def load_from_file(cls, path: Union[str, Path]) -> "CardFetcherConfig":
        """Load configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return cls(**data)


# Global configuration instance
_config_instance: Optional[CardFetcherConfig] = None


def setup_config(
    config_file: Optional[Union[str, Path]] = None,
    env_file: Optional[Union[str, Path]] = None,
    **kwargs
) -> CardFetcherConfig:
    """
    Set up the global configuration.

    Args:
        config_file: Optional JSON file produced by save_to_file
        env_file: Path to .env file
        **kwargs: Additional configuration overrides
    """
    global _config_instance

    if config_file:
        config = CardFetcherConfig.load_from_file(config_file)
        if kwargs:
            config = config.model_copy(update=kwargs)
        _config_instance = config
        return _config_instance

    config_kwargs = {}
    if env_file:
        config_kwargs["_env_file"] = str(env_file)
    config_kwargs.update(kwargs)

    _config_instance = CardFetcherConfig(**config_kwargs)
    return _config_instance


def get_config() -> CardFetcherConfig:
    """Get the global configuration instance, loading it on first use."""
    global _config_instance
    if _config_instance is None:
        _config_instance = CardFetcherConfig()
    return _config_instance


def reload_config() -> CardFetcherConfig:
    """Reload configuration from environment and .env files."""
    global _config_instance
    _config_instance = CardFetcherConfig()
    return _config_instance


def get_http_config() -> HTTPConfig:
    return get_config().http


def get_integration_config() -> IntegrationConfig:
    return get_config().integration


def get_logging_config() -> LoggingConfig:
    return get_config().logging


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
