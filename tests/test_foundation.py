"""
Test suite for the foundation components.

This test verifies that logging, configuration and coded errors work correctly.
"""

import json
import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from card_fetcher.card_fetcher.logging import (
    setup_logging, set_log_level, temporary_log_level, log_api_call,
    CardFetcherError, ConfigError
)
from card_fetcher.card_fetcher.config import (
    setup_config, get_config, reload_config, CardFetcherConfig,
    HTTPConfig, IntegrationConfig, LoggingConfig,
    get_http_config, get_integration_config, get_logging_config
)
from card_fetcher.card_fetcher.errors import (
    ErrCode, FetchError, new_error, wrap_error, get_err_code
)


class TestLogging:
    """Test the centralized logging system."""

    def test_setup_logging(self, tmp_path):
        """Test that logging can be set up."""
        logger_instance = setup_logging(str(tmp_path / "card_fetcher.log"))
        assert logger_instance is not None
        assert logger_instance.log_file

    def test_log_levels(self):
        """Test that log levels can be changed."""
        set_log_level("DEBUG", "console")
        set_log_level("INFO", "file")
        set_log_level("WARNING", "both")

        root_logger = logging.getLogger()
        levels = {type(h).__name__: h.level for h in root_logger.handlers}
        assert levels["RichHandler"] == logging.WARNING
        assert levels["FileHandler"] == logging.WARNING

    def test_temporary_log_level(self):
        """Test temporary log level context manager."""
        set_log_level("WARNING", "console")
        console_handler = next(h for h in logging.getLogger().handlers if type(h).__name__ == "RichHandler")

        with temporary_log_level(logging.DEBUG):
            assert console_handler.level == logging.DEBUG

        assert console_handler.level == logging.WARNING

    def test_log_api_call_masks_secrets(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="card_fetcher.api"):
            log_api_call("https://example.com/api", "GET", {"api_key": "hunter2", "page": 2})

        assert "hunter2" not in caplog.text
        assert "********" in caplog.text
        assert "'page': 2" in caplog.text

    def test_exception_hierarchy(self):
        """Test that custom exceptions work correctly."""
        assert issubclass(ConfigError, CardFetcherError)
        assert issubclass(FetchError, CardFetcherError)

        with pytest.raises(CardFetcherError):
            raise ConfigError("Test config error")


class TestConfiguration:
    """Test the configuration system."""

    def test_default_config(self):
        """Test that default configuration loads."""
        config = CardFetcherConfig(_env_file=None)
        assert config.handlers == []
        assert isinstance(config.http, HTTPConfig)
        assert isinstance(config.integration, IntegrationConfig)
        assert isinstance(config.logging, LoggingConfig)
        assert config.http.timeout > 0
        assert config.http.max_retries >= 0

    def test_env_prefixes(self):
        with patch.dict(os.environ, {"HTTP_TIMEOUT": "3", "LOG_CONSOLE_LEVEL": "debug"}):
            assert HTTPConfig(_env_file=None).timeout == 3
            assert LoggingConfig(_env_file=None).console_level == "DEBUG"

    def test_handlers_from_env(self):
        with patch.dict(os.environ, {"HANDLERS": '["card_fetcher.card_fetcher.mock:build"]'}):
            config = CardFetcherConfig(_env_file=None)
        assert config.handlers == ["card_fetcher.card_fetcher.mock:build"]

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            LoggingConfig(_env_file=None, file_level="LOUD")

    def test_resource_url(self):
        integration = IntegrationConfig(_env_file=None, resource_urls={"mock": "https://mock.example/characters/abc"})
        assert integration.resource_url("mock") == "https://mock.example/characters/abc"
        assert integration.resource_url("other") is None

    def test_config_save_load(self, tmp_path):
        """Test saving and loading configuration."""
        config = CardFetcherConfig(
            _env_file=None,
            handlers=["card_fetcher.card_fetcher.mock:build"],
            integration=IntegrationConfig(_env_file=None, snapshot_dir=tmp_path, resource_urls={"mock": "u"}),
        )
        path = tmp_path / "config.json"
        config.save_to_file(path)

        with open(path, "r", encoding="utf-8") as f:
            assert json.load(f)["handlers"] == ["card_fetcher.card_fetcher.mock:build"]

        loaded = CardFetcherConfig.load_from_file(path)
        assert loaded.handlers == config.handlers
        assert loaded.integration.resource_urls == {"mock": "u"}
        assert Path(loaded.integration.snapshot_dir) == tmp_path

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CardFetcherConfig.load_from_file(tmp_path / "missing.json")

    def test_global_config(self, tmp_path):
        """Test global configuration functions."""
        config = setup_config(env_file=tmp_path / "none.env", handlers=["a:b"])
        assert get_config() is config
        assert get_config().handlers == ["a:b"]
        assert get_http_config() is config.http
        assert get_integration_config() is config.integration
        assert get_logging_config() is config.logging

        reloaded = reload_config()
        assert get_config() is reloaded


class TestErrors:
    def test_message(self):
        assert str(FetchError(ErrCode.FETCH_METADATA)) == "failed to fetch metadata"
        error = new_error(ValueError("boom"), ErrCode.FETCH_METADATA)
        assert str(error) == "failed to fetch metadata: boom"
        assert isinstance(error.__cause__, ValueError)

    def test_wrap_does_not_double_wrap(self):
        original = FetchError(ErrCode.INVALID_CREDENTIALS)
        assert wrap_error(original, ErrCode.FETCH_METADATA) is original

    def test_wrap_foreign_error(self):
        cause = KeyError("id")
        wrapped = wrap_error(cause, ErrCode.MALFORMED_METADATA)
        assert wrapped.code is ErrCode.MALFORMED_METADATA
        assert wrapped.cause is cause

    def test_get_err_code(self):
        assert get_err_code(FetchError(ErrCode.DECODE)) is ErrCode.DECODE
        assert get_err_code(RuntimeError("x")) is ErrCode.NONE
        assert get_err_code(None) is ErrCode.NONE

        try:
            try:
                raise FetchError(ErrCode.FETCH_AVATAR)
            except FetchError as e:
                raise RuntimeError("outer") from e
        except RuntimeError as outer:
            assert get_err_code(outer) is ErrCode.FETCH_AVATAR
