"""
Tests for configuration, logging and auth collaborators
"""
import io
import logging

import pytest

import sys
sys.path.insert(0, '.')

from trashclean.core.auth import EnvTokenSource, StaticTokenSource
from trashclean.core.config import Settings, settings
from trashclean.core.logging import get_logger, setup_logging


class TestSettings:
    """Test suite for settings."""

    def test_defaults(self, monkeypatch):
        """Test default values."""
        for name in ["TRASHCLEAN_PICKUP_RADIUS_METERS", "TRASHCLEAN_REQUEST_TIMEOUT_SECONDS"]:
            monkeypatch.delenv(name, raising=False)

        config = Settings(_env_file=None)

        assert config.pickup_radius_meters == 50.0
        assert config.request_timeout_seconds == 30.0
        assert config.has_fallback_location is False
        assert config.is_development is True

    def test_environment_overrides(self, monkeypatch):
        """Test values are read from prefixed environment variables."""
        monkeypatch.setenv("TRASHCLEAN_PICKUP_RADIUS_METERS", "75")
        monkeypatch.setenv("TRASHCLEAN_FALLBACK_LATITUDE", "46.05")
        monkeypatch.setenv("TRASHCLEAN_FALLBACK_LONGITUDE", "14.50")
        monkeypatch.setenv("TRASHCLEAN_APP_ENV", "production")

        config = Settings(_env_file=None)

        assert config.pickup_radius_meters == 75.0
        assert config.has_fallback_location is True
        assert config.is_production is True


class TestTokenSources:
    """Test suite for token sources."""

    def test_static_token(self):
        """Test a static token is returned as-is."""
        assert StaticTokenSource("abc").get_bearer_token() == "abc"

    def test_empty_token_is_absent(self):
        """Test an empty token counts as signed out."""
        assert StaticTokenSource("").get_bearer_token() is None
        assert StaticTokenSource().get_bearer_token() is None

    def test_env_token(self, monkeypatch):
        """Test the token configured in settings is used."""
        monkeypatch.setattr(settings, "auth_token", "from-env")

        assert EnvTokenSource().get_bearer_token() == "from-env"


class TestLogging:
    """Test suite for logging setup."""

    def teardown_method(self):
        """Detach console handlers added by the test."""
        logger = logging.getLogger("trashclean")
        for handler in list(logger.handlers):
            if getattr(handler, "_trashclean_console", False):
                logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)

    def test_setup_logging(self):
        """Test the application logger is configured."""
        logger = setup_logging(level="DEBUG")

        assert logger.name == "trashclean"
        assert logger.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_get_logger_cached(self):
        """Test loggers are cached by name."""
        assert get_logger("trashclean.test") is get_logger("trashclean.test")

    def test_setup_logging_writes_to_stream(self):
        """Test package records go to the configured stream."""
        stream = io.StringIO()
        setup_logging(level="INFO", stream=stream)

        get_logger("verification.workflow").info("state changed")

        assert "state changed" in stream.getvalue()
        assert "trashclean.verification.workflow" in stream.getvalue()

    def test_setup_logging_twice_keeps_one_handler(self):
        """Test reconfiguring replaces the console handler."""
        setup_logging(level="INFO")
        logger = setup_logging(level="WARNING")

        console = [h for h in logger.handlers if getattr(h, "_trashclean_console", False)]
        assert len(console) == 1
        assert logger.level == logging.WARNING

    def test_setup_logging_unknown_level(self):
        """Test a misspelt level is refused."""
        with pytest.raises(ValueError):
            setup_logging(level="LOUD")

    def test_get_logger_namespaced(self):
        """Test short names are placed under the package logger."""
        assert get_logger("cli").name == "trashclean.cli"
        assert get_logger().name == "trashclean"
