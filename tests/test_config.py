"""
Tests for settings and logging configuration.
"""

import json
import logging

import pytest

from smartflow.config.logging import (
    ConsoleFormatter,
    LogContext,
    StructuredFormatter,
    configure_logging,
    log_performance,
    log_with_context,
)
from smartflow.config.settings import SmartFlowSettings, get_settings
from smartflow.core.errors import ConfigurationError


@pytest.fixture
def clean_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(message="hello", **extra):
    record = logging.LogRecord("smartflow.test", logging.INFO, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestSettings:
    """Tests for SmartFlowSettings."""

    def test_defaults(self, settings):
        assert settings.log_level == "INFO"
        assert settings.json_logs is False
        assert settings.pattern_window == 10
        assert settings.outcome_horizon_days == 5
        assert settings.outcome_tolerance == 0.1
        assert settings.trend_lookback_days == 5
        assert settings.history_lookback_days == 30

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SMARTFLOW_PATTERN_WINDOW", "20")
        monkeypatch.setenv("SMARTFLOW_OUTCOME_TOLERANCE", "0.05")
        settings = SmartFlowSettings(_env_file=None)
        assert settings.pattern_window == 20
        assert settings.outcome_tolerance == 0.05

    def test_get_settings_cached(self, clean_settings_cache):
        assert get_settings() is get_settings()

    def test_invalid_env_raises_configuration_error(self, monkeypatch, clean_settings_cache):
        monkeypatch.setenv("SMARTFLOW_PATTERN_WINDOW", "0")
        with pytest.raises(ConfigurationError):
            get_settings()


class TestFormatters:
    """Tests for log formatters."""

    def test_structured_formatter(self):
        formatter = StructuredFormatter(service_name="svc", environment="test")
        data = json.loads(formatter.format(make_record(ctx_security_id="IL0001")))
        assert data["message"] == "hello"
        assert data["service"] == "svc"
        assert data["environment"] == "test"
        assert data["security_id"] == "IL0001"

    def test_console_formatter_extras(self):
        line = ConsoleFormatter(use_colors=False).format(make_record(ctx_rows=5))
        assert "smartflow.test - hello" in line
        assert "rows=5" in line
        assert "\033[" not in line


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_handler(self, restore_root_logger):
        configure_logging(level="DEBUG", json_format=True)
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)

    def test_defaults_from_settings(self, monkeypatch, clean_settings_cache, restore_root_logger):
        """Test that level and format fall back to SMARTFLOW_ settings."""
        monkeypatch.setenv("SMARTFLOW_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("SMARTFLOW_JSON_LOGS", "true")
        configure_logging()
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)

    def test_explicit_arguments_override_settings(
        self, monkeypatch, clean_settings_cache, restore_root_logger
    ):
        monkeypatch.setenv("SMARTFLOW_JSON_LOGS", "true")
        configure_logging(level="ERROR", json_format=False)
        root = logging.getLogger()
        assert root.level == logging.ERROR
        assert isinstance(root.handlers[0].formatter, ConsoleFormatter)

    def test_log_file(self, restore_root_logger, tmp_path):
        path = tmp_path / "smartflow.log"
        configure_logging(level="INFO", log_file=str(path))
        logging.getLogger("smartflow.test").info("to file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert json.loads(path.read_text().strip().splitlines()[-1])["message"] == "to file"


class TestLogHelpers:
    """Tests for log_performance, LogContext and log_with_context."""

    def test_log_performance_slow(self, caplog):
        @log_performance(threshold_ms=-1)
        def work():
            return 42

        with caplog.at_level(logging.DEBUG):
            assert work() == 42
        assert any("Slow operation: work" in r.getMessage() for r in caplog.records)

    def test_log_performance_error(self, caplog):
        @log_performance()
        def fail():
            raise ValueError("boom")

        with caplog.at_level(logging.ERROR):
            with pytest.raises(ValueError):
                fail()
        assert caplog.records[-1].ctx_status == "error"

    def test_log_context(self, caplog):
        logger = logging.getLogger("smartflow.test")
        with caplog.at_level(logging.INFO, logger="smartflow.test"):
            with LogContext(security_id="IL0001"):
                logger.info("inside")
            logger.info("outside")
        inside, outside = caplog.records[-2:]
        assert inside.ctx_security_id == "IL0001"
        assert not hasattr(outside, "ctx_security_id")

    def test_log_with_context(self, caplog):
        logger = logging.getLogger("smartflow.test")
        with caplog.at_level(logging.INFO, logger="smartflow.test"):
            log_with_context(logger, logging.INFO, "scored", security_id="IL0002")
        assert caplog.records[-1].ctx_security_id == "IL0002"
