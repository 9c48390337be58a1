"""Unit tests for logging configuration."""

import logging

import pytest

from household_schedule.api.middleware.correlation_id import request_id_var
from household_schedule.core.logging_config import CorrelationIdFilter, configure_logging, get_logging_status

pytestmark = pytest.mark.unit


@pytest.fixture
def restore_logger_levels():
    names = ["", "household_schedule", "aiohttp.access", "asyncio"]
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


def _record():
    return logging.LogRecord("household_schedule.test", logging.INFO, __file__, 1, "hello", None, None)


class TestCorrelationIdFilter:
    def test_without_request(self):
        record = _record()
        assert CorrelationIdFilter().filter(record) is True
        assert record.request_id == "no-request-id"

    def test_inside_request(self):
        token = request_id_var.set("req-42")
        try:
            record = _record()
            CorrelationIdFilter().filter(record)
        finally:
            request_id_var.reset(token)
        assert record.request_id == "req-42"


class TestConfigureLogging:
    def test_debug_mode(self, restore_logger_levels):
        configure_logging(debug_mode=True)

        status = get_logging_status()
        assert status["household_schedule"] == "DEBUG"
        assert status["aiohttp.access"] == "WARNING"

    def test_env_level_override(self, restore_logger_levels, monkeypatch):
        monkeypatch.setenv("HOUSEHOLD_SCHEDULE_LOG_LEVEL", "warning")

        configure_logging(force_debug=False)

        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("household_schedule").level == logging.WARNING
