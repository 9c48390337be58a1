"""Unit tests for configuration loading."""

import os
from types import SimpleNamespace

import pytest

from household_schedule.core.config_manager import ConfigManager, get_config_value, parse_env_file
from household_schedule.materializer import MaterializerConfig

pytestmark = pytest.mark.unit


class TestParseEnvFile:
    def test_missing_file_returns_empty(self, tmp_path):
        assert parse_env_file(tmp_path / "missing.env") == {}

    def test_parses_quotes_and_skips_comments(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text(
            "# comment\n\nHOUSEHOLD_SCHEDULE_WEB_PORT=9000\n"
            "HOUSEHOLD_SCHEDULE_DATA_FILE='/data/house.json'\nnot-a-pair\n",
            encoding="utf-8",
        )
        assert parse_env_file(env) == {
            "HOUSEHOLD_SCHEDULE_WEB_PORT": "9000",
            "HOUSEHOLD_SCHEDULE_DATA_FILE": "/data/house.json",
        }


class TestConfigManager:
    def test_env_file_does_not_override_environment(self, tmp_path, monkeypatch):
        monkeypatch.setattr(os, "environ", os.environ.copy())
        env = tmp_path / ".env"
        env.write_text(
            "HOUSEHOLD_SCHEDULE_WEB_PORT=9000\nHOUSEHOLD_SCHEDULE_FEED_LIMIT=10\n", encoding="utf-8"
        )
        monkeypatch.setenv("HOUSEHOLD_SCHEDULE_WEB_PORT", "7000")

        cfg = ConfigManager(env_file_path=env).load_full_config()

        assert cfg["server_port"] == 7000
        assert cfg["feed_limit"] == 10

    def test_builds_typed_values(self, monkeypatch):
        monkeypatch.setenv("HOUSEHOLD_SCHEDULE_WEB_HOST", "127.0.0.1")
        monkeypatch.setenv("HOUSEHOLD_SCHEDULE_REQUEST_TIMEOUT", "2.5")
        monkeypatch.setenv("HOUSEHOLD_SCHEDULE_FEED_HORIZON_DAYS", "90")
        monkeypatch.setenv("HOUSEHOLD_SCHEDULE_DEBUG", "yes")

        cfg = ConfigManager().build_config_from_env()

        assert cfg["server_bind"] == "127.0.0.1"
        assert cfg["request_timeout_seconds"] == 2.5
        assert cfg["feed_horizon_days"] == 90
        assert cfg["debug_logging"] is True

    def test_invalid_numbers_are_ignored(self, monkeypatch, caplog):
        monkeypatch.setenv("HOUSEHOLD_SCHEDULE_WEB_PORT", "eighty")

        cfg = ConfigManager().build_config_from_env()

        assert "server_port" not in cfg
        assert "HOUSEHOLD_SCHEDULE_WEB_PORT" in caplog.text


class TestConfigValues:
    def test_get_config_value_from_dict_and_object(self):
        assert get_config_value({"a": 1}, "a") == 1
        assert get_config_value({}, "a", 5) == 5
        assert get_config_value(SimpleNamespace(a=2), "a") == 2
        assert get_config_value(SimpleNamespace(), "a", 6) == 6

    def test_materializer_config_defaults(self):
        config = MaterializerConfig.from_settings({})
        assert config.feed_horizon_days == 366
        assert config.feed_lookback_days == 30
        assert config.max_occurrences_per_definition == 1
        assert config.default_timezone == "UTC"

    def test_materializer_config_from_object(self):
        config = MaterializerConfig.from_settings(
            SimpleNamespace(request_timeout_seconds="3", feed_lookback_days=-4)
        )
        assert config.request_timeout_seconds == 3.0
        assert config.feed_lookback_days == 0
