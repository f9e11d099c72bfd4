"""Tests for settings and logging setup."""

import json
import logging

import pytest

from conftest import API_KEY
from todoist_relay.config import DEFAULT_CORS_ORIGINS, TODOIST_API_BASE, Settings
from todoist_relay.errors import ConfigError
from todoist_relay.logging_config import REDACTED, JsonFormatter, configure_logging, redact


class TestSettingsFromEnv:
    def test_defaults(self):
        settings = Settings.from_env({"TODOIST_API_KEY": API_KEY})

        assert settings.environment == "development"
        assert settings.port == 3000
        assert settings.server_name == "claude-todoist-api"
        assert settings.server_version == "1.0.0"
        assert settings.log_level == "info"
        assert settings.timeout == 15
        assert settings.base_url == TODOIST_API_BASE
        assert settings.cors_origins == DEFAULT_CORS_ORIGINS
        assert settings.is_development

    def test_missing_api_key(self):
        with pytest.raises(ConfigError) as exc_info:
            Settings.from_env({"PORT": "8080"})
        assert "TODOIST_API_KEY" in str(exc_info.value)

    def test_blank_api_key_counts_as_missing(self):
        with pytest.raises(ConfigError):
            Settings.from_env({"TODOIST_API_KEY": "   "})

    def test_short_api_key(self):
        with pytest.raises(ConfigError) as exc_info:
            Settings.from_env({"TODOIST_API_KEY": "too-short"})
        assert exc_info.value.problems[0].startswith("TODOIST_API_KEY:")

    @pytest.mark.parametrize("port", ["80", "70000", "not-a-port"])
    def test_bad_port(self, port):
        with pytest.raises(ConfigError) as exc_info:
            Settings.from_env({"TODOIST_API_KEY": API_KEY, "PORT": port})
        assert exc_info.value.problems[0].startswith("PORT:")

    def test_every_problem_reported(self):
        with pytest.raises(ConfigError) as exc_info:
            Settings.from_env({"TODOIST_API_KEY": API_KEY, "PORT": "1", "RELAY_ENV": "staging"})
        assert len(exc_info.value.problems) == 2

    def test_values_normalized(self):
        settings = Settings.from_env({
            "TODOIST_API_KEY": API_KEY,
            "RELAY_ENV": "Production",
            "LOG_LEVEL": "DEBUG",
            "PORT": "8080",
            "TODOIST_BASE_URL": "http://localhost:9000/rest/v2/",
            "CORS_ORIGINS": "https://a.example, https://b.example,",
        })

        assert settings.is_production
        assert settings.log_level == "debug"
        assert settings.port == 8080
        assert settings.base_url == "http://localhost:9000/rest/v2"
        assert settings.cors_origins == ("https://a.example", "https://b.example")

    def test_api_key_not_in_repr(self):
        settings = Settings(todoist_api_key=API_KEY)
        assert API_KEY not in repr(settings)


class TestLogging:
    def test_redact(self):
        values = {
            "task_id": "1",
            "api_key": "abc",
            "headers": {"Authorization": "Bearer abc", "Accept": "json"},
        }

        assert redact(values) == {
            "task_id": "1",
            "api_key": REDACTED,
            "headers": {"Authorization": REDACTED, "Accept": "json"},
        }

    def test_json_formatter_includes_extras(self):
        record = logging.makeLogRecord({
            "name": "todoist_relay.operations",
            "levelname": "INFO",
            "msg": "list_tasks called",
            "operation": "list_tasks",
        })

        entry = json.loads(JsonFormatter("claude-todoist-api", "1.0.0").format(record))

        assert entry["message"] == "list_tasks called"
        assert entry["level"] == "info"
        assert entry["service"] == "claude-todoist-api"
        assert entry["operation"] == "list_tasks"

    def test_configure_logging(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging("warning", json_output=True)

            assert root.level == logging.WARNING
            assert isinstance(root.handlers[0].formatter, JsonFormatter)
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
