"""
Tests for config.py and logging_config.py.
"""

import json
import logging
import sys

from config import Settings, get_settings
from logging_config import JSONFormatter, setup_logging


class TestSettings:

    def test_defaults(self, monkeypatch):
        for var in ("DATABASE_PATH", "DB_TIMEOUT", "LOG_LEVEL", "LOG_JSON", "CORS_ORIGINS", "PORT"):
            monkeypatch.delenv(var, raising=False)

        settings = Settings(_env_file=None)

        assert settings.DATABASE_PATH == "contacts.db"
        assert settings.DB_TIMEOUT == 30.0
        assert settings.LOG_JSON is False
        assert settings.cors_origins_list == ["*"]
        assert settings.PORT == 8000

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DATABASE_PATH", "/tmp/other.db")
        monkeypatch.setenv("LOG_JSON", "true")
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example,")

        settings = Settings(_env_file=None)

        assert settings.DATABASE_PATH == "/tmp/other.db"
        assert settings.LOG_JSON is True
        assert settings.cors_origins_list == ["https://a.example", "https://b.example"]

    def test_get_settings_is_cached(self, settings_env):
        assert get_settings() is settings_env


class TestLogging:

    def test_json_formatter_includes_exception(self):
        try:
            raise ValueError("bad row")
        except ValueError:
            record = logging.LogRecord(
                "reconciler", logging.ERROR, __file__, 1, "merge failed", None, sys.exc_info()
            )

        payload = json.loads(JSONFormatter().format(record))

        assert payload["level"] == "ERROR"
        assert payload["logger"] == "reconciler"
        assert payload["message"] == "merge failed"
        assert payload["exception"]["type"] == "ValueError"

    def test_setup_logging_installs_single_handler(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(level="DEBUG", json_format=True)
            setup_logging(level="WARNING", json_format=False)

            assert len(root.handlers) == 1
            assert root.level == logging.WARNING
            assert not isinstance(root.handlers[0].formatter, JSONFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
