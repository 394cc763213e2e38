# tests/test_logging_config.py
"""
Tests for the structured logging configuration.
"""

import json
import logging

from ops.logging_config import APP_LOGGERS, JsonFormatter, get_logging_config


class TestGetLoggingConfig:

    def test_json_in_production(self, monkeypatch):
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        config = get_logging_config(debug=False)

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["loggers"][""]["level"] == "INFO"

    def test_console_in_debug(self, monkeypatch):
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        config = get_logging_config(debug=True)

        assert config["handlers"]["console"]["formatter"] == "verbose"
        assert config["loggers"][""]["level"] == "DEBUG"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "console")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        config = get_logging_config(debug=False)

        assert config["handlers"]["console"]["formatter"] == "verbose"
        assert config["loggers"]["cashiering"]["level"] == "WARNING"

    def test_app_loggers_propagate(self):
        config = get_logging_config()

        for name in APP_LOGGERS:
            assert config["loggers"][name]["propagate"] is True
            assert "handlers" not in config["loggers"][name]


class TestJsonFormatter:

    def test_extra_fields_included(self):
        logger = logging.getLogger("cashiering.test")
        record = logger.makeRecord(
            "cashiering.test", logging.WARNING, __file__, 10,
            "Orphaned entries excluded", (), None,
            extra={"case_id": "CASE-001", "orphaned_count": 3},
        )

        payload = json.loads(JsonFormatter().format(record))

        assert payload["level"] == "WARNING"
        assert payload["logger"] == "cashiering.test"
        assert payload["message"] == "Orphaned entries excluded"
        assert payload["extra"] == {"case_id": "CASE-001", "orphaned_count": 3}
        assert payload["timestamp"].endswith("Z")

    def test_unserialisable_extra_stringified(self):
        from decimal import Decimal

        record = logging.LogRecord("cashiering", logging.INFO, __file__, 1, "x", (), None)
        record.amount = Decimal("1.50")

        payload = json.loads(JsonFormatter().format(record))

        assert payload["extra"]["amount"] == "1.50"
