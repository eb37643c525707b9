"""
Tests for the JSON log formatter, usage events and configuration.
"""

import io
import json
import logging
from unittest.mock import Mock

import pytest

from authflow.collaborators import LoggingUsageTracker
from authflow.config import AppConfig, get_config
from authflow.logger import JSONFormatter, StructuredLogger
from authflow.utils.audit import log_usage_event


class TestJSONFormatter:
    def test_extra_fields_are_nested(self):
        record = logging.LogRecord("authflow.x", logging.INFO, __file__, 1, "hello %s", ("ada",), None)
        record.event = "LOGIN"

        entry = json.loads(JSONFormatter().format(record))

        assert entry["message"] == "hello ada"
        assert entry["level"] == "INFO"
        assert entry["logger_name"] == "authflow.x"
        assert entry["extra"] == {"event": "LOGIN"}

    def test_structured_logger_writes_json_lines(self):
        stream = io.StringIO()
        logger = StructuredLogger("authflow.tests.stream", level=logging.INFO, stream=stream, log_file="")

        logger.info("Navigate -> %s", "/", extra={"event": "NAVIGATE"})

        entry = json.loads(stream.getvalue().splitlines()[-1])
        assert entry["message"] == "Navigate -> /"
        assert entry["extra"]["event"] == "NAVIGATE"


    def test_file_output_when_log_file_is_set(self, tmp_path):
        path = tmp_path / "logs" / "authflow.log"
        logger = StructuredLogger(
            "authflow.tests.file", level=logging.INFO, stream=io.StringIO(), log_file=str(path),
        )

        logger.warning("Login failed: %s", "bad password")
        for handler in logger.logger.handlers:
            handler.flush()

        entry = json.loads(path.read_text(encoding="utf-8").splitlines()[-1])
        assert entry["level"] == "WARNING"
        assert entry["message"] == "Login failed: bad password"

    def test_missing_env_file_warning_wording(self, caplog, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with caplog.at_level(logging.WARNING, logger="authflow.config"):
            AppConfig(API_BASE_URL="http://x")

        assert "No .env file found; all configuration loaded from" in caplog.text


class TestUsageEvents:
    def test_log_usage_event_emits_audit_line(self):
        logger = Mock(spec=StructuredLogger)

        event = log_usage_event(logger, "didLaunchGuidedtour", {"mode": "register-admin"})

        assert event.event == "didLaunchGuidedtour"
        logger.info.assert_called_once()
        fmt, payload = logger.info.call_args.args
        assert fmt == "USAGE: %s"
        assert json.loads(payload)["details"] == {"mode": "register-admin"}

    def test_tracker_records_and_logs(self):
        logger = Mock(spec=StructuredLogger)
        tracker = LoggingUsageTracker(logger=logger)

        tracker.track("willCreateFirstAdmin")

        assert tracker.events == ["willCreateFirstAdmin"]
        assert logger.info.call_count == 1


class TestConfig:
    @pytest.mark.parametrize("raw, level", [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("nope", logging.INFO)])
    def test_log_level(self, raw, level):
        assert AppConfig(API_BASE_URL="http://x", LOG_LEVEL=raw).log_level == level

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("RESET_SUBMITTING_ON_ALL_BRANCHES", "true")
        monkeypatch.setenv("SUPER_ADMIN_ROLE_CODE", "super-admin-role")

        config = AppConfig()

        assert config.RESET_SUBMITTING_ON_ALL_BRANCHES is True
        assert config.SUPER_ADMIN_ROLE_CODE == "super-admin-role"

    def test_get_config_is_cached(self):
        assert get_config() is get_config()
