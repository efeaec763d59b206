"""Tests for TimerSettings and the structlog setup."""

from __future__ import annotations

import json

import pytest
import structlog
from pydantic import ValidationError

from timerspine.core.logging import LogContext, bind_context, clear_context, configure_logging, get_logger
from timerspine.core.settings import DEFAULT_SWEEP_INTERVAL_MS, TimerSettings


class TestTimerSettings:
    def test_defaults(self, monkeypatch):
        for name in ("SWEEP_INTERVAL_MS", "LATITUDE", "LONGITUDE", "LOG_LEVEL", "JSON_LOGS", "DEVICES_FILE"):
            monkeypatch.delenv(f"TIMERSPINE_{name}", raising=False)
        settings = TimerSettings(_env_file=None)
        assert settings.sweep_interval_ms == DEFAULT_SWEEP_INTERVAL_MS
        assert settings.sweep_interval_seconds == 60.0
        assert settings.latitude is None
        assert settings.json_logs is None

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("TIMERSPINE_SWEEP_INTERVAL_MS", "5000")
        monkeypatch.setenv("TIMERSPINE_LATITUDE", "52.37")
        monkeypatch.setenv("TIMERSPINE_JSON_LOGS", "true")
        settings = TimerSettings(_env_file=None)
        assert settings.sweep_interval_ms == 5000
        assert settings.latitude == 52.37
        assert settings.json_logs is True

    def test_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            TimerSettings(_env_file=None, sweep_interval_ms=0)

    def test_latitude_bounds(self):
        with pytest.raises(ValidationError):
            TimerSettings(_env_file=None, latitude=91)


class TestLogging:
    def test_json_output(self, capsys):
        configure_logging(level="INFO", json_format=True, service="timerspine-test")
        get_logger("test").info("timer.fired", device="lamp")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "timer.fired"
        assert record["device"] == "lamp"
        assert record["service"] == "timerspine-test"
        assert record["level"] == "info"

    def test_level_filtering(self, capsys):
        configure_logging(level="WARNING", json_format=True)
        get_logger("test").info("sweep.pending")
        assert "sweep.pending" not in capsys.readouterr().out

    def test_log_context_binds_and_unbinds(self):
        with LogContext(tick=7):
            assert structlog.contextvars.get_contextvars()["tick"] == 7
        assert "tick" not in structlog.contextvars.get_contextvars()

    def test_clear_context(self):
        bind_context(device="lamp")
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}
