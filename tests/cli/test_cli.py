"""Tests for the timerspine CLI."""

from __future__ import annotations

import pytest
from rich.console import Console
from typer.testing import CliRunner

from timerspine.cli import app as cli_app

runner = CliRunner()

DEVICES_YAML = """
location: {latitude: 52.37, longitude: 4.89}
devices:
  - id: lamp
    plugin: {id: KAKU, deviceId: A1}
    timers:
      - {time: sunset, state: on, offset: "0 30 0 0 0 0"}
      - {time: "0 0 23 * * *", state: off}
      - {enabled: false, time: sunrise, state: off}
      - {time: on, state: off, offset: "0 10 0 0 0 0"}
"""


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    monkeypatch.setattr(cli_app, "console", Console(width=200))
    monkeypatch.setattr(cli_app, "err_console", Console(width=200, stderr=True))
    monkeypatch.delenv("TIMERSPINE_DEVICES_FILE", raising=False)


@pytest.fixture
def devices_file(tmp_path):
    path = tmp_path / "devices.yaml"
    path.write_text(DEVICES_YAML, encoding="utf-8")
    return path


class TestVersion:
    def test_version(self):
        result = runner.invoke(cli_app.app, ["--version"])
        assert result.exit_code == 0
        assert "timer-spine" in result.output


class TestPreview:
    def test_lists_every_timer(self, devices_file):
        result = runner.invoke(cli_app.app, ["preview", "--devices", str(devices_file)])

        assert result.exit_code == 0, result.output
        for key in ("lamp#0", "lamp#1", "lamp#2", "lamp#3"):
            assert key in result.output
        assert "scheduled" in result.output
        assert "disabled" in result.output
        assert "armed" in result.output

    def test_invalid_entry_exits_nonzero(self, tmp_path):
        path = tmp_path / "devices.yaml"
        path.write_text(
            "devices:\n  - id: lamp\n    plugin: {id: KAKU, deviceId: A1}\n    timers:\n      - {time: sunset, state: dim}\n",
            encoding="utf-8",
        )
        result = runner.invoke(cli_app.app, ["preview", "--devices", str(path)])
        assert result.exit_code == 1
        assert "invalid" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(cli_app.app, ["preview", "--devices", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1

    def test_no_file_given(self):
        result = runner.invoke(cli_app.app, ["preview"])
        assert result.exit_code == 2


class TestSolar:
    def test_prints_table(self):
        result = runner.invoke(cli_app.app, ["solar", "--lat", "52.37", "--lon", "4.89", "--date", "2026-06-21"])
        assert result.exit_code == 0, result.output
        assert "sunset" in result.output
        assert "solarNoon" in result.output

    def test_invalid_date(self):
        result = runner.invoke(cli_app.app, ["solar", "--lat", "52.37", "--lon", "4.89", "--date", "21/06/2026"])
        assert result.exit_code == 2

    def test_latitude_range(self):
        result = runner.invoke(cli_app.app, ["solar", "--lat", "95", "--lon", "4.89"])
        assert result.exit_code != 0
