"""Tests for device file loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from timerspine.config.loader import build_timer_specs, load_devices_file
from timerspine.core.errors import ConfigurationError, InvalidConfigError
from timerspine.timers.models import Coordinate, TimeSourceKind

DEVICES_YAML = """
location:
  latitude: 52.37
  longitude: 4.89
devices:
  - id: living-room-lamp
    plugin: {id: KAKU, deviceId: A1}
    timers:
      - {enabled: true, time: sunset, state: on, offset: "0 30 0 0 0 0"}
      - {enabled: true, time: "0 0 23 * * *", state: off}
      - {enabled: false, time: sunrise, state: off}
  - id: hall-light
    plugin: {id: ZWAVE, deviceId: 12}
    timers:
      - {time: on, state: off, offset: "0 10 0 0 0 0"}
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "devices.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadDevicesFile:
    def test_loads_structure(self, tmp_path):
        devices_file = load_devices_file(_write(tmp_path, DEVICES_YAML))

        assert devices_file.location.to_coordinate() == Coordinate(52.37, 4.89)
        assert [d.id for d in devices_file.devices] == ["living-room-lamp", "hall-light"]
        assert devices_file.devices[1].plugin.device_id == "12"

    def test_empty_file(self, tmp_path):
        devices_file = load_devices_file(_write(tmp_path, ""))
        assert devices_file.location is None
        assert devices_file.devices == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_devices_file(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_devices_file(_write(tmp_path, "devices: [\n"))

    def test_root_must_be_mapping(self, tmp_path):
        with pytest.raises(ConfigurationError, match="mapping"):
            load_devices_file(_write(tmp_path, "- a\n- b\n"))

    def test_duplicate_device_ids(self, tmp_path):
        text = """
devices:
  - id: lamp
    plugin: {id: KAKU, deviceId: A1}
  - id: lamp
    plugin: {id: KAKU, deviceId: B2}
"""
        with pytest.raises(ConfigurationError, match="Duplicate device id"):
            load_devices_file(_write(tmp_path, text))

    def test_location_out_of_range(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_devices_file(_write(tmp_path, "location: {latitude: 100, longitude: 0}\n"))


class TestBuildTimerSpecs:
    def test_builds_every_entry(self, tmp_path):
        built = build_timer_specs(load_devices_file(_write(tmp_path, DEVICES_YAML)).devices)

        assert built.errors == []
        assert [s.key for s in built.specs] == [
            "living-room-lamp#0",
            "living-room-lamp#1",
            "living-room-lamp#2",
            "hall-light#0",
        ]
        sunset, cron, disabled, reactive = built.specs
        assert sunset.kind is TimeSourceKind.SOLAR
        assert sunset.state == "on"
        assert sunset.plugin_id == "KAKU"
        assert sunset.device_id == "A1"
        assert cron.kind is TimeSourceKind.CRON
        assert cron.state == "off"
        assert disabled.enabled is False
        assert reactive.kind is TimeSourceKind.REACTIVE
        assert reactive.time == "on"
        assert reactive.device_id == "12"

    def test_bad_entries_are_isolated(self, tmp_path):
        text = """
devices:
  - id: lamp
    plugin: {id: KAKU, deviceId: A1}
    timers:
      - {time: sunset, state: dim}
      - {state: on}
      - {time: sunrise, state: off}
"""
        built = build_timer_specs(load_devices_file(_write(tmp_path, text)).devices)

        assert [s.key for s in built.specs] == ["lamp#2"]
        assert len(built.errors) == 2

        bad_state, no_time = built.errors
        assert isinstance(bad_state, InvalidConfigError)
        assert bad_state.key == "state"
        assert bad_state.context.timer == "lamp#0"
        assert bad_state.context.plugin == "KAKU"

        assert isinstance(no_time, InvalidConfigError)
        assert no_time.key == "timers[1]"
        assert no_time.context.timer == "lamp#1"
        assert no_time.__cause__ is not None
