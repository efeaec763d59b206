"""
Device file loading.

The device file lists every device with its timers, plus the location used
for solar timers::

    location:
      latitude: 52.37
      longitude: 4.89
    devices:
      - id: living-room-lamp
        plugin: {id: KAKU, deviceId: "A1"}
        timers:
          - {enabled: true, time: sunset, state: "on", offset: "0 30 0 0 0 0"}
          - {enabled: true, time: "0 0 23 * * *", state: "off"}
          - {enabled: false, time: sunrise, state: "off"}

Device ids must be unique within the file. File-level problems (missing
file, bad YAML, wrong shape, duplicate device ids) raise
``ConfigurationError``. Timer entries are validated one by one: a bad entry
is reported and skipped while its siblings are still built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from timerspine.core.errors import ConfigurationError, InvalidConfigError
from timerspine.core.logging import get_logger
from timerspine.timers.models import Coordinate, TimerSpec

logger = get_logger(__name__)


def _yaml_scalar(value: Any) -> Any:
    # YAML 1.1 reads bare on/off as booleans
    if value is True:
        return "on"
    if value is False:
        return "off"
    if isinstance(value, (int, float)):
        return str(value)
    return value


class LocationConfig(BaseModel):
    """Observer location for solar timers."""

    model_config = ConfigDict(extra="forbid")

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    def to_coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)


class PluginRef(BaseModel):
    """Which plugin owns a device, and the device's id inside that plugin."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., min_length=1)
    device_id: str = Field(..., min_length=1, alias="deviceId")

    @field_validator("id", "device_id", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class TimerConfig(BaseModel):
    """One timer entry as written in the device file."""

    model_config = ConfigDict(extra="ignore")

    enabled: bool = True
    time: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    offset: str | None = None

    @field_validator("time", "state", "offset", mode="before")
    @classmethod
    def _coerce_scalars(cls, value: Any) -> Any:
        return _yaml_scalar(value)


class DeviceConfig(BaseModel):
    """A device and its (still unvalidated) timer entries."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    plugin: PluginRef
    timers: list[dict[str, Any]] = Field(default_factory=list)


class DevicesFile(BaseModel):
    """Root of the device file."""

    model_config = ConfigDict(extra="ignore")

    location: LocationConfig | None = None
    devices: list[DeviceConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_device_ids(self) -> DevicesFile:
        seen: set[str] = set()
        for device in self.devices:
            if device.id in seen:
                raise ValueError(f"Duplicate device id: {device.id!r}")
            seen.add(device.id)
        return self


@dataclass
class TimerSpecs:
    """Specs built from a device file, plus the entries that were rejected."""

    specs: list[TimerSpec] = field(default_factory=list)
    errors: list[ConfigurationError] = field(default_factory=list)


def load_devices_file(path: str | Path) -> DevicesFile:
    """Read and validate the device file structure.

    Raises:
        ConfigurationError: If the file is missing, not YAML, or malformed
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Device file not found: {path}")

    logger.debug("config.load_yaml", path=str(path))

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}", cause=e) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a mapping at the root of {path}, got {type(data).__name__}")

    try:
        devices_file = DevicesFile.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid device file {path}: {e}", cause=e) from e

    logger.info(
        "config.loaded",
        path=str(path),
        devices=len(devices_file.devices),
        timers=sum(len(device.timers) for device in devices_file.devices),
    )
    return devices_file


def build_timer_specs(devices: list[DeviceConfig]) -> TimerSpecs:
    """Turn every timer entry into a ``TimerSpec``, isolating bad entries."""
    result = TimerSpecs()

    for device in devices:
        for index, raw in enumerate(device.timers):
            try:
                timer = TimerConfig.model_validate(raw)
                spec = TimerSpec(
                    device_id=device.plugin.device_id,
                    plugin_id=device.plugin.id,
                    time=timer.time,
                    state=timer.state,
                    enabled=timer.enabled,
                    offset=timer.offset,
                    device_name=device.id,
                    index=index,
                )
            except ValidationError as e:
                error: ConfigurationError = InvalidConfigError(
                    f"timers[{index}]", raw, f"Invalid timer entry: {e.errors()[0]['msg']}"
                )
                error.cause = error.__cause__ = e
            except ConfigurationError as e:
                error = e
            else:
                result.specs.append(spec)
                continue

            error.with_context(device=device.id, plugin=device.plugin.id, timer=f"{device.id}#{index}")
            logger.error("config.timer_rejected", **error.to_dict())
            result.errors.append(error)

    return result


__all__ = [
    "LocationConfig",
    "PluginRef",
    "TimerConfig",
    "DeviceConfig",
    "DevicesFile",
    "TimerSpecs",
    "load_devices_file",
    "build_timer_specs",
]
