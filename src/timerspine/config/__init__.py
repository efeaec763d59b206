"""Device file loading and timer spec construction."""

from __future__ import annotations

from .loader import (
    DeviceConfig,
    DevicesFile,
    LocationConfig,
    TimerConfig,
    TimerSpecs,
    build_timer_specs,
    load_devices_file,
)

__all__ = [
    "DeviceConfig",
    "DevicesFile",
    "LocationConfig",
    "TimerConfig",
    "TimerSpecs",
    "build_timer_specs",
    "load_devices_file",
]
