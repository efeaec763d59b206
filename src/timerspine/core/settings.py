"""Runtime settings for the timer engine.

Values come from ``TIMERSPINE_*`` environment variables or a ``.env`` file,
validated by pydantic-settings at startup.

Examples:
    >>> from timerspine.core.settings import TimerSettings
    >>> TimerSettings().sweep_interval_ms
    60000

    $ TIMERSPINE_SWEEP_INTERVAL_MS=5000 timerspine run --devices devices.yaml
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SWEEP_INTERVAL_MS = 60_000


class TimerSettings(BaseSettings):
    """Settings for the timer engine and its CLI.

    Fields
    ──────
    sweep_interval_ms : How often the expiry sweep runs
    latitude          : Observer latitude for solar timers
    longitude         : Observer longitude for solar timers
    log_level         : Structlog log level
    json_logs         : Force JSON (True) or console (False) logs; None = auto
    devices_file      : Default device file for the CLI
    """

    model_config = SettingsConfigDict(
        env_prefix="TIMERSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Engine ───────────────────────────────────────────────────
    sweep_interval_ms: int = Field(
        default=DEFAULT_SWEEP_INTERVAL_MS,
        gt=0,
        description="Expiry sweep interval in milliseconds",
    )

    # ── Location ─────────────────────────────────────────────────
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    # ── Inputs ───────────────────────────────────────────────────
    devices_file: Path | None = None

    @property
    def sweep_interval_seconds(self) -> float:
        return self.sweep_interval_ms / 1000
