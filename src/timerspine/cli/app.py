"""
Root Typer application for the ``timerspine`` CLI.

    timerspine run --devices devices.yaml      run the engine until Ctrl-C
    timerspine preview --devices devices.yaml  show what each timer will do
    timerspine solar --lat 52.37 --lon 4.89    print today's solar events
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from timerspine.config.loader import DevicesFile, build_timer_specs, load_devices_file
from timerspine.core.errors import ConfigurationError, TimerSpineError
from timerspine.core.events import Event
from timerspine.core.events.device import SET_STATE
from timerspine.core.events.memory import InMemoryEventBus
from timerspine.core.logging import configure_logging, get_logger
from timerspine.core.settings import TimerSettings
from timerspine.core.timestamps import local_now
from timerspine.timers.engine import TimerEngine
from timerspine.timers.models import Coordinate, TimerSpec, TimeSourceKind
from timerspine.timers.solar import compute_solar_events

app = typer.Typer(
    name="timerspine",
    help="Cron, solar and device-triggered timers that switch devices.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        from timerspine import __version__

        try:
            v = pkg_version("timer-spine")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"timer-spine {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Run and inspect device timers."""


# ── Helpers ──────────────────────────────────────────────────────────────


def _load(devices: Path | None, settings: TimerSettings) -> tuple[DevicesFile, Coordinate | None]:
    path = devices or settings.devices_file
    if path is None:
        err_console.print("[bold red]Error[/bold red]: no device file (use --devices or TIMERSPINE_DEVICES_FILE)")
        raise typer.Exit(code=2)

    try:
        devices_file = load_devices_file(path)
    except ConfigurationError as e:
        err_console.print(f"[bold red]Error[/bold red]: {e.message}")
        raise typer.Exit(code=1) from e

    if devices_file.location is not None:
        coordinate = devices_file.location.to_coordinate()
    elif settings.latitude is not None and settings.longitude is not None:
        coordinate = Coordinate(settings.latitude, settings.longitude)
    else:
        coordinate = None
    return devices_file, coordinate


def _describe(engine: TimerEngine, spec: TimerSpec, now: datetime) -> tuple[str, str]:
    if not spec.enabled:
        return "disabled", ""
    if spec.kind is TimeSourceKind.REACTIVE:
        return "armed", f"on '{spec.time}' + {spec.offset or 'no offset'}"
    try:
        due = engine.resolve_next(spec, now)
    except TimerSpineError as e:
        return "[red]error[/red]", e.message
    return "scheduled", due.strftime("%Y-%m-%d %H:%M:%S %Z")


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("preview")
def preview(
    devices: Path | None = typer.Option(None, "--devices", "-d", help="Device file (YAML)"),
) -> None:
    """Show every timer with its kind and first due time, without running."""
    settings = TimerSettings()
    devices_file, coordinate = _load(devices, settings)
    built = build_timer_specs(devices_file.devices)

    engine = TimerEngine(InMemoryEventBus(), coordinate)
    now = local_now()

    table = Table(title=f"Timers (now: {now.strftime('%Y-%m-%d %H:%M:%S %Z')})")
    table.add_column("Timer")
    table.add_column("Kind")
    table.add_column("Time")
    table.add_column("State")
    table.add_column("Status")
    table.add_column("Next")

    for spec in built.specs:
        status, detail = _describe(engine, spec, now)
        table.add_row(spec.key, spec.kind.value, spec.time, spec.state, status, detail)
    for error in built.errors:
        table.add_row(error.context.timer or "?", "", "", "", "[red]invalid[/red]", error.message)

    console.print(table)
    if built.errors:
        raise typer.Exit(code=1)


@app.command("solar")
def solar(
    latitude: float = typer.Option(..., "--lat", min=-90, max=90, help="Latitude"),
    longitude: float = typer.Option(..., "--lon", min=-180, max=180, help="Longitude"),
    day: str | None = typer.Option(None, "--date", help="Day as YYYY-MM-DD (default: today)"),
) -> None:
    """Print the solar event table for one day."""
    now = local_now()
    try:
        target = date.fromisoformat(day) if day else now.date()
    except ValueError as e:
        err_console.print(f"[bold red]Error[/bold red]: invalid date {day!r}")
        raise typer.Exit(code=2) from e

    events = compute_solar_events(target, Coordinate(latitude, longitude), now.tzinfo)

    table = Table(title=f"Solar events {target.isoformat()} at {latitude}, {longitude}")
    table.add_column("Event")
    table.add_column("Time")
    for name, when in sorted(events.items(), key=lambda item: item[1]):
        table.add_row(name, when.strftime("%Y-%m-%d %H:%M:%S %Z"))
    console.print(table)


@app.command("run")
def run(
    devices: Path | None = typer.Option(None, "--devices", "-d", help="Device file (YAML)"),
    interval_ms: int | None = typer.Option(None, "--interval-ms", min=1, help="Sweep interval"),
    json_logs: bool | None = typer.Option(None, "--json-logs/--console-logs", help="Log format"),
) -> None:
    """Run the timer engine on an in-memory bus until interrupted."""
    settings = TimerSettings()
    configure_logging(
        level=settings.log_level,
        json_format=json_logs if json_logs is not None else settings.json_logs,
    )
    devices_file, coordinate = _load(devices, settings)
    built = build_timer_specs(devices_file.devices)

    try:
        asyncio.run(_serve(built.specs, coordinate, interval_ms or settings.sweep_interval_ms))
    except KeyboardInterrupt:
        logger.info("cli.interrupted")


async def _serve(specs: list[TimerSpec], coordinate: Coordinate | None, interval_ms: int) -> None:
    bus = InMemoryEventBus()

    async def log_set_state(event: Event) -> None:
        logger.info("bus.set_state", **event.payload)

    await bus.subscribe(SET_STATE, log_set_state)
    engine = TimerEngine(bus, coordinate, sweep_interval_ms=interval_ms)
    await engine.start(specs)
    try:
        await asyncio.Event().wait()
    finally:
        await engine.stop()
        await bus.close()


if __name__ == "__main__":
    app()
