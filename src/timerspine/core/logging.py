"""
Structured logging for timer-spine.

Engine modules log through structlog with dotted event names and key/value
fields; the timing backends log through the standard library. After
``configure_logging`` both end up on one stdout handler with one renderer,
so a JSON log stream has no plain-text lines mixed in.

    structlog logger ──► filter_by_level ─┐
                                           ├─► ProcessorFormatter ─► stdout
    logging.getLogger ─► foreign_pre_chain ┘     (JSON, or console on a TTY)

Examples:
    >>> from timerspine.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG")
    >>> logger = get_logger(__name__)
    >>> logger.debug("sweep.pending", timer="lamp#0", remaining="3h 12m 0s")

Until ``configure_logging`` runs, structlog's defaults apply (pretty console
output, every level), which is what the test suite relies on.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "timerspine"


def _add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", _SERVICE_NAME)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "timerspine",
    add_timestamp: bool = True,
) -> None:
    """Route structlog and stdlib logging to stdout through one renderer.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON lines, False for console, None to pick
            JSON unless stdout is a terminal
        service: Value of the ``service`` field on every line
        add_timestamp: Add an ISO ``timestamp`` field
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()
    level_no = logging.getLevelName(level.upper())
    if not isinstance(level_no, int):
        raise ValueError(f"Unknown log level: {level!r}")

    common: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_service,
    ]
    if add_timestamp:
        common.append(structlog.processors.TimeStamper(fmt="iso"))

    renderer: Processor
    if json_format:
        renderer = structlog.processors.JSONRenderer()
        final: list[Processor] = [structlog.processors.format_exc_info, renderer]
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
        final = [renderer]

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=common,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *final],
        )
    )
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level_no)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *common,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    """structlog logger, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Add fields to every following log line in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind fields for the duration of a ``with`` block.

    Example:
        with LogContext(tick=12):
            logger.info("timer.fired", device="lamp")   # carries tick=12
    """

    def __init__(self, **kwargs: Any):
        self._fields = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._fields)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        unbind_context(*self._fields)


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
