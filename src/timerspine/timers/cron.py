"""Cron time resolution.

Five-field expressions are minute-resolution (``"30 7 * * 1-5"``). Six-field
expressions put seconds FIRST (``"0 30 7 * * 1-5"``), the layout device
configs have always used.
"""

from __future__ import annotations

from datetime import datetime

from croniter import croniter

from timerspine.core.errors import InvalidCronExpression


def _build(expression: str, start: datetime) -> croniter:
    try:
        seconds_first = len(expression.split()) == 6
        return croniter(expression, start, second_at_beginning=seconds_first)
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise InvalidCronExpression(expression, cause=e) from e


def validate_cron_expression(expression: str) -> str:
    """Return ``expression`` unchanged if it parses.

    Raises:
        InvalidCronExpression: If it does not
    """
    _build(expression, datetime.now().astimezone())
    return expression


def resolve_cron_time(expression: str, now: datetime) -> datetime:
    """Earliest time strictly after ``now`` that matches ``expression``.

    Raises:
        InvalidCronExpression: If the expression cannot be parsed
    """
    if now.tzinfo is None:
        now = now.astimezone()
    schedule = _build(expression, now)
    try:
        return schedule.get_next(datetime)
    except (ValueError, KeyError) as e:
        raise InvalidCronExpression(expression, cause=e) from e


__all__ = ["validate_cron_expression", "resolve_cron_time"]
