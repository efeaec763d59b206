"""Six-field additive offsets.

An offset shifts a base time by ``"seconds minutes hours days months years"``,
for example ``"0 30 0 0 0 0"`` is thirty minutes later and ``"0 0 -1 0 0 0"``
one hour earlier. Fields are applied one at a time in that order with
calendar-aware arithmetic:

    Jan 31 + "0 0 0 0 1 0"   → Feb 28 (Feb 29 in leap years); days clamp
    Dec 31 + "0 0 0 1 0 0"   → Jan 1 of the next year
    Feb 29 + "0 0 0 0 0 1"   → Feb 28 of the next year

Offsets are forgiving: each field uses its leading integer ("10abc" is 10,
"1.5" is 1) and a field with none counts as zero; both are logged. A
wrong field count is logged as ``MalformedOffset`` while the fields that are
present still apply.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import NamedTuple

from dateutil.relativedelta import relativedelta

from timerspine.core.errors import MalformedOffset
from timerspine.core.logging import get_logger

logger = get_logger(__name__)


class OffsetFields(NamedTuple):
    seconds: int = 0
    minutes: int = 0
    hours: int = 0
    days: int = 0
    months: int = 0
    years: int = 0


OFFSET_FIELD_COUNT = len(OffsetFields._fields)

_LEADING_INT = re.compile(r"[+-]?\d+")


def _parse_field(name: str, raw: str, offset: str) -> int:
    match = _LEADING_INT.match(raw)
    value = int(match.group()) if match else 0
    if match is None or match.end() != len(raw):
        logger.warning("offset.field_not_integer", field=name, value=raw, used=value, offset=offset)
    return value


def parse_offset(offset: str | None) -> OffsetFields:
    """Parse an offset string into its six fields.

    Missing fields are zero and surplus fields are ignored; both cases log a
    ``MalformedOffset`` warning.
    """
    if not offset or not offset.strip():
        return OffsetFields()

    raw_fields = offset.split()
    if len(raw_fields) != OFFSET_FIELD_COUNT:
        error = MalformedOffset(offset, len(raw_fields))
        logger.warning("offset.malformed", **error.to_dict())

    values = [
        _parse_field(name, raw, offset)
        for name, raw in zip(OffsetFields._fields, raw_fields)
    ]
    return OffsetFields(*values)


def apply_offset(base: datetime, offset: str | None) -> datetime:
    """Shift ``base`` by ``offset``.

    Args:
        base: Time to shift (naive or aware; aware times shift on the wall clock)
        offset: Six-field offset string, or None/empty for no shift

    Returns:
        The shifted time; ``base`` itself when there is no offset.
    """
    if not offset:
        return base

    fields = parse_offset(offset)
    result = base
    for name, value in zip(OffsetFields._fields, fields):
        if value:
            result = result + relativedelta(**{name: value})
    return result


__all__ = ["OffsetFields", "parse_offset", "apply_offset"]
