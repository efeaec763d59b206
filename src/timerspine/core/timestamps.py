"""
Timestamp and identifier utilities (stdlib-only).

The queue stores due times as integer epoch milliseconds; resolvers work on
timezone-aware datetimes in the host's local zone. This module converts
between the two, generates time-sortable ids for pending timers, and formats
"time remaining" for sweep diagnostics.
"""

import random
import time
from datetime import datetime, timedelta, tzinfo


def local_now() -> datetime:
    """Get the current time as an aware datetime in the host's local zone."""
    return datetime.now().astimezone()


def to_epoch_ms(dt: datetime) -> int:
    """Convert an aware datetime to integer epoch milliseconds."""
    return int(round(dt.timestamp() * 1000))


def from_epoch_ms(ms: int, tz: tzinfo | None = None) -> datetime:
    """Convert epoch milliseconds to an aware datetime (local zone by default)."""
    dt = datetime.fromtimestamp(ms / 1000, tz)
    if tz is None:
        dt = dt.astimezone()
    return dt


def format_remaining(ms: int) -> str:
    """Break a millisecond duration down as ``"1d 2h 3m 4s"``.

    Zero-valued leading units are dropped; seconds are always shown.
    Negative durations (overdue) are prefixed with ``-``.
    """
    sign = "-" if ms < 0 else ""
    remaining = timedelta(milliseconds=abs(ms))
    days = remaining.days
    hours, rest = divmod(remaining.seconds, 3600)
    minutes, seconds = divmod(rest, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if days or hours:
        parts.append(f"{hours}h")
    if days or hours or minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{seconds}s")
    return sign + " ".join(parts)


def generate_ulid() -> str:
    """
    Generate a ULID-like identifier.

    Format: 26 characters, Crockford base32, time-sortable.
    """
    timestamp_ms = int(time.time() * 1000)
    timestamp_chars = _encode_base32(timestamp_ms, 10)
    random_part = "".join(random.choices(_ENCODING, k=16))
    return timestamp_chars + random_part


# ULID base32 alphabet (Crockford's)
_ENCODING = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_ENCODING_LEN = len(_ENCODING)


def _encode_base32(value: int, length: int) -> str:
    """Encode integer to base32 string of fixed length."""
    result = []
    for _ in range(length):
        result.append(_ENCODING[value % _ENCODING_LEN])
        value //= _ENCODING_LEN
    return "".join(reversed(result))
