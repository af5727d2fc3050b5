"""Clock-string helpers and the 30-minute booking grid."""

from __future__ import annotations

import re

SLOT_MINUTES = 30
DURATION_CHOICES = (30, 60, 90, 120)

_CLOCK_RE = re.compile(r"^(\d{2}):(\d{2})$")


class InvalidTimeFormat(ValueError):
    """Raised when a clock string is not ``HH:MM``."""


def time_to_minutes(value: str) -> int:
    """Parse ``"HH:MM"`` into minutes since midnight."""

    match = _CLOCK_RE.match(value or "")
    if not match:
        raise InvalidTimeFormat(f"invalid_time:{value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes >= 60:
        raise InvalidTimeFormat(f"invalid_time:{value!r}")
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def as_minutes(value: int | str) -> int:
    if isinstance(value, int):
        return value
    return time_to_minutes(value)


def is_on_grid(minutes: int) -> bool:
    return minutes % SLOT_MINUTES == 0


def generate_slots(start_hour: str, end_hour: str) -> list[str]:
    """Return bookable start ticks from ``start_hour`` up to, not including, ``end_hour``.

    >>> generate_slots("09:00", "10:00")
    ['09:00', '09:30']
    """

    start = time_to_minutes(start_hour)
    end = time_to_minutes(end_hour)
    return [minutes_to_time(tick) for tick in range(start, end, SLOT_MINUTES)]


def ticks_between(start: int, end: int) -> range:
    """Grid ticks in the half-open span ``[start, end)``."""

    return range(start, end, SLOT_MINUTES)


def slot_span(duration: int) -> int:
    """Number of grid rows a booking of ``duration`` minutes covers."""

    return max(1, -(-duration // SLOT_MINUTES))
