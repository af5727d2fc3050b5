"""Overlap checks for a candidate start time and duration."""

from __future__ import annotations

from typing import AbstractSet, Iterable, Sequence

from chair_app.models import Lead
from chair_app.services.occupancy import bookings_for_day, lead_ticks
from chair_app.services.time_grid import SLOT_MINUTES, as_minutes


def is_slot_valid(
    candidate_start: int | str,
    candidate_duration: int,
    occupied: AbstractSet[int],
    *,
    day_end: int | str | None = None,
) -> bool:
    """True when every grid tick of ``[start, start + duration)`` is free.

    With ``day_end`` the span must also finish by the end of the operating
    window; without it a late start may run past closing time.
    """

    start = as_minutes(candidate_start)
    if start in occupied:
        return False
    end = start + candidate_duration
    if day_end is not None and end > as_minutes(day_end):
        return False
    tick = start + SLOT_MINUTES
    while tick < end:
        if tick in occupied:
            return False
        tick += SLOT_MINUTES
    return True


def slot_options(
    slots: Sequence[str],
    duration: int,
    occupied: AbstractSet[int],
    day_end: int | str | None = None,
) -> list[dict[str, object]]:
    """Start-time choices for a picker; unavailable ones render disabled."""

    return [
        {"time": slot, "available": is_slot_valid(slot, duration, occupied, day_end=day_end)}
        for slot in slots
    ]


def conflicting_leads(
    leads: Iterable[Lead],
    doctor_name: str,
    day,
    candidate_start: int | str,
    candidate_duration: int,
    exclude_lead_id: str | None = None,
) -> list[Lead]:
    """Booked leads whose ticks intersect the candidate span."""

    start = as_minutes(candidate_start)
    wanted = set(range(start, start + candidate_duration, SLOT_MINUTES))
    clashes = []
    for lead in bookings_for_day(leads, day, doctor_name):
        if exclude_lead_id is not None and lead.id == exclude_lead_id:
            continue
        if wanted.intersection(lead_ticks(lead)):
            clashes.append(lead)
    return clashes
