"""Occupied grid ticks per doctor and day, derived from the Lead collection."""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable

from chair_app.models import Lead
from chair_app.services.time_grid import ticks_between, time_to_minutes


def normalize_day(value: date | datetime | str) -> date:
    """Reduce a timestamp or ISO string to its calendar day (local midnight)."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def is_placed(lead: Lead) -> bool:
    """A lead sits on the calendar once it is booked with a date and time."""

    return bool(lead.is_booked and lead.appointment_date and lead.appointment_time)


def lead_ticks(lead: Lead) -> range:
    start = time_to_minutes(lead.appointment_time or "")
    return ticks_between(start, start + (lead.duration or 30))


def bookings_for_day(
    leads: Iterable[Lead],
    day: date | datetime | str,
    doctor_name: str | None = None,
) -> list[Lead]:
    """Booked leads placed on ``day``, optionally for one doctor, in store order."""

    target = normalize_day(day)
    result = []
    for lead in leads:
        if not is_placed(lead):
            continue
        if normalize_day(lead.appointment_date) != target:
            continue
        if doctor_name is not None and lead.assigned_doctor != doctor_name:
            continue
        result.append(lead)
    return result


def occupied_minutes(
    doctor_name: str,
    day: date | datetime | str,
    leads: Iterable[Lead],
    exclude_lead_id: str | None = None,
) -> set[int]:
    """Return the grid ticks already taken for ``doctor_name`` on ``day``.

    Visit status is ignored on purpose: a cancelled or no-show booking keeps
    its ticks until its appointment fields are cleared or it leaves BOOKED.
    ``exclude_lead_id`` drops a lead's own booking when validating its move.
    """

    occupied: set[int] = set()
    for lead in bookings_for_day(leads, day, doctor_name):
        if exclude_lead_id is not None and lead.id == exclude_lead_id:
            continue
        occupied.update(lead_ticks(lead))
    return occupied


class OccupancyIndex:
    """Memoized occupancy over one snapshot of the Lead collection.

    Build a fresh index per render or mutation; call ``invalidate`` if the
    snapshot is edited in place.
    """

    def __init__(self, leads: Iterable[Lead]) -> None:
        self._leads = list(leads)
        self._cache: dict[tuple[str, date, str | None], frozenset[int]] = {}

    @property
    def leads(self) -> list[Lead]:
        return self._leads

    def occupied(
        self,
        doctor_name: str,
        day: date | datetime | str,
        exclude_lead_id: str | None = None,
    ) -> frozenset[int]:
        key = (doctor_name, normalize_day(day), exclude_lead_id)
        if key not in self._cache:
            self._cache[key] = frozenset(
                occupied_minutes(doctor_name, key[1], self._leads, exclude_lead_id)
            )
        return self._cache[key]

    def invalidate(self) -> None:
        self._cache.clear()
