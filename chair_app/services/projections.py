"""Read-only calendar projections over the Lead collection.

Day board, day list and week grid differ only in grouping and geometry; all of
them place cards with ``lead_ticks`` and decide free cells with the same
occupancy and validator calls the booking mutations use.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Iterable, Sequence

from chair_app.models import VISIT_CANCELLED, VISIT_NO_SHOW, Doctor, Lead
from chair_app.services.leads import money
from chair_app.services.occupancy import OccupancyIndex, bookings_for_day, lead_ticks, normalize_day
from chair_app.services.slot_validator import is_slot_valid
from chair_app.services.time_grid import SLOT_MINUTES, generate_slots, slot_span, time_to_minutes

DIMMED_VISIT_STATUSES = {VISIT_CANCELLED, VISIT_NO_SHOW}
STRIP_RADIUS_DAYS = 4


def _card(lead: Lead, colors: dict[str, str]) -> dict[str, Any]:
    duration = lead.duration or SLOT_MINUTES
    return {
        "id": lead.id,
        "name": lead.name,
        "phone": lead.phone,
        "treatment": lead.treatment_interest,
        "doctor": lead.assigned_doctor,
        "color": colors.get(lead.assigned_doctor or "", "gray"),
        "time": lead.appointment_time,
        "duration": duration,
        "row_span": slot_span(duration),
        "visit_status": lead.visit_status,
        "dimmed": lead.visit_status in DIMMED_VISIT_STATUSES,
    }


def _window(settings: Any) -> tuple[list[str], int]:
    return generate_slots(settings.start_hour, settings.end_hour), time_to_minutes(settings.end_hour)


def week_start(day: date) -> date:
    """Sunday on or before ``day``."""

    return day - timedelta(days=(day.weekday() + 1) % 7)


def day_board(
    leads: Iterable[Lead],
    doctors: Sequence[Doctor],
    settings: Any,
    day: date | str,
) -> dict[str, Any]:
    """Swim-lane board: one column per active doctor, one row per grid tick.

    A card spans ``row_span`` rows from its start tick; the ticks beneath it in
    the same column come back as ``covered`` and render empty.
    """

    target = normalize_day(day)
    lanes = [doc for doc in doctors if doc.active]
    colors = {doc.name: doc.color for doc in doctors}
    slots, day_end = _window(settings)
    index = OccupancyIndex(leads)
    todays = bookings_for_day(index.leads, target)

    starts: dict[tuple[str, int], list[Lead]] = {}
    covered: set[tuple[str, int]] = set()
    for lead in todays:
        ticks = lead_ticks(lead)
        starts.setdefault((lead.assigned_doctor or "", ticks.start), []).append(lead)
        for tick in ticks[1:]:
            covered.add((lead.assigned_doctor or "", tick))

    rows = []
    for slot in slots:
        tick = time_to_minutes(slot)
        cells = []
        for doc in lanes:
            placed = starts.get((doc.name, tick), [])
            if placed:
                cells.append(
                    {
                        "doctor": doc.name,
                        "kind": "card",
                        "card": _card(placed[0], colors),
                        "overflow": [_card(extra, colors) for extra in placed[1:]],
                    }
                )
            elif (doc.name, tick) in covered:
                cells.append({"doctor": doc.name, "kind": "covered"})
            else:
                occupied = index.occupied(doc.name, target)
                cells.append(
                    {
                        "doctor": doc.name,
                        "kind": "empty",
                        "available": is_slot_valid(tick, SLOT_MINUTES, occupied, day_end=day_end),
                    }
                )
        rows.append({"time": slot, "cells": cells})

    return {
        "day": target.isoformat(),
        "doctors": [{"id": doc.id, "name": doc.name, "color": doc.color} for doc in lanes],
        "rows": rows,
    }


def day_list(
    leads: Iterable[Lead],
    settings: Any,
    day: date | str,
    doctors: Sequence[Doctor] = (),
) -> dict[str, Any]:
    """Flat table keyed by time; simultaneous bookings share one time label."""

    target = normalize_day(day)
    colors = {doc.name: doc.color for doc in doctors}
    slots, _ = _window(settings)
    by_time: dict[str, list[Lead]] = {}
    for lead in bookings_for_day(leads, target):
        by_time.setdefault(lead.appointment_time or "", []).append(lead)

    rows = []
    for slot in slots:
        group = by_time.get(slot, [])
        if not group:
            rows.append({"time": slot, "show_time": True, "card": None})
            continue
        for position, lead in enumerate(group):
            rows.append({"time": slot, "show_time": position == 0, "card": _card(lead, colors)})
    return {"day": target.isoformat(), "rows": rows}


def week_grid(
    leads: Iterable[Lead],
    settings: Any,
    day: date | str,
    doctors: Sequence[Doctor] = (),
) -> dict[str, Any]:
    """Seven day columns from Sunday; same-tick bookings stack regardless of doctor."""

    target = normalize_day(day)
    first = week_start(target)
    days = [first + timedelta(days=offset) for offset in range(7)]
    colors = {doc.name: doc.color for doc in doctors}
    slots, _ = _window(settings)
    lead_list = list(leads)

    cells: dict[tuple[date, str], list[Lead]] = {}
    for column in days:
        for lead in bookings_for_day(lead_list, column):
            cells.setdefault((column, lead.appointment_time or ""), []).append(lead)

    rows = []
    for slot in slots:
        row_cells = []
        for column in days:
            stack = []
            for position, lead in enumerate(cells.get((column, slot), [])):
                card = _card(lead, colors)
                card["stack_index"] = position
                card["height_ticks"] = card["row_span"]
                stack.append(card)
            row_cells.append({"day": column.isoformat(), "cards": stack})
        rows.append({"time": slot, "cells": row_cells})

    return {
        "day": target.isoformat(),
        "week_start": first.isoformat(),
        "days": [column.isoformat() for column in days],
        "rows": rows,
    }


def _revenue_by_day(leads: Iterable[Lead]) -> dict[date, int]:
    totals: dict[date, int] = {}
    for lead in leads:
        for payment in lead.payments or []:
            paid_on = normalize_day(payment.paid_at)
            totals[paid_on] = totals.get(paid_on, 0) + (payment.amount_cents or 0)
    return totals


def day_strip(
    leads: Iterable[Lead],
    day: date | str,
    *,
    today: date | None = None,
    currency: str = "",
) -> list[dict[str, Any]]:
    """Navigator around the selected day.

    Days before ``today`` are labelled with the payments taken that day;
    today and later days with their booking count.
    """

    target = normalize_day(day)
    today = today or date.today()
    lead_list = list(leads)
    revenue = _revenue_by_day(lead_list)
    strip = []
    for offset in range(-STRIP_RADIUS_DAYS, STRIP_RADIUS_DAYS + 1):
        current = target + timedelta(days=offset)
        entry: dict[str, Any] = {
            "date": current.isoformat(),
            "weekday": current.strftime("%a"),
            "selected": offset == 0,
        }
        if current < today:
            amount = money(revenue.get(current, 0))
            entry.update(kind="revenue", revenue=amount, label=f"{amount} {currency}".strip())
        else:
            count = len(bookings_for_day(lead_list, current))
            entry.update(kind="bookings", bookings=count, label=str(count))
        strip.append(entry)
    return strip
