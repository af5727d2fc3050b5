"""Booking mutations: the only writers of a lead's scheduling fields.

Every operation re-derives occupancy from the Lead collection and rejects a
change that would overlap another booked lead of the same doctor on the same
day, drag-and-drop moves included.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any

from flask import current_app
from sqlalchemy.orm import Session

from chair_app.models import (
    DEFAULT_DURATION_MINUTES,
    LEAD_BOOKED,
    PAYMENT_METHODS,
    SOURCE_MANUAL,
    VISIT_CANCELLED,
    VISIT_NO_SHOW,
    VISIT_SCHEDULED,
    VISIT_STATUSES,
    Doctor,
    Lead,
)
from chair_app.services.clinic_settings import load_settings
from chair_app.services.database import session_scope
from chair_app.services.doctors import find_doctor_by_name
from chair_app.services.leads import add_note, add_payment, find_lead, lead_to_dict, load_leads, new_id
from chair_app.services.occupancy import normalize_day, occupied_minutes
from chair_app.services.slot_validator import conflicting_leads, is_slot_valid
from chair_app.services.time_grid import (
    SLOT_MINUTES,
    InvalidTimeFormat,
    is_on_grid,
    minutes_to_time,
    time_to_minutes,
)

MAX_MONEY_CENTS = 1_000_000_000


class BookingError(Exception):
    """Base exception for booking operations."""


class SlotOccupied(BookingError):
    """Raised when a requested slot overlaps an existing booking."""


class OutsideOperatingHours(BookingError):
    """Raised when a booking would start before opening or run past closing."""


class LeadNotFound(BookingError):
    """Raised when a lead cannot be located."""


class UnknownDoctor(BookingError):
    """Raised when the target doctor is missing or inactive."""


class MissingRequiredField(BookingError):
    """Raised when doctor, day or time is absent."""


def parse_money_to_cents(txt: str | int | float | None) -> int:
    txt = str(txt if txt is not None else "").strip().replace(",", "")
    if txt == "":
        return 0
    m = re.match(r"^\s*([0-9]+(?:\.[0-9]{1,3})?)\s*$", txt)
    cents = int(round(float(m.group(1)) * 100)) if m else 0
    if cents > MAX_MONEY_CENTS:
        raise BookingError("amount_too_large")
    return cents


def _require(**fields: Any) -> None:
    for name, value in fields.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            raise MissingRequiredField(f"{name}_required")


def _parse_day(value: date | str) -> date:
    try:
        return normalize_day(value)
    except ValueError as exc:
        raise BookingError("invalid_day") from exc


def _parse_time(value: str) -> int:
    try:
        minutes = time_to_minutes(value.strip())
    except InvalidTimeFormat as exc:
        raise BookingError("invalid_time") from exc
    if not is_on_grid(minutes):
        raise BookingError("invalid_time")
    return minutes


def parse_duration(value: int | str | None) -> int:
    if value in (None, ""):
        return DEFAULT_DURATION_MINUTES
    try:
        duration = int(value)
    except (TypeError, ValueError) as exc:
        raise BookingError("invalid_duration") from exc
    if duration <= 0 or duration % SLOT_MINUTES:
        raise BookingError("invalid_duration")
    return duration


def _active_doctor(session: Session, name: str) -> Doctor:
    doctor = find_doctor_by_name(session, name.strip())
    if doctor is None or not doctor.active:
        raise UnknownDoctor(f"unknown_doctor:{name}")
    return doctor


def _get_lead(session: Session, lead_id: str) -> Lead:
    lead = find_lead(session, lead_id)
    if lead is None:
        raise LeadNotFound(lead_id)
    return lead


def _ensure_slot(
    session: Session,
    *,
    doctor: str,
    day: date,
    start: int,
    duration: int,
    exclude_lead_id: str | None = None,
) -> None:
    """Raise unless ``[start, start + duration)`` is free and inside opening hours."""

    settings = load_settings(session)
    day_start = time_to_minutes(settings.start_hour)
    day_end = time_to_minutes(settings.end_hour)
    if start < day_start or start + duration > day_end:
        current_app.logger.warning(
            "Rejected booking for %s on %s at %s: outside %s-%s",
            doctor,
            day,
            minutes_to_time(start),
            settings.start_hour,
            settings.end_hour,
        )
        raise OutsideOperatingHours("outside_operating_hours")

    leads = load_leads(session)
    occupied = occupied_minutes(doctor, day, leads, exclude_lead_id)
    if not is_slot_valid(start, duration, occupied, day_end=day_end):
        clashes = conflicting_leads(leads, doctor, day, start, duration, exclude_lead_id)
        current_app.logger.warning(
            "Rejected booking for %s on %s at %s (%s min): slot occupied",
            doctor,
            day,
            minutes_to_time(start),
            duration,
        )
        if clashes:
            raise SlotOccupied(f"conflict_with:{clashes[0].id}")
        raise SlotOccupied("slot_occupied")


def check_slot(
    doctor: str,
    day: date | str,
    time: str,
    duration: int | str | None = None,
    exclude_lead_id: str | None = None,
) -> bool:
    """Whether a booking could be placed.

    Input errors (unknown or inactive doctor, off-grid time, bad duration)
    raise exactly as they do in the mutations; only an occupied slot or one
    outside opening hours reports False.
    """

    _require(doctor=doctor, day=day, time=time)
    with session_scope() as session:
        doc = _active_doctor(session, doctor)
        try:
            _ensure_slot(
                session,
                doctor=doc.name,
                day=_parse_day(day),
                start=_parse_time(time),
                duration=parse_duration(duration),
                exclude_lead_id=exclude_lead_id,
            )
        except (SlotOccupied, OutsideOperatingHours):
            return False
    return True


def create_booking(
    *,
    name: str,
    phone: str,
    doctor: str,
    day: date | str,
    time: str,
    duration: int | str | None = DEFAULT_DURATION_MINUTES,
    price: str | int | float | None = None,
    deposit: str | int | float | None = None,
    payment_method: str = "CASH",
    treatment: str | None = None,
    national_id: str | None = None,
    birth_year: str | None = None,
) -> dict[str, Any]:
    """Book a walk-in: a new lead created directly in the BOOKED state."""

    _require(name=name, phone=phone, doctor=doctor, day=day, time=time)
    booking_day = _parse_day(day)
    start = _parse_time(time)
    minutes = parse_duration(duration)
    method = (payment_method or "CASH").upper()
    if method not in PAYMENT_METHODS:
        raise BookingError("invalid_payment_method")
    price_cents = parse_money_to_cents(price)
    deposit_cents = parse_money_to_cents(deposit)

    with session_scope() as session:
        doc = _active_doctor(session, doctor)
        _ensure_slot(session, doctor=doc.name, day=booking_day, start=start, duration=minutes)
        lead = Lead(
            id=new_id(),
            name=name.strip(),
            phone=phone.strip(),
            national_id=(national_id or "").strip() or None,
            birth_year=(birth_year or "").strip() or None,
            treatment_interest=(treatment or "").strip() or "General Checkup",
            status=LEAD_BOOKED,
            source=SOURCE_MANUAL,
            price_quoted_cents=price_cents,
            assigned_doctor=doc.name,
            appointment_date=booking_day,
            appointment_time=minutes_to_time(start),
            duration=minutes,
            visit_status=VISIT_SCHEDULED,
        )
        add_note(lead, "Walk-in appointment booked manually")
        if deposit_cents > 0:
            add_payment(lead, deposit_cents, method, "Initial Deposit (Walk-in)")
        session.add(lead)
        session.flush()
        current_app.logger.info(
            "Booked lead %s with %s on %s at %s (%s min)",
            lead.id,
            doc.name,
            booking_day,
            lead.appointment_time,
            minutes,
        )
        return lead_to_dict(lead)


def confirm_booking(
    lead_id: str,
    *,
    doctor: str,
    day: date | str,
    time: str,
    duration: int | str | None = DEFAULT_DURATION_MINUTES,
    deposit: str | int | float | None = None,
) -> dict[str, Any]:
    """Promote a pipeline lead to BOOKED on the chosen slot."""

    _require(doctor=doctor, day=day, time=time)
    booking_day = _parse_day(day)
    start = _parse_time(time)
    minutes = parse_duration(duration)
    deposit_cents = parse_money_to_cents(deposit)

    with session_scope() as session:
        lead = _get_lead(session, lead_id)
        doc = _active_doctor(session, doctor)
        _ensure_slot(
            session,
            doctor=doc.name,
            day=booking_day,
            start=start,
            duration=minutes,
            exclude_lead_id=lead.id,
        )
        lead.status = LEAD_BOOKED
        lead.assigned_doctor = doc.name
        lead.appointment_date = booking_day
        lead.appointment_time = minutes_to_time(start)
        lead.duration = minutes
        lead.visit_status = VISIT_SCHEDULED
        if deposit_cents > 0:
            add_payment(lead, deposit_cents, "TRANSFER", "Initial Deposit")
        lead.touch()
        current_app.logger.info(
            "Confirmed lead %s with %s on %s at %s", lead.id, doc.name, booking_day, lead.appointment_time
        )
        return lead_to_dict(lead)


def _move(
    session: Session,
    lead: Lead,
    *,
    day: date,
    start: int,
    doctor: str,
) -> None:
    if lead.status != LEAD_BOOKED:
        raise BookingError("not_booked")
    _ensure_slot(
        session,
        doctor=doctor,
        day=day,
        start=start,
        duration=lead.effective_duration,
        exclude_lead_id=lead.id,
    )
    lead.assigned_doctor = doctor
    lead.appointment_date = day
    lead.appointment_time = minutes_to_time(start)
    lead.touch()


def reschedule(lead_id: str, *, day: date | str, time: str) -> dict[str, Any]:
    """Move a booking to another day/time, keeping its doctor and duration."""

    _require(day=day, time=time)
    target_day = _parse_day(day)
    start = _parse_time(time)
    with session_scope() as session:
        lead = _get_lead(session, lead_id)
        if not lead.assigned_doctor:
            raise MissingRequiredField("doctor_required")
        _move(session, lead, day=target_day, start=start, doctor=lead.assigned_doctor)
        current_app.logger.info("Rescheduled lead %s to %s at %s", lead.id, target_day, lead.appointment_time)
        return lead_to_dict(lead)


def drag_move(
    lead_id: str,
    *,
    day: date | str,
    time: str,
    doctor: str | None = None,
) -> dict[str, Any]:
    """Drop a booked card on another cell, optionally in another doctor's lane."""

    _require(day=day, time=time)
    target_day = _parse_day(day)
    start = _parse_time(time)
    with session_scope() as session:
        lead = _get_lead(session, lead_id)
        if doctor:
            target_doctor = _active_doctor(session, doctor).name
        elif lead.assigned_doctor:
            target_doctor = lead.assigned_doctor
        else:
            raise MissingRequiredField("doctor_required")
        _move(session, lead, day=target_day, start=start, doctor=target_doctor)
        current_app.logger.info(
            "Moved lead %s to %s on %s at %s", lead.id, target_doctor, target_day, lead.appointment_time
        )
        return lead_to_dict(lead)


def set_visit_status(lead_id: str, visit_status: str) -> dict[str, Any]:
    """Context-menu transition (check-in, in chair, complete, no-show, cancel)."""

    visit_status = (visit_status or "").strip().upper()
    if visit_status not in VISIT_STATUSES:
        raise BookingError("invalid_visit_status")
    with session_scope() as session:
        lead = _get_lead(session, lead_id)
        lead.visit_status = visit_status
        lead.touch()
        current_app.logger.info("Lead %s visit status -> %s", lead.id, visit_status)
        return lead_to_dict(lead)


def cancel_or_no_show(lead_id: str, visit_status: str, *, vacate: bool = False) -> dict[str, Any]:
    """Mark a booking cancelled or no-show.

    The appointment keeps occupying its ticks unless ``vacate`` is set, in
    which case its date and time are cleared and the slot frees up.
    """

    visit_status = (visit_status or "").strip().upper()
    if visit_status not in (VISIT_CANCELLED, VISIT_NO_SHOW):
        raise BookingError("invalid_visit_status")
    with session_scope() as session:
        lead = _get_lead(session, lead_id)
        lead.visit_status = visit_status
        if vacate:
            lead.appointment_date = None
            lead.appointment_time = None
            add_note(lead, f"Slot released ({visit_status.lower()})")
        lead.touch()
        current_app.logger.info("Lead %s marked %s (vacate=%s)", lead.id, visit_status, vacate)
        return lead_to_dict(lead)
