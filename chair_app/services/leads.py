"""Lead collection access and serialization."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from chair_app.models import Lead, LeadNote, Payment
from chair_app.services.time_grid import minutes_to_time, time_to_minutes


def new_id() -> str:
    return str(uuid.uuid4())


def load_leads(session: Session) -> list[Lead]:
    """The whole Lead collection, newest first (the order cards stack in)."""

    stmt = (
        select(Lead)
        .options(selectinload(Lead.payments))
        .order_by(Lead.created_at.desc(), Lead.id)
    )
    return list(session.execute(stmt).scalars())


def find_lead(session: Session, lead_id: str) -> Lead | None:
    return session.get(Lead, lead_id)


def add_note(lead: Lead, text: str) -> LeadNote:
    note = LeadNote(id=new_id(), text=text)
    lead.notes.append(note)
    return note


def add_payment(lead: Lead, amount_cents: int, method: str, note: str | None = None) -> Payment:
    payment = Payment(id=new_id(), amount_cents=amount_cents, method=method, note=note)
    lead.payments.append(payment)
    return payment


def paid_cents(lead: Lead) -> int:
    return sum(p.amount_cents for p in lead.payments or [])


def money(cents: int) -> str:
    return f"{(cents or 0) / 100:.2f}"


def end_time(lead: Lead) -> str | None:
    if not lead.appointment_time:
        return None
    return minutes_to_time(time_to_minutes(lead.appointment_time) + lead.effective_duration)


def lead_to_dict(lead: Lead) -> dict[str, Any]:
    """Plain snapshot of a lead for JSON responses and templates."""

    return {
        "id": lead.id,
        "name": lead.name,
        "phone": lead.phone,
        "treatment_interest": lead.treatment_interest,
        "status": lead.status,
        "source": lead.source,
        "assigned_doctor": lead.assigned_doctor,
        "appointment_date": lead.appointment_date.isoformat() if lead.appointment_date else None,
        "appointment_time": lead.appointment_time,
        "end_time": end_time(lead),
        "duration": lead.effective_duration,
        "visit_status": lead.visit_status,
        "price_quoted": money(lead.price_quoted_cents),
        "paid": money(paid_cents(lead)),
        "national_id": lead.national_id,
        "birth_year": lead.birth_year,
    }
