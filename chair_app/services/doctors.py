"""Doctor roster: the swim-lanes of the day board and the booking targets."""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from chair_app.models import Doctor
from chair_app.services.database import session_scope

COLOR_TAGS = ("blue", "emerald", "indigo", "amber", "rose", "violet", "teal", "orange")


class DoctorError(Exception):
    """Raised when a roster change is rejected."""


def load_doctors(session: Session, *, active_only: bool = False) -> list[Doctor]:
    stmt = select(Doctor).order_by(Doctor.sort_order, Doctor.name)
    if active_only:
        stmt = stmt.where(Doctor.active.is_(True))
    return list(session.execute(stmt).scalars())


def find_doctor_by_name(session: Session, name: str) -> Doctor | None:
    return session.execute(select(Doctor).where(Doctor.name == name)).scalar_one_or_none()


def doctor_to_dict(doctor: Doctor) -> dict[str, object]:
    return {"id": doctor.id, "name": doctor.name, "color": doctor.color, "active": bool(doctor.active)}


def list_doctors(*, active_only: bool = False) -> list[dict[str, object]]:
    with session_scope() as session:
        return [doctor_to_dict(doc) for doc in load_doctors(session, active_only=active_only)]


def _roster_size(session: Session) -> int:
    return session.execute(select(func.count(Doctor.id))).scalar_one()


def add_doctor(name: str, color: str | None = None) -> dict[str, object]:
    name = (name or "").strip()
    if not name:
        raise DoctorError("doctor_name_required")
    color = (color or "").strip().lower()
    if color and color not in COLOR_TAGS:
        raise DoctorError("invalid_color")
    with session_scope() as session:
        if find_doctor_by_name(session, name) is not None:
            raise DoctorError("duplicate_doctor")
        position = _roster_size(session)
        doctor = Doctor(
            id=str(uuid.uuid4()),
            name=name,
            color=color or COLOR_TAGS[position % len(COLOR_TAGS)],
            active=True,
            sort_order=position,
        )
        session.add(doctor)
        session.flush()
        return doctor_to_dict(doctor)


def toggle_doctor(doctor_id: str) -> dict[str, object]:
    """Flip the active flag; inactive doctors keep their bookings but lose their lane."""

    with session_scope() as session:
        doctor = session.get(Doctor, doctor_id)
        if doctor is None:
            raise DoctorError("doctor_not_found")
        doctor.active = not doctor.active
        return doctor_to_dict(doctor)
