"""SQLAlchemy models for the clinic roster, settings and the Lead collection."""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import Boolean, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# Lead pipeline status. Only BOOKED leads occupy the calendar.
LEAD_NEW = "NEW"
LEAD_CONTACTED = "CONTACTED"
LEAD_BOOKED = "BOOKED"
LEAD_LOST = "LOST"
LEAD_STATUSES = (LEAD_NEW, LEAD_CONTACTED, LEAD_BOOKED, LEAD_LOST)

SOURCE_WEBSITE = "WEBSITE"
SOURCE_GOOGLE_ADS = "GOOGLE_ADS"
SOURCE_MANUAL = "MANUAL"
LEAD_SOURCES = (SOURCE_WEBSITE, SOURCE_GOOGLE_ADS, SOURCE_MANUAL)

# Where the patient physically is on the day of the visit.
VISIT_SCHEDULED = "SCHEDULED"
VISIT_ARRIVED = "ARRIVED"
VISIT_IN_CHAIR = "IN_CHAIR"
VISIT_COMPLETED = "COMPLETED"
VISIT_NO_SHOW = "NO_SHOW"
VISIT_CANCELLED = "CANCELLED"
VISIT_STATUSES = (
    VISIT_SCHEDULED,
    VISIT_ARRIVED,
    VISIT_IN_CHAIR,
    VISIT_COMPLETED,
    VISIT_NO_SHOW,
    VISIT_CANCELLED,
)

PAYMENT_METHODS = ("CASH", "TRANSFER", "CARD", "CHEQUE")

DEFAULT_DURATION_MINUTES = 30


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Base(DeclarativeBase):
    pass


class Doctor(Base):
    __tablename__ = "doctors"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    color: Mapped[str] = mapped_column(String, nullable=False, default="blue", server_default="blue")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="1")
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[str | None] = mapped_column(Text, nullable=True, default=_utc_now)


class ClinicSettings(Base):
    __tablename__ = "clinic_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    clinic_name: Mapped[str] = mapped_column(Text, nullable=False, default="Dental Clinic")
    currency: Mapped[str] = mapped_column(String, nullable=False, default="OMR")
    start_hour: Mapped[str] = mapped_column(String, nullable=False, default="09:00")
    end_hour: Mapped[str] = mapped_column(String, nullable=False, default="21:00")
    commission_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=40)
    updated_at: Mapped[str | None] = mapped_column(Text, nullable=True, default=_utc_now)


class Lead(Base):
    __tablename__ = "leads"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(Text, nullable=False, default="")
    treatment_interest: Mapped[str] = mapped_column(Text, nullable=False, default="General Checkup")
    status: Mapped[str] = mapped_column(String, nullable=False, default=LEAD_NEW)
    source: Mapped[str] = mapped_column(String, nullable=False, default=SOURCE_WEBSITE)
    is_vip: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")

    assigned_doctor: Mapped[str | None] = mapped_column(String, nullable=True)
    appointment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    appointment_time: Mapped[str | None] = mapped_column(String, nullable=True)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True, default=DEFAULT_DURATION_MINUTES)
    visit_status: Mapped[str | None] = mapped_column(String, nullable=True)

    price_quoted_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    national_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    birth_year: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[str] = mapped_column(Text, nullable=False, default=_utc_now)
    updated_at: Mapped[str | None] = mapped_column(Text, nullable=True, default=_utc_now)

    payments: Mapped[list["Payment"]] = relationship(
        "Payment",
        back_populates="lead",
        cascade="all, delete-orphan",
        order_by="Payment.paid_at",
    )
    notes: Mapped[list["LeadNote"]] = relationship(
        "LeadNote",
        back_populates="lead",
        cascade="all, delete-orphan",
        order_by="LeadNote.created_at",
    )

    @property
    def effective_duration(self) -> int:
        return self.duration or DEFAULT_DURATION_MINUTES

    @property
    def is_booked(self) -> bool:
        return self.status == LEAD_BOOKED

    def touch(self) -> None:
        self.updated_at = _utc_now()


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    lead_id: Mapped[str] = mapped_column(String, ForeignKey("leads.id", ondelete="CASCADE"), nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    method: Mapped[str] = mapped_column(String, nullable=False, default="CASH")
    paid_at: Mapped[str] = mapped_column(Text, nullable=False, default=_utc_now)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    lead: Mapped[Lead] = relationship(Lead, back_populates="payments")


class LeadNote(Base):
    __tablename__ = "lead_notes"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    lead_id: Mapped[str] = mapped_column(String, ForeignKey("leads.id", ondelete="CASCADE"), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[str] = mapped_column(Text, nullable=False, default=_utc_now)

    lead: Mapped[Lead] = relationship(Lead, back_populates="notes")
