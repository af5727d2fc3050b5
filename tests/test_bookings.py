import pytest

from chair_app.models import LEAD_BOOKED, Lead
from chair_app.services.bookings import (
    BookingError,
    LeadNotFound,
    MissingRequiredField,
    OutsideOperatingHours,
    SlotOccupied,
    UnknownDoctor,
    cancel_or_no_show,
    check_slot,
    confirm_booking,
    create_booking,
    drag_move,
    parse_money_to_cents,
    reschedule,
    set_visit_status,
)
from chair_app.services.database import session_scope
from chair_app.services.doctors import add_doctor, list_doctors, toggle_doctor

from conftest import BOOKING_DAY


def _book(time="10:00", duration=30, doctor="Dr. Sarah", name="Walk In", **extra):
    return create_booking(
        name=name,
        phone="+968 9111 2222",
        doctor=doctor,
        day=BOOKING_DAY,
        time=time,
        duration=duration,
        **extra,
    )


def test_create_booking_places_a_walk_in(ctx):
    lead = _book(time="10:00", duration=60, price="25.500", deposit="5")
    assert lead["status"] == LEAD_BOOKED
    assert lead["source"] == "MANUAL"
    assert lead["visit_status"] == "SCHEDULED"
    assert lead["appointment_date"] == BOOKING_DAY
    assert lead["end_time"] == "11:00"
    assert lead["price_quoted"] == "25.50"
    assert lead["paid"] == "5.00"
    with session_scope() as session:
        stored = session.get(Lead, lead["id"])
        assert stored.payments[0].note == "Initial Deposit (Walk-in)"
        assert stored.payments[0].method == "CASH"
        assert stored.notes[0].text == "Walk-in appointment booked manually"


def test_scenario_a_overlap_is_rejected(ctx):
    first = _book(time="10:00", duration=60)
    with pytest.raises(SlotOccupied) as excinfo:
        _book(time="10:30", duration=30)
    assert str(excinfo.value) == f"conflict_with:{first['id']}"
    assert _book(time="11:00")["appointment_time"] == "11:00"


def test_scenario_b_long_booking_over_two_short_ones(ctx):
    _book(time="09:00")
    _book(time="09:30")
    assert not check_slot("Dr. Sarah", BOOKING_DAY, "09:00", 60)


def test_other_doctor_lane_is_independent(ctx):
    _book(time="10:00", duration=60)
    assert _book(time="10:00", doctor="Dr. Ali")["assigned_doctor"] == "Dr. Ali"


def test_end_of_day_booking_is_rejected(ctx):
    with pytest.raises(OutsideOperatingHours):
        _book(time="20:30", duration=60)
    assert _book(time="20:30", duration=30)["end_time"] == "21:00"


def test_before_opening_is_rejected(ctx):
    with pytest.raises(OutsideOperatingHours):
        _book(time="08:30")


@pytest.mark.parametrize(
    "kwargs, code",
    [
        ({"time": "10:15"}, "invalid_time"),
        ({"time": "10:00", "duration": 45}, "invalid_duration"),
        ({"time": "10:00", "duration": "abc"}, "invalid_duration"),
        ({"time": "10:00", "payment_method": "BARTER"}, "invalid_payment_method"),
    ],
)
def test_invalid_inputs(ctx, kwargs, code):
    with pytest.raises(BookingError) as excinfo:
        _book(**kwargs)
    assert str(excinfo.value) == code


def test_missing_fields(ctx):
    with pytest.raises(MissingRequiredField) as excinfo:
        create_booking(name="X", phone="1", doctor="", day=BOOKING_DAY, time="10:00")
    assert str(excinfo.value) == "doctor_required"


def test_inactive_doctor_cannot_take_bookings(ctx):
    doctor = next(d for d in list_doctors() if d["name"] == "Dr. Ali")
    toggle_doctor(doctor["id"])
    with pytest.raises(UnknownDoctor):
        _book(doctor="Dr. Ali")
    with pytest.raises(UnknownDoctor):
        _book(doctor="Dr. Nobody")


def test_check_slot_rejects_unknown_and_inactive_doctors(ctx):
    with pytest.raises(UnknownDoctor):
        check_slot("Dr. Nobody", BOOKING_DAY, "10:00")
    assert check_slot("Dr. Ali", BOOKING_DAY, "10:00")
    doctor = next(d for d in list_doctors() if d["name"] == "Dr. Ali")
    toggle_doctor(doctor["id"])
    with pytest.raises(UnknownDoctor):
        check_slot("Dr. Ali", BOOKING_DAY, "10:00")


def test_new_doctor_gets_a_lane(ctx):
    add_doctor("Dr. Layla", "rose")
    assert _book(doctor="Dr. Layla")["assigned_doctor"] == "Dr. Layla"


def test_reschedule_to_own_slot_succeeds(ctx):
    lead = _book(time="10:00", duration=60)
    moved = reschedule(lead["id"], day=BOOKING_DAY, time="10:00")
    assert moved["appointment_time"] == "10:00"


def test_reschedule_may_overlap_its_own_old_span(ctx):
    lead = _book(time="10:00", duration=60)
    moved = reschedule(lead["id"], day=BOOKING_DAY, time="10:30")
    assert moved["appointment_time"] == "10:30"
    assert moved["duration"] == 60
    assert moved["assigned_doctor"] == "Dr. Sarah"


def test_reschedule_onto_another_booking_fails(ctx):
    _book(time="12:00", name="Blocker")
    lead = _book(time="10:00", duration=60)
    with pytest.raises(SlotOccupied):
        reschedule(lead["id"], day=BOOKING_DAY, time="11:30")


def test_scenario_c_cancel_keeps_the_slot(ctx):
    lead = _book(time="10:00")
    cancelled = cancel_or_no_show(lead["id"], "CANCELLED")
    assert cancelled["visit_status"] == "CANCELLED"
    assert cancelled["appointment_time"] == "10:00"
    with pytest.raises(SlotOccupied):
        _book(time="10:00", name="Second")


def test_vacate_frees_the_slot(ctx):
    lead = _book(time="10:00")
    released = cancel_or_no_show(lead["id"], "NO_SHOW", vacate=True)
    assert released["appointment_time"] is None
    assert released["appointment_date"] is None
    assert _book(time="10:00", name="Second")["appointment_time"] == "10:00"


def test_scenario_d_drag_onto_occupied_tick_is_rejected(ctx):
    blocker = _book(time="11:00", name="Blocker")
    lead = _book(time="10:00", doctor="Dr. Ali")
    with pytest.raises(SlotOccupied) as excinfo:
        drag_move(lead["id"], day=BOOKING_DAY, time="11:00", doctor="Dr. Sarah")
    assert str(excinfo.value) == f"conflict_with:{blocker['id']}"
    with session_scope() as session:
        unchanged = session.get(Lead, lead["id"])
        assert unchanged.assigned_doctor == "Dr. Ali"
        assert unchanged.appointment_time == "10:00"


def test_drag_move_reassigns_doctor_and_day(ctx):
    lead = _book(time="10:00")
    moved = drag_move(lead["id"], day="2030-01-09", time="14:30", doctor="Dr. Mohammed")
    assert moved["assigned_doctor"] == "Dr. Mohammed"
    assert moved["appointment_date"] == "2030-01-09"
    assert moved["appointment_time"] == "14:30"


def test_drag_move_unknown_lead(ctx):
    with pytest.raises(LeadNotFound):
        drag_move("missing", day=BOOKING_DAY, time="10:00")


def test_moves_require_a_booked_lead(ctx, make_pipeline_lead):
    lead_id = make_pipeline_lead()
    with pytest.raises(BookingError) as excinfo:
        drag_move(lead_id, day=BOOKING_DAY, time="10:00", doctor="Dr. Sarah")
    assert str(excinfo.value) == "not_booked"


def test_confirm_booking_promotes_pipeline_lead(ctx, make_pipeline_lead):
    lead_id = make_pipeline_lead()
    booked = confirm_booking(lead_id, doctor="Dr. Sarah", day=BOOKING_DAY, time="16:00", duration=90, deposit="10")
    assert booked["status"] == LEAD_BOOKED
    assert booked["end_time"] == "17:30"
    assert booked["paid"] == "10.00"
    with session_scope() as session:
        payment = session.get(Lead, lead_id).payments[0]
        assert (payment.method, payment.note) == ("TRANSFER", "Initial Deposit")
    with pytest.raises(SlotOccupied):
        _book(time="17:00")


def test_visit_status_transitions(ctx):
    lead = _book(time="10:00")
    for status in ("ARRIVED", "IN_CHAIR", "COMPLETED"):
        assert set_visit_status(lead["id"], status)["visit_status"] == status
    with pytest.raises(BookingError):
        set_visit_status(lead["id"], "DANCING")


def test_parse_money_to_cents():
    assert parse_money_to_cents("12.5") == 1250
    assert parse_money_to_cents("1,000") == 100000
    assert parse_money_to_cents("") == 0
    assert parse_money_to_cents(None) == 0
    with pytest.raises(BookingError):
        parse_money_to_cents("99999999999")
