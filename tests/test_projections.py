from datetime import date
from types import SimpleNamespace

from chair_app.models import LEAD_BOOKED, VISIT_CANCELLED, VISIT_SCHEDULED, Doctor, Lead, Payment
from chair_app.services.projections import day_board, day_list, day_strip, week_grid, week_start

DAY = date(2030, 1, 8)
SETTINGS = SimpleNamespace(start_hour="09:00", end_hour="12:00")
DOCTORS = [
    Doctor(id="d1", name="Dr. Sarah", color="blue", active=True, sort_order=0),
    Doctor(id="d2", name="Dr. Ali", color="indigo", active=True, sort_order=1),
    Doctor(id="d3", name="Dr. Gone", color="teal", active=False, sort_order=2),
]


def _lead(lead_id, doctor="Dr. Sarah", time="09:00", duration=30, day=DAY, visit=VISIT_SCHEDULED):
    return Lead(
        id=lead_id,
        name=f"Patient {lead_id}",
        phone="000",
        treatment_interest="Cleaning",
        status=LEAD_BOOKED,
        assigned_doctor=doctor,
        appointment_date=day,
        appointment_time=time,
        duration=duration,
        visit_status=visit,
    )


def _cell(board, time, doctor):
    row = next(r for r in board["rows"] if r["time"] == time)
    return next(c for c in row["cells"] if c["doctor"] == doctor)


def test_board_lanes_are_active_doctors():
    board = day_board([], DOCTORS, SETTINGS, DAY)
    assert [d["name"] for d in board["doctors"]] == ["Dr. Sarah", "Dr. Ali"]
    assert [r["time"] for r in board["rows"]] == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]


def test_board_card_spans_and_covers_rows():
    board = day_board([_lead("a", time="10:00", duration=90)], DOCTORS, SETTINGS, DAY)
    card_cell = _cell(board, "10:00", "Dr. Sarah")
    assert card_cell["kind"] == "card"
    assert card_cell["card"]["row_span"] == 3
    assert card_cell["card"]["color"] == "blue"
    assert _cell(board, "10:30", "Dr. Sarah")["kind"] == "covered"
    assert _cell(board, "11:00", "Dr. Sarah")["kind"] == "covered"
    assert _cell(board, "11:30", "Dr. Sarah") == {"doctor": "Dr. Sarah", "kind": "empty", "available": True}
    assert _cell(board, "10:30", "Dr. Ali")["kind"] == "empty"


def test_board_last_row_fits_only_short_bookings():
    board = day_board([], DOCTORS, SETTINGS, DAY)
    assert _cell(board, "11:30", "Dr. Ali")["available"] is True


def test_board_reports_legacy_overlaps_as_overflow():
    board = day_board([_lead("a"), _lead("b")], DOCTORS, SETTINGS, DAY)
    cell = _cell(board, "09:00", "Dr. Sarah")
    assert cell["card"]["id"] == "a"
    assert [c["id"] for c in cell["overflow"]] == ["b"]


def test_cancelled_cards_are_dimmed_but_still_placed():
    board = day_board([_lead("a", visit=VISIT_CANCELLED)], DOCTORS, SETTINGS, DAY)
    cell = _cell(board, "09:00", "Dr. Sarah")
    assert cell["card"]["dimmed"] is True


def test_day_list_groups_by_time():
    leads = [_lead("a", time="09:30"), _lead("b", doctor="Dr. Ali", time="09:30")]
    listing = day_list(leads, SETTINGS, DAY, DOCTORS)
    rows = [r for r in listing["rows"] if r["time"] == "09:30"]
    assert [r["show_time"] for r in rows] == [True, False]
    assert [r["card"]["id"] for r in rows] == ["a", "b"]
    assert listing["rows"][0] == {"time": "09:00", "show_time": True, "card": None}
    assert len(listing["rows"]) == 7


def test_week_starts_on_sunday():
    assert week_start(date(2030, 1, 8)) == date(2030, 1, 6)
    assert week_start(date(2030, 1, 6)) == date(2030, 1, 6)
    assert week_start(date(2030, 1, 12)) == date(2030, 1, 6)


def test_week_grid_stacks_across_doctors():
    leads = [
        _lead("a", time="10:00", duration=60),
        _lead("b", doctor="Dr. Ali", time="10:00"),
        _lead("c", day=date(2030, 1, 13), time="10:00"),
    ]
    grid = week_grid(leads, SETTINGS, DAY, DOCTORS)
    assert grid["week_start"] == "2030-01-06"
    assert grid["days"][0] == "2030-01-06"
    assert grid["days"][-1] == "2030-01-12"
    row = next(r for r in grid["rows"] if r["time"] == "10:00")
    tuesday = next(c for c in row["cells"] if c["day"] == "2030-01-08")
    assert [(c["id"], c["stack_index"], c["height_ticks"]) for c in tuesday["cards"]] == [
        ("a", 0, 2),
        ("b", 1, 1),
    ]
    assert all(not c["cards"] for r in grid["rows"] for c in r["cells"] if c["day"] != "2030-01-08")


def test_day_strip_counts_bookings():
    leads = [_lead("a"), _lead("b", time="10:00"), _lead("c", day=date(2030, 1, 10))]
    strip = day_strip(leads, DAY, today=DAY)
    assert len(strip) == 9
    assert strip[0]["date"] == "2030-01-04"
    assert strip[4] == {
        "date": "2030-01-08",
        "weekday": "Tue",
        "selected": True,
        "kind": "bookings",
        "bookings": 2,
        "label": "2",
    }
    assert strip[6]["bookings"] == 1


def test_day_strip_shows_revenue_for_past_days():
    lead = _lead("a", day=date(2030, 1, 5))
    lead.payments.append(Payment(id="p1", amount_cents=2500, method="CASH", paid_at="2030-01-05T10:00:00+00:00"))
    lead.payments.append(Payment(id="p2", amount_cents=1000, method="CARD", paid_at="2030-01-05T15:30:00+00:00"))
    strip = day_strip([lead, _lead("b")], DAY, today=DAY, currency="OMR")
    saturday = strip[1]
    assert saturday["date"] == "2030-01-05"
    assert saturday["kind"] == "revenue"
    assert saturday["revenue"] == "35.00"
    assert saturday["label"] == "35.00 OMR"
    assert "bookings" not in saturday
    assert strip[2]["label"] == "0.00 OMR"
    assert strip[4]["kind"] == "bookings"
    assert strip[4]["label"] == "1"
