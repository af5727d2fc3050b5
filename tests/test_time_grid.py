import pytest

from chair_app.services.time_grid import (
    DURATION_CHOICES,
    InvalidTimeFormat,
    generate_slots,
    is_on_grid,
    minutes_to_time,
    slot_span,
    time_to_minutes,
)


def test_generate_slots_excludes_end_hour():
    assert generate_slots("09:00", "09:30") == ["09:00"]
    assert generate_slots("09:00", "11:00") == ["09:00", "09:30", "10:00", "10:30"]


def test_default_window_has_24_ticks():
    slots = generate_slots("09:00", "21:00")
    assert len(slots) == 24
    assert slots[0] == "09:00"
    assert slots[-1] == "20:30"


def test_empty_window():
    assert generate_slots("10:00", "10:00") == []


def test_time_round_trip_is_zero_padded():
    assert time_to_minutes("09:30") == 570
    assert minutes_to_time(570) == "09:30"
    assert minutes_to_time(0) == "00:00"


@pytest.mark.parametrize("bad", ["9:30", "09:60", "0930", "", "ab:cd", "09:30:00"])
def test_time_to_minutes_rejects_malformed(bad):
    with pytest.raises(InvalidTimeFormat):
        time_to_minutes(bad)


def test_invalid_time_format_is_a_value_error():
    assert issubclass(InvalidTimeFormat, ValueError)


def test_grid_alignment():
    assert is_on_grid(600)
    assert is_on_grid(630)
    assert not is_on_grid(615)


def test_slot_span_rounds_up():
    assert [slot_span(d) for d in DURATION_CHOICES] == [1, 2, 3, 4]
    assert slot_span(45) == 2
    assert slot_span(0) == 1
