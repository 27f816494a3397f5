import random
from datetime import date, datetime, timedelta

import pytest

from salon.core.exceptions import NotFound
from salon.models.db_models import Appointment, AppointmentStatus, Client
from salon.services.availability_service import (
    DEFAULT_DURATION_MINUTES,
    SLOT_GRANULARITY_MINUTES,
    generate_slots,
    has_conflict,
    intervals_overlap,
)
from salon.services.opening_hours_service import get_hours_for

MONDAY = date(2024, 1, 1)
SUNDAY = date(2023, 12, 31)

ALL_HALF_HOURS = [f"{h:02d}:{m:02d}" for h in range(9, 17) for m in (0, 30)]


def at(day, hhmm):
    return datetime.combine(day, datetime.strptime(hhmm, "%H:%M").time())


def book(db, employee_id, treatment_id, start, minutes):
    client = db.query(Client).filter(Client.email == "busy@example.com").first()
    if client is None:
        client = Client(name="Busy", email="busy@example.com")
        db.add(client)
        db.flush()
    db.add(Appointment(
        start_time=start,
        finish_time=start + timedelta(minutes=minutes),
        employee_id=employee_id,
        client_id=client.id,
        treatment_id=treatment_id,
        status=AppointmentStatus.CONFIRMED,
    ))
    db.commit()


def test_intervals_overlap_law_random_pairs():
    rng = random.Random(20240101)
    base = datetime(2024, 1, 1, 9, 0)
    for _ in range(2000):
        a_start = base + timedelta(minutes=rng.randrange(0, 480, 5))
        a_end = a_start + timedelta(minutes=rng.randrange(5, 180, 5))
        b_start = base + timedelta(minutes=rng.randrange(0, 480, 5))
        b_end = b_start + timedelta(minutes=rng.randrange(5, 180, 5))

        expected = a_start < b_end and a_end > b_start
        assert intervals_overlap(a_start, a_end, b_start, b_end) is expected
        # symmetric
        assert intervals_overlap(b_start, b_end, a_start, a_end) is expected


def test_touching_intervals_do_not_overlap():
    ten, half_ten, eleven = datetime(2024, 1, 1, 10), datetime(2024, 1, 1, 10, 30), datetime(2024, 1, 1, 11)
    assert not intervals_overlap(ten, half_ten, half_ten, eleven)
    assert not intervals_overlap(half_ten, eleven, ten, half_ten)


def test_nested_intervals_overlap():
    outer = (datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 12))
    inner = (datetime(2024, 1, 1, 10), datetime(2024, 1, 1, 10, 15))
    assert intervals_overlap(*outer, *inner)
    assert intervals_overlap(*inner, *outer)
    assert intervals_overlap(*outer, *outer)


def test_full_day_of_half_hour_slots(db, salon):
    slots = generate_slots(db, MONDAY, salon["anna"], salon["haircut"])
    assert slots == ALL_HALF_HOURS
    assert len(slots) == 16
    assert slots[0] == "09:00" and slots[-1] == "16:30"


def test_existing_appointment_only_blocks_its_employee(db, salon):
    book(db, salon["anna"], salon["haircut"], at(MONDAY, "10:00"), 30)

    anna = generate_slots(db, MONDAY, salon["anna"], salon["haircut"])
    bram = generate_slots(db, MONDAY, salon["bram"], salon["haircut"])

    assert "10:00" not in anna
    assert "09:30" in anna and "10:30" in anna
    assert len(anna) == 15
    assert bram == ALL_HALF_HOURS


def test_adjacent_candidate_is_not_a_conflict(db, salon):
    book(db, salon["anna"], salon["haircut"], at(MONDAY, "10:00"), 30)

    assert has_conflict(db, salon["anna"], MONDAY, at(MONDAY, "09:00"), 60) is False
    assert has_conflict(db, salon["anna"], MONDAY, at(MONDAY, "09:30"), 60) is True
    assert has_conflict(db, salon["anna"], MONDAY, at(MONDAY, "09:45"), 60) is True
    assert has_conflict(db, salon["anna"], MONDAY, at(MONDAY, "10:30"), 60) is False
    assert has_conflict(db, salon["bram"], MONDAY, at(MONDAY, "09:45"), 60) is False


def test_long_treatment_skips_overlapping_grid_points(db, salon):
    book(db, salon["anna"], salon["haircut"], at(MONDAY, "10:00"), 30)

    slots = generate_slots(db, MONDAY, salon["anna"], salon["colour"])

    assert "09:30" not in slots  # 09:30-10:30 overlaps 10:00-10:30
    assert "10:00" not in slots
    assert "09:00" in slots and "10:30" in slots
    assert slots[-1] == "16:00"


def test_appointment_on_other_day_does_not_block(db, salon):
    book(db, salon["anna"], salon["haircut"], at(MONDAY + timedelta(days=1), "10:00"), 30)
    assert generate_slots(db, MONDAY, salon["anna"], salon["haircut"]) == ALL_HALF_HOURS


def test_closed_day_has_no_slots_even_without_bookings(db, salon):
    assert get_hours_for(db, SUNDAY) is None
    assert generate_slots(db, SUNDAY, salon["anna"], salon["haircut"]) == []


def test_missing_opening_hours_row_counts_as_closed(db, salon):
    from salon.models.db_models import OpeningHour

    db.query(OpeningHour).filter(OpeningHour.day == "monday").delete()
    db.commit()

    assert get_hours_for(db, MONDAY) is None
    assert generate_slots(db, MONDAY, salon["anna"], salon["haircut"]) == []


def test_slots_stay_inside_opening_hours(db, salon):
    hours = get_hours_for(db, MONDAY)
    opens, closes = hours.bounds(MONDAY)
    for treatment in ("haircut", "colour", "legacy"):
        duration = 60 if treatment == "colour" else 30
        for slot in generate_slots(db, MONDAY, salon["anna"], salon[treatment]):
            start = at(MONDAY, slot)
            assert opens <= start
            assert start + timedelta(minutes=duration) <= closes
            assert start.minute % SLOT_GRANULARITY_MINUTES == 0


def test_treatment_without_duration_uses_default(db, salon):
    slots = generate_slots(db, MONDAY, salon["anna"], salon["legacy"])
    assert DEFAULT_DURATION_MINUTES == 30
    assert slots == ALL_HALF_HOURS


def test_treatment_longer_than_the_day_has_no_slots(db, salon):
    from salon.models.db_models import Treatment

    marathon = db.get(Treatment, salon["colour"])
    marathon.duration_in_minutes = 9 * 60
    db.commit()

    assert generate_slots(db, MONDAY, salon["anna"], salon["colour"]) == []


def test_unknown_treatment_or_employee(db, salon):
    with pytest.raises(NotFound):
        generate_slots(db, MONDAY, salon["anna"], 9999)
    with pytest.raises(NotFound):
        generate_slots(db, MONDAY, 9999, salon["haircut"])


def test_employee_without_treatment_gets_no_slots(db, salon):
    # Bram does not do colouring
    assert generate_slots(db, MONDAY, salon["bram"], salon["colour"]) == []
    assert generate_slots(db, MONDAY, salon["bram"], salon["haircut"]) == ALL_HALF_HOURS
