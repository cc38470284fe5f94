"""Materializing schedules into slots"""
from datetime import datetime, timedelta, time

import pytest

from slotbook.core.exceptions import NotFoundError, ValidationError
from slotbook.models import AvailabilitySlot, SlotStatus
from slotbook.services.availability.slot_generator import SlotGenerator, chunk_intervals

from conftest import MONDAY, add_slot, utc

TUESDAY = MONDAY + timedelta(days=1)


def generate(db, worker, day_from, day_to=None, **kwargs):
    day_to = day_to or day_from
    return SlotGenerator.generate_slots(
        db, worker.id, worker.business_profile_id,
        utc(day_from, 0), utc(day_to + timedelta(days=1), 0),
        **kwargs
    )


def slot_windows(db, worker, **filters):
    query = db.query(AvailabilitySlot).filter(AvailabilitySlot.worker_id == worker.id)
    for column, value in filters.items():
        query = query.filter(getattr(AvailabilitySlot, column) == value)
    return [(s.start_time, s.end_time) for s in query.order_by(AvailabilitySlot.start_time)]


def test_generation_splits_around_manual_unavailable_slot(db, worker, weekly_schedule):
    add_slot(db, worker, utc(TUESDAY, 10), utc(TUESDAY, 11), SlotStatus.UNAVAILABLE)

    result = generate(db, worker, TUESDAY)

    assert result.created == 2
    assert slot_windows(db, worker, generating_schedule_id=weekly_schedule.id) == [
        (utc(TUESDAY, 9), utc(TUESDAY, 10)),
        (utc(TUESDAY, 11), utc(TUESDAY, 17)),
    ]


def test_generated_slots_are_available_and_linked_to_schedule(db, worker, weekly_schedule):
    generate(db, worker, MONDAY)
    slots = db.query(AvailabilitySlot).all()
    assert len(slots) == 2
    assert all(s.status == SlotStatus.AVAILABLE for s in slots)
    assert all(s.generating_schedule_id == weekly_schedule.id for s in slots)
    assert all(s.business_profile_id == worker.business_profile_id for s in slots)


def test_second_run_changes_nothing(db, worker, weekly_schedule):
    first = generate(db, worker, MONDAY, MONDAY + timedelta(days=6), slot_duration_minutes=30)
    ids_before = {s.id for s in db.query(AvailabilitySlot).all()}

    second = generate(db, worker, MONDAY, MONDAY + timedelta(days=6), slot_duration_minutes=30)
    ids_after = {s.id for s in db.query(AvailabilitySlot).all()}

    assert first.created > 0
    assert (second.created, second.deleted, second.kept) == (0, 0, first.created)
    assert ids_before == ids_after


def test_fixed_slot_duration_drops_short_remainders(db, worker, weekly_schedule):
    result = generate(db, worker, MONDAY, slot_duration_minutes=45)

    windows = slot_windows(db, worker)
    assert result.created == 9
    assert windows[0] == (utc(MONDAY, 9), utc(MONDAY, 9, 45))
    assert windows[3] == (utc(MONDAY, 11, 15), utc(MONDAY, 12))
    assert windows[-1] == (utc(MONDAY, 16), utc(MONDAY, 16, 45))


def test_changing_slot_size_replaces_previous_output(db, worker, weekly_schedule):
    generate(db, worker, MONDAY, slot_duration_minutes=60)
    result = generate(db, worker, MONDAY, slot_duration_minutes=0)

    assert (result.created, result.deleted, result.kept) == (2, 7, 0)
    assert slot_windows(db, worker) == [
        (utc(MONDAY, 9), utc(MONDAY, 12)),
        (utc(MONDAY, 13), utc(MONDAY, 17)),
    ]


def test_no_overlapping_slots_after_generation(db, worker, weekly_schedule):
    add_slot(db, worker, utc(MONDAY, 9, 30), utc(MONDAY, 10, 15), SlotStatus.BREAK)
    add_slot(db, worker, utc(TUESDAY, 16), utc(TUESDAY, 18), SlotStatus.AVAILABLE)
    generate(db, worker, MONDAY, TUESDAY, slot_duration_minutes=30)

    windows = slot_windows(db, worker)
    for (_, earlier_end), (later_start, _) in zip(windows, windows[1:]):
        assert earlier_end <= later_start


def test_day_off_override_removes_stale_generated_slots(db, worker, weekly_schedule):
    generate(db, worker, MONDAY)
    weekly_schedule.add_override(MONDAY, "Holiday", False)
    db.commit()

    result = generate(db, worker, MONDAY)

    assert (result.created, result.deleted) == (0, 2)
    assert slot_windows(db, worker) == []


def test_booked_generated_slot_is_left_alone(db, worker, weekly_schedule):
    generate(db, worker, MONDAY)
    afternoon = db.query(AvailabilitySlot).filter(AvailabilitySlot.start_time == utc(MONDAY, 13)).one()
    afternoon.status = SlotStatus.BOOKED
    db.commit()

    weekly_schedule.add_override(MONDAY, "Holiday", False)
    db.commit()
    result = generate(db, worker, MONDAY)

    assert result.deleted == 1
    remaining = db.query(AvailabilitySlot).all()
    assert [(s.start_time, s.status) for s in remaining] == [(utc(MONDAY, 13), SlotStatus.BOOKED)]


def test_explicit_schedule_must_belong_to_worker(db, worker, weekly_schedule):
    import uuid
    with pytest.raises(NotFoundError):
        generate(db, worker, MONDAY, schedule_id=uuid.uuid4())


def test_worker_without_default_schedule(db, worker):
    with pytest.raises(NotFoundError):
        generate(db, worker, MONDAY)


def test_range_must_be_aware_ordered_and_bounded(db, worker, weekly_schedule):
    naive = datetime(2030, 1, 7, 0, 0)
    with pytest.raises(ValidationError):
        SlotGenerator.generate_slots(db, worker.id, worker.business_profile_id, naive, naive + timedelta(days=1))
    with pytest.raises(ValidationError):
        SlotGenerator.generate_slots(
            db, worker.id, worker.business_profile_id, utc(TUESDAY, 0), utc(MONDAY, 0)
        )
    with pytest.raises(ValidationError):
        SlotGenerator.generate_slots(
            db, worker.id, worker.business_profile_id, utc(MONDAY, 0), utc(MONDAY + timedelta(days=200), 0)
        )


def test_chunk_intervals_whole_when_no_size():
    window = [(utc(MONDAY, 9), utc(MONDAY, 10, 10))]
    assert chunk_intervals(window, None) == window
    assert chunk_intervals(window, 0) == window
    assert chunk_intervals(window, 30) == [
        (utc(MONDAY, 9), utc(MONDAY, 9, 30)),
        (utc(MONDAY, 9, 30), utc(MONDAY, 10)),
    ]


def test_local_time_zone_schedule_lands_on_utc(db, worker, business):
    from slotbook.models import Schedule

    schedule = Schedule.create(
        worker_id=worker.id,
        business_profile_id=business.id,
        title="New York",
        effective_start_date=MONDAY,
        time_zone_id="America/New_York",
        is_default=True,
    )
    schedule.add_rule_item(0, time(9), time(10))
    db.add(schedule)
    db.commit()

    generate(db, worker, MONDAY)

    # 09:00 EST is 14:00 UTC
    assert slot_windows(db, worker) == [(utc(MONDAY, 14), utc(MONDAY, 15))]
