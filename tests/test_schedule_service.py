import uuid
from datetime import date, time, timedelta

import pytest

from slotbook.core.exceptions import ConflictError, NotFoundError, ValidationError
from slotbook.models import AvailabilitySlot, BreakRule, Schedule
from slotbook.services.schedule.schedule_service import ScheduleService
from slotbook.tasks.availability_tasks import generate_for_worker, generation_window

from conftest import MONDAY, add_slot, utc

WEEKDAYS = [
    {
        "day_of_week": day,
        "start_time": time(9),
        "end_time": time(17),
        "breaks": [{"name": "Lunch", "start_time": time(12), "end_time": time(13)}] if day == 0 else [],
    }
    for day in range(5)
] + [{"day_of_week": 6, "is_working_day": False}]


def create(db, worker, **kwargs):
    params = dict(
        title="Standard Week",
        effective_start_date=date(2030, 1, 1),
        time_zone_id="Europe/Berlin",
        is_default=True,
        rule_items=WEEKDAYS,
    )
    params.update(kwargs)
    return ScheduleService.create_schedule(db, worker.id, worker.business_profile_id, **params)


def test_create_schedule_with_rule_items_and_breaks(db, worker, enqueued):
    schedule = create(db, worker)

    assert len(schedule.rule_items) == 6
    monday = schedule.rule_item_for_day(0)
    assert [b.name for b in monday.sorted_breaks()] == ["Lunch"]
    assert not schedule.rule_item_for_day(6).is_working_day
    assert enqueued == [worker.id]


def test_create_rejects_invalid_rule_items_without_writing(db, worker, enqueued):
    bad = [{"day_of_week": 0, "start_time": time(9), "end_time": time(17)},
           {"day_of_week": 0, "start_time": time(10), "end_time": time(12)}]
    with pytest.raises(ConflictError):
        create(db, worker, rule_items=bad)
    assert db.query(Schedule).count() == 0
    assert enqueued == []


def test_create_for_worker_of_other_business(db, worker):
    with pytest.raises(NotFoundError):
        ScheduleService.create_schedule(db, worker.id, uuid.uuid4(), "Week", date(2030, 1, 1), "UTC")


def test_only_one_default_schedule_per_worker(db, worker):
    first = create(db, worker)
    second = create(db, worker, title="Summer", effective_start_date=date(2030, 6, 1))

    db.expire_all()
    assert not db.get(Schedule, first.id).is_default
    assert db.get(Schedule, second.id).is_default

    ScheduleService.update_schedule_info(
        db, first.id, worker.business_profile_id, "Standard Week", date(2030, 1, 1), "Europe/Berlin",
        is_default=True,
    )
    db.expire_all()
    assert db.get(Schedule, first.id).is_default
    assert not db.get(Schedule, second.id).is_default


def test_listing_puts_default_first(db, worker):
    create(db, worker, is_default=False, title="Winter")
    default = create(db, worker, title="Main", effective_start_date=date(2030, 3, 1))
    listed = ScheduleService.list_worker_schedules(db, worker.id, worker.business_profile_id)
    assert [s.id for s in listed][0] == default.id


def test_mutations_queue_regeneration(db, worker, enqueued):
    schedule = create(db, worker, rule_items=[])
    business_id = worker.business_profile_id

    item = ScheduleService.add_rule_item(db, schedule.id, business_id, 2, time(8), time(16))
    lunch = ScheduleService.add_break(db, schedule.id, business_id, item.id, "Lunch", time(12), time(12, 30))
    ScheduleService.update_break(db, schedule.id, business_id, item.id, lunch.id, "Lunch", time(12), time(13))
    override = ScheduleService.add_override(db, schedule.id, business_id, date(2030, 12, 24), "Christmas Eve", True,
                                            time(9), time(12))
    ScheduleService.remove_override(db, schedule.id, business_id, override.id)

    assert len(enqueued) == 6
    assert set(enqueued) == {worker.id}


def test_failed_mutation_rolls_back_and_does_not_queue(db, worker, enqueued):
    schedule = create(db, worker)
    monday = schedule.rule_item_for_day(0)
    enqueued.clear()

    with pytest.raises(ConflictError):
        ScheduleService.add_break(
            db, schedule.id, worker.business_profile_id, monday.id, "Overlap", time(12, 30), time(13, 30)
        )

    assert enqueued == []
    db.expire_all()
    assert len(db.get(Schedule, schedule.id).rule_item_for_day(0).breaks) == 1


def test_removing_rule_item_removes_its_breaks(db, worker):
    schedule = create(db, worker)
    monday = schedule.rule_item_for_day(0)

    ScheduleService.remove_rule_item(db, schedule.id, worker.business_profile_id, monday.id)

    assert db.query(BreakRule).count() == 0
    assert db.get(Schedule, schedule.id).rule_item_for_day(0) is None


def test_schedule_of_other_business_is_invisible(db, worker):
    schedule = create(db, worker)
    with pytest.raises(NotFoundError):
        ScheduleService.get_schedule(db, schedule.id, uuid.uuid4())
    with pytest.raises(NotFoundError):
        ScheduleService.add_override(db, schedule.id, uuid.uuid4(), date(2030, 5, 1), "Holiday", False)


def test_delete_schedule_keeps_its_slots_as_manual(db, worker, weekly_schedule):
    slot = add_slot(db, worker, utc(MONDAY, 9), utc(MONDAY, 12), schedule=weekly_schedule)

    ScheduleService.delete_schedule(db, weekly_schedule.id, worker.business_profile_id)

    db.expire_all()
    assert db.query(Schedule).count() == 0
    assert db.get(AvailabilitySlot, slot.id).generating_schedule_id is None


def test_get_availability_lists_civil_intervals(db, worker):
    schedule = create(db, worker)
    schedule_id = schedule.id
    ScheduleService.add_override(db, schedule_id, worker.business_profile_id, MONDAY + timedelta(days=1),
                                 "Dentist", True, time(13), time(17))

    view = ScheduleService.get_availability(
        db, schedule_id, worker.business_profile_id, MONDAY, MONDAY + timedelta(days=1)
    )

    assert view["time_zone_id"] == "Europe/Berlin"
    assert view["intervals"] == [
        {"date": "2030-01-07", "start_time": "09:00", "end_time": "12:00"},
        {"date": "2030-01-07", "start_time": "13:00", "end_time": "17:00"},
        {"date": "2030-01-08", "start_time": "13:00", "end_time": "17:00"},
    ]


def test_get_availability_validates_range(db, worker):
    schedule = create(db, worker)
    with pytest.raises(ValidationError):
        ScheduleService.get_availability(db, schedule.id, worker.business_profile_id, MONDAY, MONDAY - timedelta(days=1))
    with pytest.raises(ValidationError):
        ScheduleService.get_availability(
            db, schedule.id, worker.business_profile_id, MONDAY, MONDAY + timedelta(days=400)
        )


# ============================================================================
# Background generation helper
# ============================================================================

def test_generation_window_from_iso_dates():
    start, end = generation_window("2030-01-07", "2030-01-08")
    assert (start, end) == (utc(MONDAY, 0), utc(MONDAY + timedelta(days=2), 0))


def test_generate_for_worker_uses_default_schedule(db, worker, weekly_schedule):
    outcome = generate_for_worker(db, str(worker.id), "2030-01-07", "2030-01-07")
    assert outcome["status"] == "success"
    assert outcome["created"] == 2
    assert db.query(AvailabilitySlot).count() == 2


def test_generate_for_worker_skips_when_nothing_to_do(db, worker):
    assert generate_for_worker(db, str(worker.id), "2030-01-07", "2030-01-07")["reason"] == "no_default_schedule"
    assert generate_for_worker(db, str(uuid.uuid4()))["status"] == "skipped"


def test_time_zone_falls_back_to_business(db, worker, business):
    business.timezone = "America/Chicago"
    db.commit()
    schedule = ScheduleService.create_schedule(
        db, worker.id, business.id, "Week", date(2030, 1, 1), is_default=False
    )
    assert schedule.time_zone_id == "America/Chicago"
