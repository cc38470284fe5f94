"""Resolving schedules into working intervals (no database involved)"""
import uuid
from datetime import date, datetime, time, timedelta, timezone

from slotbook.models.schedule import Schedule
from slotbook.services.availability.availability_resolver import (
    WorkingInterval,
    resolve_availability,
    subtract_intervals,
    to_utc_intervals,
)

MONDAY = date(2030, 1, 7)


def schedule_with_monday(time_zone_id="UTC", **kwargs):
    schedule = Schedule.create(
        worker_id=uuid.uuid4(),
        business_profile_id=uuid.uuid4(),
        title="Week",
        effective_start_date=kwargs.pop("effective_start_date", date(2030, 1, 1)),
        time_zone_id=time_zone_id,
        **kwargs,
    )
    item = schedule.add_rule_item(0, time(9), time(17))
    schedule.add_break(item.id, "Lunch", time(12), time(13))
    return schedule


def test_monday_with_lunch_break_splits_in_two():
    schedule = schedule_with_monday()
    assert list(resolve_availability(schedule, MONDAY, MONDAY)) == [
        WorkingInterval(MONDAY, time(9), time(12)),
        WorkingInterval(MONDAY, time(13), time(17)),
    ]


def test_day_off_override_wins_over_weekly_rule():
    schedule = schedule_with_monday()
    schedule.add_override(MONDAY, "Holiday", False)
    assert list(resolve_availability(schedule, MONDAY, MONDAY)) == []


def test_working_override_replaces_hours_without_breaks():
    schedule = schedule_with_monday()
    schedule.add_override(MONDAY, "Half day", True, time(10), time(14))
    assert list(resolve_availability(schedule, MONDAY, MONDAY)) == [
        WorkingInterval(MONDAY, time(10), time(14)),
    ]


def test_days_without_rule_item_or_off_are_empty():
    schedule = schedule_with_monday()
    schedule.add_rule_item(1, None, None, is_working_day=False)
    tuesday, wednesday = MONDAY + timedelta(days=1), MONDAY + timedelta(days=2)
    assert list(resolve_availability(schedule, tuesday, wednesday)) == []


def test_dates_outside_effective_window_are_skipped():
    schedule = schedule_with_monday(effective_start_date=MONDAY + timedelta(days=7))
    intervals = list(resolve_availability(schedule, MONDAY, MONDAY + timedelta(days=7)))
    assert {i.date for i in intervals} == {MONDAY + timedelta(days=7)}


def test_total_duration_is_rule_minus_breaks():
    schedule = schedule_with_monday()
    item = schedule.rule_item_for_day(0)
    schedule.add_break(item.id, "Coffee", time(15), time(15, 15))
    resolved = resolve_availability(schedule, MONDAY, MONDAY)
    assert resolved.total_duration() == timedelta(hours=8) - timedelta(hours=1, minutes=15)


def test_intervals_never_overlap_and_are_ordered():
    schedule = schedule_with_monday()
    item = schedule.rule_item_for_day(0)
    schedule.add_break(item.id, "Coffee", time(10), time(10, 30))
    schedule.add_break(item.id, "Wrap-up", time(16, 30), time(17))
    intervals = list(resolve_availability(schedule, MONDAY, MONDAY))
    for earlier, later in zip(intervals, intervals[1:]):
        assert earlier.end_time <= later.start_time
    assert intervals[-1].end_time == time(16, 30)


def test_resolution_is_restartable():
    schedule = schedule_with_monday()
    resolved = resolve_availability(schedule, MONDAY, MONDAY + timedelta(days=13))
    assert list(resolved) == list(resolved)
    assert len(list(resolved)) == 4


def test_subtract_intervals_handles_edges_and_overlapping_cuts():
    base = [(1, 10)]
    assert subtract_intervals(base, [(0, 2), (4, 6), (5, 7), (9, 12)]) == [(2, 4), (7, 9)]
    assert subtract_intervals(base, []) == [(1, 10)]
    assert subtract_intervals(base, [(0, 20)]) == []
    assert subtract_intervals([(1, 3), (5, 8)], [(3, 5)]) == [(1, 3), (5, 8)]


def test_utc_conversion_follows_daylight_saving():
    schedule = schedule_with_monday("Europe/Berlin")
    before = MONDAY + timedelta(weeks=11)   # 2030-03-25, CET (+01:00)
    after = MONDAY + timedelta(weeks=12)    # 2030-04-01, CEST (+02:00)

    winter = to_utc_intervals(schedule, before, before)
    summer = to_utc_intervals(schedule, after, after)

    assert winter[0][0] == datetime(2030, 3, 25, 8, 0, tzinfo=timezone.utc)
    assert summer[0][0] == datetime(2030, 4, 1, 7, 0, tzinfo=timezone.utc)
    assert summer[-1][1] == datetime(2030, 4, 1, 15, 0, tzinfo=timezone.utc)


def test_utc_conversion_clips_to_window():
    schedule = schedule_with_monday()
    clipped = to_utc_intervals(
        schedule, MONDAY, MONDAY,
        clip_start=datetime(2030, 1, 7, 10, tzinfo=timezone.utc),
        clip_end=datetime(2030, 1, 7, 12, 30, tzinfo=timezone.utc),
    )
    assert clipped == [(datetime(2030, 1, 7, 10, tzinfo=timezone.utc), datetime(2030, 1, 7, 12, tzinfo=timezone.utc))]
