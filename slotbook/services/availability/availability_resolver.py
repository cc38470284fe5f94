# ===== slotbook/services/availability/availability_resolver.py =====
"""
Turns a schedule (weekly rule items, breaks, date overrides) into concrete
working intervals. Pure: reads the schedule object graph, never the database.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Iterator, List, Optional, Tuple

from slotbook.models.schedule import Schedule


@dataclass(frozen=True)
class WorkingInterval:
    """Civil-time working window on one local date of the schedule's zone."""
    date: date
    start_time: time
    end_time: time

    @property
    def duration(self) -> timedelta:
        return datetime.combine(self.date, self.end_time) - datetime.combine(self.date, self.start_time)


def subtract_intervals(intervals: Iterable[Tuple], cuts: Iterable[Tuple]) -> List[Tuple]:
    """
    Remove every cut from every base interval (half-open, start < end).
    Works on any ordered values: times of day or aware datetimes.
    """
    ordered_cuts = sorted((c for c in cuts if c[0] < c[1]), key=lambda c: c[0])
    result = []
    for start, end in sorted(intervals, key=lambda i: i[0]):
        cursor = start
        for cut_start, cut_end in ordered_cuts:
            if cut_end <= cursor or cut_start >= end:
                continue
            if cut_start > cursor:
                result.append((cursor, cut_start))
            cursor = max(cursor, cut_end)
            if cursor >= end:
                break
        if cursor < end:
            result.append((cursor, end))
    return result


def resolve_date(schedule: Schedule, day: date) -> List[WorkingInterval]:
    """Working intervals for one local date, ordered and non-overlapping."""
    if not schedule.covers_date(day):
        return []

    override = schedule.override_for_date(day)
    if override is not None:
        if not override.is_working_day:
            return []
        # Override windows are taken as-is: weekly breaks are not applied to them
        return [WorkingInterval(day, override.start_time, override.end_time)]

    item = schedule.rule_item_for_day(day.weekday())
    if item is None or not item.is_working_day:
        return []

    pieces = subtract_intervals(
        [(item.start_time, item.end_time)],
        [(b.start_time, b.end_time) for b in item.breaks],
    )
    return [WorkingInterval(day, start, end) for start, end in pieces]


class ResolvedAvailability:
    """
    Lazy view over a schedule's working intervals for an inclusive date range.
    Every iteration starts again from date_from.
    """

    def __init__(self, schedule: Schedule, date_from: date, date_to: date):
        self.schedule = schedule
        self.date_from = date_from
        self.date_to = date_to

    def __iter__(self) -> Iterator[WorkingInterval]:
        day = self.date_from
        while day <= self.date_to:
            yield from resolve_date(self.schedule, day)
            day += timedelta(days=1)

    def total_duration(self) -> timedelta:
        return sum((interval.duration for interval in self), timedelta())


def resolve_availability(schedule: Schedule, date_from: date, date_to: date) -> ResolvedAvailability:
    """Working intervals of ``schedule`` for every date in [date_from, date_to]."""
    return ResolvedAvailability(schedule, date_from, date_to)


def _to_utc(day: date, moment: time, zone) -> datetime:
    # fold=0: the earlier of two ambiguous instants, pre-transition offset inside a gap
    return datetime.combine(day, moment).replace(tzinfo=zone, fold=0).astimezone(timezone.utc)


def to_utc_intervals(
        schedule: Schedule,
        date_from: date,
        date_to: date,
        clip_start: Optional[datetime] = None,
        clip_end: Optional[datetime] = None
) -> List[Tuple[datetime, datetime]]:
    """
    Resolve the schedule and convert each civil interval to UTC instants in its
    time zone. Optional clip bounds trim the result to a UTC window.
    """
    zone = schedule.zone
    result = []
    for interval in resolve_availability(schedule, date_from, date_to):
        start = _to_utc(interval.date, interval.start_time, zone)
        end = _to_utc(interval.date, interval.end_time, zone)
        if clip_start is not None:
            start = max(start, clip_start)
        if clip_end is not None:
            end = min(end, clip_end)
        if start < end:
            result.append((start, end))
    return result


def local_dates_covering(schedule: Schedule, range_start: datetime, range_end: datetime) -> Tuple[date, date]:
    """Local calendar dates (in the schedule zone) that can touch a UTC window."""
    zone = schedule.zone
    first = range_start.astimezone(zone).date() - timedelta(days=1)
    last = range_end.astimezone(zone).date() + timedelta(days=1)
    return first, last
