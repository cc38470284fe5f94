# ===== slotbook/services/availability/slot_generator.py =====
"""
Materializes a schedule into AvailabilitySlot rows for a UTC window.

Generation is a diff, not a rebuild: generated slots that already match the
target set keep their ids, the rest are deleted or inserted. Manual and booked
slots are never touched; target intervals are split around them.
"""
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple
import logging
import uuid

from sqlalchemy.orm import Session

from slotbook.config.settings import get_settings
from slotbook.core.exceptions import NotFoundError, ValidationError
from slotbook.models.availability_slot import AvailabilitySlot, SlotStatus
from slotbook.models.schedule import Schedule
from slotbook.models.worker import Worker
from slotbook.services.availability.availability_resolver import (
    local_dates_covering,
    subtract_intervals,
    to_utc_intervals,
)
from slotbook.services.availability.collision_detector import CollisionDetector

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    schedule_id: uuid.UUID
    created: int = 0
    deleted: int = 0
    kept: int = 0

    def to_dict(self):
        data = asdict(self)
        data["schedule_id"] = str(self.schedule_id)
        return data


def chunk_intervals(
        intervals: List[Tuple[datetime, datetime]],
        slot_duration_minutes: Optional[int]
) -> List[Tuple[datetime, datetime]]:
    """Split intervals into fixed-size slots; 0/None keeps each interval whole. Short remainders are dropped."""
    if not slot_duration_minutes:
        return list(intervals)

    step = timedelta(minutes=slot_duration_minutes)
    chunks = []
    for start, end in intervals:
        cursor = start
        while cursor + step <= end:
            chunks.append((cursor, cursor + step))
            cursor += step
    return chunks


def _require_aware(value: datetime, field: str) -> datetime:
    if value is None:
        raise ValidationError(f"{field} is required.")
    if value.tzinfo is None:
        raise ValidationError(f"{field} must be timezone-aware.")
    return value.astimezone(timezone.utc)


class SlotGenerator:
    """Service for turning schedules into availability slots"""

    @staticmethod
    def default_range(days: Optional[int] = None) -> Tuple[datetime, datetime]:
        """Today (UTC midnight) through the configured generation horizon."""
        settings = get_settings()
        start = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
        return start, start + timedelta(days=days or settings.GENERATION_HORIZON_DAYS)

    @staticmethod
    def _pick_schedule(db: Session, worker: Worker, schedule_id=None) -> Schedule:
        if schedule_id is not None:
            schedule = db.query(Schedule).filter(
                Schedule.id == schedule_id,
                Schedule.worker_id == worker.id
            ).first()
            if not schedule:
                raise NotFoundError(f"Schedule {schedule_id} not found for worker {worker.id}.")
            return schedule

        schedule = db.query(Schedule).filter(
            Schedule.worker_id == worker.id,
            Schedule.is_default.is_(True)
        ).first()
        if not schedule:
            raise NotFoundError(f"Worker {worker.id} has no default schedule.")
        return schedule

    @staticmethod
    def generate_slots(
            db: Session,
            worker_id,
            business_profile_id,
            range_start_utc: datetime,
            range_end_utc: datetime,
            schedule_id=None,
            slot_duration_minutes: Optional[int] = None
    ) -> GenerationResult:
        """
        Bring the worker's generated slots in [range_start_utc, range_end_utc) in line
        with the schedule. Idempotent: a second run with the same inputs changes nothing.
        """
        settings = get_settings()
        range_start = _require_aware(range_start_utc, "Range start")
        range_end = _require_aware(range_end_utc, "Range end")
        if range_start >= range_end:
            raise ValidationError("Range start must be before range end.")
        if range_end - range_start > timedelta(days=settings.MAX_GENERATION_RANGE_DAYS):
            raise ValidationError(
                f"Generation range cannot exceed {settings.MAX_GENERATION_RANGE_DAYS} days."
            )
        if slot_duration_minutes is None:
            slot_duration_minutes = settings.SLOT_DURATION_MINUTES
        if slot_duration_minutes < 0:
            raise ValidationError("Slot duration cannot be negative.")

        try:
            # Serializes generation and booking per worker on backends with row locks
            worker = db.query(Worker).filter(Worker.id == worker_id).with_for_update().first()
            if not worker or worker.business_profile_id != business_profile_id:
                raise NotFoundError(f"Worker {worker_id} not found.")

            schedule = SlotGenerator._pick_schedule(db, worker, schedule_id)

            # Unbooked generated slots touching the range are the previous output
            stale = db.query(AvailabilitySlot).filter(
                AvailabilitySlot.worker_id == worker.id,
                AvailabilitySlot.generating_schedule_id.isnot(None),
                AvailabilitySlot.status != SlotStatus.BOOKED,
                AvailabilitySlot.end_time > range_start,
                AvailabilitySlot.start_time < range_end,
            ).all()

            # Widen to whole stale slots so none is cut in half at the edges
            window_start = min([range_start] + [s.start_time for s in stale])
            window_end = max([range_end] + [s.end_time for s in stale])

            fixed = CollisionDetector.find_collisions(
                db, worker.id, window_start, window_end, only_fixed=True
            )

            date_from, date_to = local_dates_covering(schedule, window_start, window_end)
            working = to_utc_intervals(
                schedule, date_from, date_to, clip_start=window_start, clip_end=window_end
            )
            free = subtract_intervals(working, [(s.start_time, s.end_time) for s in fixed])
            targets = chunk_intervals(free, slot_duration_minutes)
            target_keys = {(start, end, schedule.id) for start, end in targets}

            result = GenerationResult(schedule_id=schedule.id)
            matched = set()
            for slot in stale:
                key = (slot.start_time, slot.end_time, slot.generating_schedule_id)
                if key in target_keys and key not in matched:
                    matched.add(key)
                    result.kept += 1
                else:
                    db.delete(slot)
                    result.deleted += 1

            for start, end in targets:
                if (start, end, schedule.id) in matched:
                    continue
                db.add(AvailabilitySlot(
                    id=uuid.uuid4(),
                    worker_id=worker.id,
                    business_profile_id=worker.business_profile_id,
                    start_time=start,
                    end_time=end,
                    status=SlotStatus.AVAILABLE,
                    generating_schedule_id=schedule.id,
                ))
                result.created += 1

            db.commit()

            logger.info(
                f"Generated slots for worker {worker.id} from schedule {schedule.id} "
                f"[{range_start.isoformat()} - {range_end.isoformat()}]: "
                f"created={result.created} deleted={result.deleted} kept={result.kept}"
            )
            return result

        except Exception as e:
            db.rollback()
            logger.error(f"Slot generation failed for worker {worker_id}: {e}", exc_info=True)
            raise
