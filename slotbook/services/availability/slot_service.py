# ===== slotbook/services/availability/slot_service.py =====
from datetime import datetime, timedelta, timezone
from typing import List, Optional
import logging
import uuid

from sqlalchemy.orm import Session

from slotbook.config.settings import get_settings
from slotbook.core.exceptions import ConflictError, InvalidOperationError, NotFoundError, ValidationError
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


def _utc(value: datetime, field: str) -> datetime:
    if value.tzinfo is None:
        raise ValidationError(f"{field} must be timezone-aware.")
    return value.astimezone(timezone.utc)


class SlotService:
    """Manual slot management and the slot side of booking transitions"""

    @staticmethod
    def get_slot(db: Session, slot_id, business_profile_id=None) -> AvailabilitySlot:
        query = db.query(AvailabilitySlot).filter(AvailabilitySlot.id == slot_id)
        if business_profile_id is not None:
            query = query.filter(AvailabilitySlot.business_profile_id == business_profile_id)
        slot = query.first()
        if not slot:
            raise NotFoundError(f"Availability slot {slot_id} not found.")
        return slot

    @staticmethod
    def list_slots(
            db: Session,
            worker_id,
            start: datetime,
            end: datetime,
            status: Optional[SlotStatus] = None,
            business_profile_id=None
    ) -> List[AvailabilitySlot]:
        """Slots of a worker overlapping [start, end), ordered by start time"""
        start = _utc(start, "Start")
        end = _utc(end, "End")
        if start >= end:
            raise ValidationError("Start must be before end.")

        query = db.query(AvailabilitySlot).filter(
            AvailabilitySlot.worker_id == worker_id,
            AvailabilitySlot.end_time > start,
            AvailabilitySlot.start_time < end,
        )
        if business_profile_id is not None:
            query = query.filter(AvailabilitySlot.business_profile_id == business_profile_id)
        if status is not None:
            query = query.filter(AvailabilitySlot.status == status)
        return query.order_by(AvailabilitySlot.start_time).all()

    @staticmethod
    def list_bookable_slots(db: Session, worker_id, start: datetime, end: datetime) -> List[AvailabilitySlot]:
        """Available slots of an active worker, as shown to customers"""
        max_days = get_settings().MAX_GENERATION_RANGE_DAYS
        if _utc(end, "End") - _utc(start, "Start") > timedelta(days=max_days):
            raise ValidationError(f"Listing window cannot exceed {max_days} days.")

        worker = db.query(Worker).filter(Worker.id == worker_id, Worker.is_active.is_(True)).first()
        if not worker:
            raise NotFoundError(f"Worker {worker_id} not found.")
        return SlotService.list_slots(db, worker.id, start, end, status=SlotStatus.AVAILABLE)

    @staticmethod
    def create_manual_slot(
            db: Session,
            worker_id,
            business_profile_id,
            start_time: datetime,
            end_time: datetime,
            status: SlotStatus = SlotStatus.AVAILABLE
    ) -> AvailabilitySlot:
        if status == SlotStatus.BOOKED:
            raise ValidationError("Slots become booked only through a booking.")
        start_time = _utc(start_time, "Start time")
        end_time = _utc(end_time, "End time")
        if start_time >= end_time:
            raise ValidationError("Slot start time must be before end time.")

        worker = db.query(Worker).filter(
            Worker.id == worker_id,
            Worker.business_profile_id == business_profile_id
        ).with_for_update().first()
        if not worker:
            raise NotFoundError(f"Worker {worker_id} not found.")

        collisions = CollisionDetector.find_collisions(db, worker.id, start_time, end_time, only_fixed=True)
        if collisions:
            raise ConflictError(
                f"Slot overlaps {len(collisions)} existing slot(s), first at {collisions[0].start_time.isoformat()}."
            )

        slot = AvailabilitySlot(
            id=uuid.uuid4(),
            worker_id=worker.id,
            business_profile_id=business_profile_id,
            start_time=start_time,
            end_time=end_time,
            status=status,
            generating_schedule_id=None,
        )
        try:
            # Unbooked generated slots give way: keep only their parts outside the new slot
            displaced = CollisionDetector.find_collisions(db, worker.id, start_time, end_time)
            for generated in displaced:
                for piece_start, piece_end in subtract_intervals(
                        [(generated.start_time, generated.end_time)], [(start_time, end_time)]
                ):
                    db.add(AvailabilitySlot(
                        id=uuid.uuid4(),
                        worker_id=generated.worker_id,
                        business_profile_id=generated.business_profile_id,
                        start_time=piece_start,
                        end_time=piece_end,
                        status=generated.status,
                        generating_schedule_id=generated.generating_schedule_id,
                    ))
                db.delete(generated)

            db.add(slot)
            db.commit()
            db.refresh(slot)
        except Exception:
            db.rollback()
            raise

        logger.info(
            f"Created manual {status.value} slot {slot.id} for worker {worker.id}; "
            f"split {len(displaced)} generated slot(s)"
        )
        return slot

    @staticmethod
    def update_slot(
            db: Session,
            slot_id,
            business_profile_id,
            start_time: Optional[datetime] = None,
            end_time: Optional[datetime] = None,
            status: Optional[SlotStatus] = None
    ) -> AvailabilitySlot:
        slot = SlotService.get_slot(db, slot_id, business_profile_id)
        if slot.status == SlotStatus.BOOKED:
            raise InvalidOperationError("Booked slots cannot be changed directly; change the booking instead.")
        if status == SlotStatus.BOOKED:
            raise InvalidOperationError("Slots become booked only through a booking.")

        new_start = _utc(start_time, "Start time") if start_time is not None else slot.start_time
        new_end = _utc(end_time, "End time") if end_time is not None else slot.end_time
        if new_start >= new_end:
            raise ValidationError("Slot start time must be before end time.")

        if (new_start, new_end) != (slot.start_time, slot.end_time):
            if CollisionDetector.has_collision(db, slot.worker_id, new_start, new_end, exclude_slot_id=slot.id):
                raise ConflictError("Updated slot would overlap an existing slot.")

        slot.start_time = new_start
        slot.end_time = new_end
        if status is not None:
            slot.status = status
        # Edited by hand: the generator must leave it alone from now on
        slot.generating_schedule_id = None

        try:
            db.commit()
            db.refresh(slot)
        except Exception:
            db.rollback()
            raise

        logger.info(f"Updated slot {slot.id}: {slot.start_time.isoformat()} - {slot.end_time.isoformat()} {slot.status.value}")
        return slot

    @staticmethod
    def delete_slot(db: Session, slot_id, business_profile_id) -> None:
        slot = SlotService.get_slot(db, slot_id, business_profile_id)
        if slot.status == SlotStatus.BOOKED:
            raise InvalidOperationError("booked slots cannot be deleted directly")

        try:
            db.delete(slot)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"Deleted slot {slot_id}")

    @staticmethod
    def still_scheduled(db: Session, slot: AvailabilitySlot) -> bool:
        """Whether the slot's generating schedule still resolves a working interval containing it."""
        if slot.generating_schedule_id is None:
            return True
        schedule = db.query(Schedule).filter(Schedule.id == slot.generating_schedule_id).first()
        if not schedule:
            return False

        date_from, date_to = local_dates_covering(schedule, slot.start_time, slot.end_time)
        for start, end in to_utc_intervals(schedule, date_from, date_to):
            if start <= slot.start_time and slot.end_time <= end:
                return True
        return False

    @staticmethod
    def release_or_remove(db: Session, slot: AvailabilitySlot) -> bool:
        """
        Free a slot after its booking ended early. Generated slots the schedule no
        longer covers are deleted instead. Does not commit. Returns True if released.
        """
        if SlotService.still_scheduled(db, slot):
            slot.release()
            logger.info(f"Released slot {slot.id}")
            return True

        db.delete(slot)
        logger.info(f"Removed slot {slot.id}: no longer covered by schedule {slot.generating_schedule_id}")
        return False
