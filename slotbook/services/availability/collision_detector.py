# ===== slotbook/services/availability/collision_detector.py =====
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from slotbook.models.availability_slot import AvailabilitySlot, SlotStatus, BLOCKING_STATUSES


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap: back-to-back intervals do not collide."""
    return a_start < b_end and b_start < a_end


class CollisionDetector:
    """Finds existing slots of a worker that overlap a candidate window"""

    @staticmethod
    def find_collisions(
            db: Session,
            worker_id,
            start: datetime,
            end: datetime,
            blocking_statuses: Iterable[SlotStatus] = BLOCKING_STATUSES,
            exclude_slot_id=None,
            only_fixed: bool = False
    ) -> List[AvailabilitySlot]:
        """
        Slots of ``worker_id`` with a blocking status whose window overlaps [start, end).
        only_fixed restricts the search to manual or booked slots (what the generator must respect).
        """
        query = db.query(AvailabilitySlot).filter(
            AvailabilitySlot.worker_id == worker_id,
            AvailabilitySlot.status.in_(list(blocking_statuses)),
            AvailabilitySlot.end_time > start,
            AvailabilitySlot.start_time < end,
        )

        if exclude_slot_id is not None:
            query = query.filter(AvailabilitySlot.id != exclude_slot_id)

        if only_fixed:
            query = query.filter(or_(
                AvailabilitySlot.generating_schedule_id.is_(None),
                AvailabilitySlot.status == SlotStatus.BOOKED,
            ))

        return query.order_by(AvailabilitySlot.start_time).all()

    @staticmethod
    def has_collision(
            db: Session,
            worker_id,
            start: datetime,
            end: datetime,
            blocking_statuses: Iterable[SlotStatus] = BLOCKING_STATUSES,
            exclude_slot_id: Optional[object] = None,
            only_fixed: bool = False
    ) -> bool:
        return bool(CollisionDetector.find_collisions(
            db, worker_id, start, end,
            blocking_statuses=blocking_statuses,
            exclude_slot_id=exclude_slot_id,
            only_fixed=only_fixed,
        ))
