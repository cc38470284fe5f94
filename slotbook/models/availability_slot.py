# slotbook/models/availability_slot.py
from sqlalchemy import Column, ForeignKey, Index, CheckConstraint, Enum as SQLAEnum
from sqlalchemy.dialects.postgresql import UUID
import enum
import uuid
from slotbook.models.base import Base, UTCDateTime, utcnow


class SlotStatus(str, enum.Enum):
    AVAILABLE = "available"
    PENDING = "pending"
    BOOKED = "booked"
    UNAVAILABLE = "unavailable"
    BREAK = "break"


# Every status occupies the worker's time for collision purposes
BLOCKING_STATUSES = (
    SlotStatus.AVAILABLE,
    SlotStatus.PENDING,
    SlotStatus.BOOKED,
    SlotStatus.UNAVAILABLE,
    SlotStatus.BREAK,
)


class AvailabilitySlot(Base):
    """
    A concrete bookable (or blocked) UTC time window for one worker.

    generating_schedule_id set   -> produced by the slot generator, may be replaced on regeneration
    generating_schedule_id NULL  -> manual or booking-derived, never touched by the generator
    """
    __tablename__ = "availability_slots"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_availability_slots_interval"),
        Index("ix_availability_slots_worker_window", "worker_id", "start_time", "end_time"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    worker_id = Column(
        UUID(as_uuid=True),
        ForeignKey("workers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    business_profile_id = Column(
        UUID(as_uuid=True),
        ForeignKey("business_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)

    status = Column(
        SQLAEnum(SlotStatus, name="slot_status", values_callable=lambda obj: [e.value for e in obj]),
        default=SlotStatus.AVAILABLE,
        nullable=False,
        index=True
    )

    # Plain id reference; the booking row points back through availability_slot_id
    booking_id = Column(UUID(as_uuid=True), nullable=True, index=True)

    generating_schedule_id = Column(
        UUID(as_uuid=True),
        ForeignKey("schedules.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    @property
    def is_generated(self) -> bool:
        return self.generating_schedule_id is not None

    @property
    def is_fixed(self) -> bool:
        """Manual or booked slots; the generator works around these."""
        return self.generating_schedule_id is None or self.status == SlotStatus.BOOKED

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)

    def release(self):
        self.status = SlotStatus.AVAILABLE
        self.booking_id = None

    def __repr__(self):
        return f"<AvailabilitySlot(id={self.id}, {self.start_time} - {self.end_time}, {self.status})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "worker_id": str(self.worker_id),
            "business_profile_id": str(self.business_profile_id),
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "status": self.status.value if self.status else None,
            "booking_id": str(self.booking_id) if self.booking_id else None,
            "generating_schedule_id": str(self.generating_schedule_id) if self.generating_schedule_id else None,
        }
