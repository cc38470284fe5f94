# slotbook/models/booking.py
from sqlalchemy import Column, Text, Numeric, ForeignKey, Enum as SQLAEnum
from sqlalchemy.dialects.postgresql import UUID
import enum
import uuid
from slotbook.core.exceptions import InvalidOperationError, ValidationError
from slotbook.models.base import Base, UTCDateTime, utcnow


class BookingStatus(str, enum.Enum):
    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"
    CANCELLED_BY_CUSTOMER = "cancelled_by_customer"
    CANCELLED_BY_VENDOR = "cancelled_by_vendor"
    COMPLETED = "completed"
    NO_SHOW = "no_show"
    RESCHEDULED = "rescheduled"


ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING_CONFIRMATION: {
        BookingStatus.CONFIRMED,
        BookingStatus.CANCELLED_BY_CUSTOMER,
        BookingStatus.CANCELLED_BY_VENDOR,
    },
    BookingStatus.CONFIRMED: {
        BookingStatus.COMPLETED,
        BookingStatus.NO_SHOW,
        BookingStatus.CANCELLED_BY_CUSTOMER,
        BookingStatus.CANCELLED_BY_VENDOR,
        BookingStatus.RESCHEDULED,
    },
}

TERMINAL_STATUSES = frozenset(status for status in BookingStatus if status not in ALLOWED_TRANSITIONS)


class Booking(Base):
    """
    A customer's reservation of one availability slot for one service.
    Start/end and price are snapshots taken when the booking is made.
    """
    __tablename__ = "bookings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # References (id-only, joined explicitly by the query service)
    business_profile_id = Column(
        UUID(as_uuid=True), ForeignKey("business_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    customer_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id"), nullable=False, index=True)
    worker_id = Column(UUID(as_uuid=True), ForeignKey("workers.id"), nullable=False, index=True)
    availability_slot_id = Column(
        UUID(as_uuid=True), ForeignKey("availability_slots.id", ondelete="SET NULL"), nullable=True, index=True
    )

    booking_start_time = Column(UTCDateTime, nullable=False)
    booking_end_time = Column(UTCDateTime, nullable=False)

    status = Column(
        SQLAEnum(BookingStatus, name="booking_status", values_callable=lambda obj: [e.value for e in obj]),
        default=BookingStatus.PENDING_CONFIRMATION,
        nullable=False,
        index=True
    )

    notes_by_customer = Column(Text, nullable=True)
    notes_by_vendor = Column(Text, nullable=True)
    price_at_booking = Column(Numeric(10, 2), nullable=False)
    cancellation_reason = Column(Text, nullable=True)
    rescheduled_to_booking_id = Column(UUID(as_uuid=True), nullable=True)

    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def _transition(self, target: BookingStatus):
        if target not in ALLOWED_TRANSITIONS.get(self.status, set()):
            raise InvalidOperationError(
                f"Booking {self.id} cannot move from {self.status.value} to {target.value}."
            )
        self.status = target
        self.updated_at = utcnow()

    def confirm(self):
        self._transition(BookingStatus.CONFIRMED)

    def mark_completed(self):
        if self.status != BookingStatus.CONFIRMED:
            raise InvalidOperationError("Only confirmed bookings can be marked as completed.")
        self._transition(BookingStatus.COMPLETED)

    def mark_no_show(self):
        if self.status != BookingStatus.CONFIRMED:
            raise InvalidOperationError("Only confirmed bookings can be marked as no-show.")
        self._transition(BookingStatus.NO_SHOW)

    def cancel(self, reason: str, by_customer: bool):
        if not reason or not reason.strip():
            raise ValidationError("Cancellation reason is required.")
        target = BookingStatus.CANCELLED_BY_CUSTOMER if by_customer else BookingStatus.CANCELLED_BY_VENDOR
        self._transition(target)
        self.cancellation_reason = reason.strip()

    def mark_rescheduled(self, new_booking_id):
        self._transition(BookingStatus.RESCHEDULED)
        self.rescheduled_to_booking_id = new_booking_id

    def update_vendor_notes(self, notes):
        if self.is_terminal:
            raise InvalidOperationError(f"Booking {self.id} is {self.status.value} and can no longer be changed.")
        self.notes_by_vendor = notes
        self.updated_at = utcnow()

    def __repr__(self):
        return f"<Booking(id={self.id}, status={self.status}, slot={self.availability_slot_id})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "business_profile_id": str(self.business_profile_id),
            "customer_id": str(self.customer_id),
            "service_id": str(self.service_id),
            "worker_id": str(self.worker_id),
            "availability_slot_id": str(self.availability_slot_id) if self.availability_slot_id else None,
            "booking_start_time": self.booking_start_time.isoformat(),
            "booking_end_time": self.booking_end_time.isoformat(),
            "status": self.status.value,
            "notes_by_customer": self.notes_by_customer,
            "notes_by_vendor": self.notes_by_vendor,
            "price_at_booking": float(self.price_at_booking) if self.price_at_booking is not None else None,
            "cancellation_reason": self.cancellation_reason,
            "rescheduled_to_booking_id": (
                str(self.rescheduled_to_booking_id) if self.rescheduled_to_booking_id else None
            ),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
