# ============================================================================
# slotbook/services/booking/booking_service.py
# Booking lifecycle: every transition moves the booking and its slot together
# inside one transaction.
# ============================================================================
from typing import Optional
from uuid import uuid4
import logging

from sqlalchemy.orm import Session

from slotbook.config.settings import get_settings
from slotbook.core.exceptions import ConflictError, InvalidOperationError, NotFoundError, ValidationError
from slotbook.models.availability_slot import AvailabilitySlot, SlotStatus
from slotbook.models.base import utcnow
from slotbook.models.booking import Booking, BookingStatus
from slotbook.models.service import Service
from slotbook.models.user import User
from slotbook.models.worker import Worker
from slotbook.services.availability.slot_service import SlotService

logger = logging.getLogger(__name__)


class BookingService:
    """Handles booking creation and state transitions"""

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _get_booking(db: Session, booking_id, business_profile_id=None, customer_id=None) -> Booking:
        query = db.query(Booking).filter(Booking.id == booking_id)
        if business_profile_id is not None:
            query = query.filter(Booking.business_profile_id == business_profile_id)
        if customer_id is not None:
            query = query.filter(Booking.customer_id == customer_id)
        booking = query.first()
        if not booking:
            raise NotFoundError(f"Booking {booking_id} not found.")
        return booking

    @staticmethod
    def _claim_slot(db: Session, slot_id, booking_id) -> None:
        """Atomically flip an available slot to booked; ConflictError if someone got there first."""
        claimed = db.query(AvailabilitySlot).filter(
            AvailabilitySlot.id == slot_id,
            AvailabilitySlot.status == SlotStatus.AVAILABLE,
        ).update(
            {
                AvailabilitySlot.status: SlotStatus.BOOKED,
                AvailabilitySlot.booking_id: booking_id,
                AvailabilitySlot.updated_at: utcnow(),
            },
            synchronize_session=False,
        )
        if claimed != 1:
            raise ConflictError("slot is no longer available")

    @staticmethod
    def _free_slot(db: Session, booking: Booking) -> None:
        if booking.availability_slot_id is None:
            return
        slot = db.query(AvailabilitySlot).filter(AvailabilitySlot.id == booking.availability_slot_id).first()
        if not slot or slot.booking_id != booking.id:
            logger.warning(f"Booking {booking.id} does not hold slot {booking.availability_slot_id}; nothing to free")
            return
        if not SlotService.release_or_remove(db, slot):
            booking.availability_slot_id = None

    @staticmethod
    def _commit(db: Session, booking: Booking) -> Booking:
        try:
            db.commit()
            db.refresh(booking)
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to persist booking {booking.id}: {e}", exc_info=True)
            raise
        return booking

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @staticmethod
    def create_booking(
            db: Session,
            slot_id,
            customer_id,
            service_id,
            notes_by_customer: Optional[str] = None
    ) -> Booking:
        """Book an available slot for a customer. Booking starts in pending_confirmation."""
        settings = get_settings()
        try:
            slot = db.query(AvailabilitySlot).filter(AvailabilitySlot.id == slot_id).first()
            if not slot:
                raise NotFoundError(f"Availability slot {slot_id} not found.")

            customer = db.query(User).filter(User.id == customer_id, User.is_active.is_(True)).first()
            if not customer:
                raise NotFoundError(f"Customer {customer_id} not found.")

            service = db.query(Service).filter(Service.id == service_id).first()
            if not service or service.business_profile_id != slot.business_profile_id:
                raise ValidationError("Service is not offered by this business.")
            if not service.is_active:
                raise ValidationError(f"Service '{service.name}' is not currently available.")

            # Same lock the slot generator takes: no regeneration can drop this slot mid-booking
            worker = db.query(Worker).filter(Worker.id == slot.worker_id).with_for_update().first()
            if not worker or not worker.is_active:
                raise ValidationError("Worker is not available for bookings.")
            if not worker.offers_service(service.id):
                raise ValidationError(f"{worker.full_name} does not offer '{service.name}'.")

            if settings.ENFORCE_SERVICE_DURATION_MATCH and slot.duration_minutes != service.duration_minutes:
                raise ValidationError(
                    f"Slot length ({slot.duration_minutes} min) does not match service duration "
                    f"({service.duration_minutes} min)."
                )

            booking_id = uuid4()
            BookingService._claim_slot(db, slot.id, booking_id)

            booking = Booking(
                id=booking_id,
                business_profile_id=slot.business_profile_id,
                customer_id=customer.id,
                service_id=service.id,
                worker_id=worker.id,
                availability_slot_id=slot.id,
                booking_start_time=slot.start_time,
                booking_end_time=slot.end_time,
                status=BookingStatus.PENDING_CONFIRMATION,
                notes_by_customer=notes_by_customer,
                price_at_booking=service.price,
            )
            db.add(booking)
            db.commit()
            db.refresh(booking)

        except ConflictError:
            db.rollback()
            logger.warning(f"Booking attempt lost the race for slot {slot_id}")
            raise
        except Exception:
            db.rollback()
            raise

        logger.info(f"Created booking {booking.id} on slot {slot_id} for customer {customer_id}")
        return booking

    # ------------------------------------------------------------------
    # Vendor transitions
    # ------------------------------------------------------------------

    @staticmethod
    def confirm_booking(db: Session, booking_id, business_profile_id) -> Booking:
        booking = BookingService._get_booking(db, booking_id, business_profile_id)
        booking.confirm()
        BookingService._commit(db, booking)
        logger.info(f"Booking {booking.id} confirmed")
        return booking

    @staticmethod
    def complete_booking(db: Session, booking_id, business_profile_id) -> Booking:
        booking = BookingService._get_booking(db, booking_id, business_profile_id)
        booking.mark_completed()
        BookingService._commit(db, booking)
        logger.info(f"Booking {booking.id} completed")
        return booking

    @staticmethod
    def mark_no_show(db: Session, booking_id, business_profile_id) -> Booking:
        booking = BookingService._get_booking(db, booking_id, business_profile_id)
        booking.mark_no_show()
        BookingService._commit(db, booking)
        logger.info(f"Booking {booking.id} marked as no-show")
        return booking

    @staticmethod
    def cancel_by_vendor(db: Session, booking_id, business_profile_id, reason: str) -> Booking:
        booking = BookingService._get_booking(db, booking_id, business_profile_id)
        return BookingService._cancel(db, booking, reason, by_customer=False)

    @staticmethod
    def cancel_by_customer(db: Session, booking_id, customer_id, reason: str) -> Booking:
        """Only the booking's own customer can cancel it; anyone else sees NotFound."""
        booking = BookingService._get_booking(db, booking_id, customer_id=customer_id)
        return BookingService._cancel(db, booking, reason, by_customer=True)

    @staticmethod
    def _cancel(db: Session, booking: Booking, reason: str, by_customer: bool) -> Booking:
        try:
            booking.cancel(reason, by_customer=by_customer)
            BookingService._free_slot(db, booking)
        except Exception:
            db.rollback()
            raise
        BookingService._commit(db, booking)
        logger.info(f"Booking {booking.id} {booking.status.value}: {booking.cancellation_reason}")
        return booking

    @staticmethod
    def reschedule_by_vendor(
            db: Session,
            booking_id,
            business_profile_id,
            new_slot_id,
            notes_by_vendor: Optional[str] = None
    ) -> Booking:
        """
        Move a confirmed booking to another slot of the same worker. The old booking ends as
        rescheduled and points at the new, already confirmed, booking.
        """
        try:
            booking = BookingService._get_booking(db, booking_id, business_profile_id)
            if booking.status != BookingStatus.CONFIRMED:
                raise InvalidOperationError(
                    f"Only confirmed bookings can be rescheduled; this one is {booking.status.value}."
                )
            if new_slot_id == booking.availability_slot_id:
                raise ValidationError("New slot must differ from the current slot.")

            new_slot = db.query(AvailabilitySlot).filter(AvailabilitySlot.id == new_slot_id).first()
            if not new_slot:
                raise NotFoundError(f"Availability slot {new_slot_id} not found.")
            if new_slot.worker_id != booking.worker_id or new_slot.business_profile_id != booking.business_profile_id:
                raise ValidationError("New slot must belong to the same worker and business.")

            db.query(Worker).filter(Worker.id == booking.worker_id).with_for_update().first()

            new_booking_id = uuid4()
            BookingService._claim_slot(db, new_slot.id, new_booking_id)

            new_booking = Booking(
                id=new_booking_id,
                business_profile_id=booking.business_profile_id,
                customer_id=booking.customer_id,
                service_id=booking.service_id,
                worker_id=booking.worker_id,
                availability_slot_id=new_slot.id,
                booking_start_time=new_slot.start_time,
                booking_end_time=new_slot.end_time,
                status=BookingStatus.CONFIRMED,
                notes_by_customer=booking.notes_by_customer,
                notes_by_vendor=notes_by_vendor if notes_by_vendor is not None else booking.notes_by_vendor,
                price_at_booking=booking.price_at_booking,
            )
            db.add(new_booking)

            booking.mark_rescheduled(new_booking_id)
            BookingService._free_slot(db, booking)

            db.commit()
            db.refresh(new_booking)

        except Exception:
            db.rollback()
            raise

        logger.info(f"Booking {booking_id} rescheduled to {new_booking.id} on slot {new_slot_id}")
        return new_booking

    @staticmethod
    def update_notes_by_vendor(db: Session, booking_id, business_profile_id, notes: Optional[str]) -> Booking:
        booking = BookingService._get_booking(db, booking_id, business_profile_id)
        booking.update_vendor_notes(notes)
        BookingService._commit(db, booking)
        return booking
