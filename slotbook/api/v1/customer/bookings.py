# ============================================================================
# FILE: slotbook/api/v1/customer/bookings.py
# Customer self-service bookings
# ============================================================================
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from slotbook.api.dependencies import require_customer
from slotbook.config.database import get_db
from slotbook.models.booking import BookingStatus
from slotbook.models.user import User
from slotbook.schemas.booking import BookingCreateRequest, CancelBookingRequest
from slotbook.services.booking.booking_query_service import BookingQueryService
from slotbook.services.booking.booking_service import BookingService

router = APIRouter(prefix="/customer/bookings", tags=["customer-bookings"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_booking(
        request: BookingCreateRequest,
        current_user: User = Depends(require_customer),
        db: Session = Depends(get_db)
):
    """
    Book an available slot. The booking waits for vendor confirmation.
    409 means the slot was taken in the meantime; pick another.
    """
    booking = BookingService.create_booking(
        db=db,
        slot_id=request.availability_slot_id,
        customer_id=current_user.id,
        service_id=request.service_id,
        notes_by_customer=request.notes_by_customer,
    )
    return booking.to_dict()


@router.get("")
async def list_my_bookings(
        booking_status: Optional[BookingStatus] = Query(None, alias="status"),
        current_user: User = Depends(require_customer),
        db: Session = Depends(get_db)
):
    bookings = BookingQueryService.list_customer_bookings(db, current_user.id, status=booking_status)
    return {"total": len(bookings), "bookings": bookings}


@router.post("/{booking_id}/cancel")
async def cancel_my_booking(
        request: CancelBookingRequest,
        booking_id: UUID = Path(..., description="The booking ID"),
        current_user: User = Depends(require_customer),
        db: Session = Depends(get_db)
):
    return BookingService.cancel_by_customer(db, booking_id, current_user.id, request.reason).to_dict()
