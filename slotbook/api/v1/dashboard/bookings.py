# ============================================================================
# FILE: slotbook/api/v1/dashboard/bookings.py
# Vendor booking management - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional
from uuid import UUID

from slotbook.api.dependencies import get_business_scope
from slotbook.config.database import get_db
from slotbook.models.booking import BookingStatus
from slotbook.schemas.booking import CancelBookingRequest, RescheduleBookingRequest, VendorNotesRequest
from slotbook.services.booking.booking_query_service import BookingQueryService
from slotbook.services.booking.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["dashboard-bookings"])


@router.get("")
async def list_bookings(
        worker_id: Optional[UUID] = Query(None, description="Filter by worker"),
        service_id: Optional[UUID] = Query(None, description="Filter by service"),
        customer_id: Optional[UUID] = Query(None, description="Filter by customer"),
        booking_status: Optional[BookingStatus] = Query(None, alias="status", description="Filter by status"),
        start_date: Optional[date] = Query(None, description="Bookings starting on or after this date"),
        end_date: Optional[date] = Query(None, description="Bookings starting on or before this date"),
        skip: int = Query(0, ge=0, description="Number of records to skip"),
        limit: int = Query(50, ge=1, le=100, description="Number of records to return"),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    """Paginated bookings of your business."""
    return BookingQueryService.list_bookings(
        db=db,
        business_profile_id=business_profile_id,
        worker_id=worker_id,
        service_id=service_id,
        customer_id=customer_id,
        status=booking_status,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit
    )


@router.get("/{booking_id}")
async def get_booking(
        booking_id: UUID = Path(..., description="The booking ID"),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    return BookingQueryService.get_booking(db, booking_id, business_profile_id)


@router.post("/{booking_id}/confirm")
async def confirm_booking(
        booking_id: UUID = Path(...),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    return BookingService.confirm_booking(db, booking_id, business_profile_id).to_dict()


@router.post("/{booking_id}/complete")
async def complete_booking(
        booking_id: UUID = Path(...),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    return BookingService.complete_booking(db, booking_id, business_profile_id).to_dict()


@router.post("/{booking_id}/no-show")
async def mark_no_show(
        booking_id: UUID = Path(...),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    return BookingService.mark_no_show(db, booking_id, business_profile_id).to_dict()


@router.post("/{booking_id}/cancel")
async def cancel_booking(
        request: CancelBookingRequest,
        booking_id: UUID = Path(...),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    return BookingService.cancel_by_vendor(db, booking_id, business_profile_id, request.reason).to_dict()


@router.post("/{booking_id}/reschedule")
async def reschedule_booking(
        request: RescheduleBookingRequest,
        booking_id: UUID = Path(...),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    """Move the booking to another slot. Returns the new, confirmed booking."""
    new_booking = BookingService.reschedule_by_vendor(
        db, booking_id, business_profile_id, request.new_availability_slot_id, request.notes_by_vendor
    )
    return new_booking.to_dict()


@router.patch("/{booking_id}/notes")
async def update_vendor_notes(
        request: VendorNotesRequest,
        booking_id: UUID = Path(...),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    return BookingService.update_notes_by_vendor(
        db, booking_id, business_profile_id, request.notes_by_vendor
    ).to_dict()
