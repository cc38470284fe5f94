"""
Pydantic schemas for booking requests
"""
from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID


class BookingCreateRequest(BaseModel):
    availability_slot_id: UUID
    service_id: UUID
    notes_by_customer: Optional[str] = Field(None, max_length=2000)


class CancelBookingRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


class RescheduleBookingRequest(BaseModel):
    new_availability_slot_id: UUID
    notes_by_vendor: Optional[str] = Field(None, max_length=2000)


class VendorNotesRequest(BaseModel):
    notes_by_vendor: Optional[str] = Field(None, max_length=2000)
