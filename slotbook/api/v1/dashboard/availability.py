# ============================================================================
# FILE: slotbook/api/v1/dashboard/availability.py
# Vendor slot generation and manual slot management
# ============================================================================
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional
from uuid import UUID

from slotbook.api.dependencies import get_business_scope
from slotbook.config.database import get_db
from slotbook.models.availability_slot import SlotStatus
from slotbook.schemas.availability import GenerateSlotsRequest, ManualSlotRequest, SlotUpdateRequest
from slotbook.services.availability.slot_generator import SlotGenerator
from slotbook.services.availability.slot_service import SlotService

router = APIRouter(tags=["dashboard-availability"])


@router.post("/workers/{worker_id}/slots/generate")
async def generate_slots(
        request: GenerateSlotsRequest,
        worker_id: UUID = Path(..., description="The worker ID"),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    """
    Synchronously (re)generate the worker's slots from a schedule.
    Uses the worker's default schedule unless schedule_id is given.
    """
    if request.range_start is None:
        range_start, range_end = SlotGenerator.default_range()
    else:
        range_start, range_end = request.range_start, request.range_end

    result = SlotGenerator.generate_slots(
        db=db,
        worker_id=worker_id,
        business_profile_id=business_profile_id,
        range_start_utc=range_start,
        range_end_utc=range_end,
        schedule_id=request.schedule_id,
        slot_duration_minutes=request.slot_duration_minutes,
    )
    return {
        "worker_id": str(worker_id),
        "range_start": range_start.isoformat(),
        "range_end": range_end.isoformat(),
        **result.to_dict(),
    }


@router.get("/workers/{worker_id}/slots")
async def list_slots(
        worker_id: UUID = Path(..., description="The worker ID"),
        start: datetime = Query(..., description="Window start (ISO 8601 with offset)"),
        end: datetime = Query(..., description="Window end (ISO 8601 with offset)"),
        slot_status: Optional[SlotStatus] = Query(None, alias="status", description="Filter by slot status"),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    slots = SlotService.list_slots(
        db, worker_id, start, end, status=slot_status, business_profile_id=business_profile_id
    )
    return {
        "worker_id": str(worker_id),
        "total": len(slots),
        "slots": [slot.to_dict() for slot in slots],
    }


@router.post("/workers/{worker_id}/slots", status_code=status.HTTP_201_CREATED)
async def create_manual_slot(
        request: ManualSlotRequest,
        worker_id: UUID = Path(..., description="The worker ID"),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    """Add a hand-made slot (e.g. an extra opening or a blocked hour). Never touched by regeneration."""
    slot = SlotService.create_manual_slot(
        db, worker_id, business_profile_id, request.start_time, request.end_time, request.status
    )
    return slot.to_dict()


@router.get("/slots/{slot_id}")
async def get_slot(
        slot_id: UUID = Path(..., description="The slot ID"),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    return SlotService.get_slot(db, slot_id, business_profile_id).to_dict()


@router.patch("/slots/{slot_id}")
async def update_slot(
        request: SlotUpdateRequest,
        slot_id: UUID = Path(..., description="The slot ID"),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    slot = SlotService.update_slot(
        db, slot_id, business_profile_id,
        start_time=request.start_time, end_time=request.end_time, status=request.status
    )
    return slot.to_dict()


@router.delete("/slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_slot(
        slot_id: UUID = Path(..., description="The slot ID"),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    SlotService.delete_slot(db, slot_id, business_profile_id)
