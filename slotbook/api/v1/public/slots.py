# ============================================================================
# FILE: slotbook/api/v1/public/slots.py
# Public availability browsing - no authentication
# ============================================================================
from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.orm import Session
from datetime import datetime
from uuid import UUID

from slotbook.config.database import get_db
from slotbook.services.availability.slot_service import SlotService

router = APIRouter(prefix="/public/workers", tags=["Public"])


@router.get("/{worker_id}/slots")
async def list_bookable_slots(
        worker_id: UUID = Path(..., description="The worker ID"),
        start: datetime = Query(..., description="Window start (ISO 8601 with offset)"),
        end: datetime = Query(..., description="Window end (ISO 8601 with offset)"),
        db: Session = Depends(get_db)
):
    """Available slots a customer can book for this worker."""
    slots = SlotService.list_bookable_slots(db, worker_id, start, end)
    return {
        "worker_id": str(worker_id),
        "total": len(slots),
        "slots": [slot.to_dict() for slot in slots],
    }
