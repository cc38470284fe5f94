"""
Pydantic schemas for slot generation and manual slot management
"""
from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime
from uuid import UUID

from slotbook.models.availability_slot import SlotStatus


class GenerateSlotsRequest(BaseModel):
    """UTC window to (re)generate. Omit both bounds to use today plus the configured horizon."""
    range_start: Optional[datetime] = None
    range_end: Optional[datetime] = None
    schedule_id: Optional[UUID] = None
    slot_duration_minutes: Optional[int] = Field(None, ge=0, description="0 = one slot per working interval")

    @model_validator(mode="after")
    def both_or_neither(self):
        if (self.range_start is None) != (self.range_end is None):
            raise ValueError("range_start and range_end must be given together")
        return self


class ManualSlotRequest(BaseModel):
    start_time: datetime
    end_time: datetime
    status: SlotStatus = SlotStatus.AVAILABLE

    class Config:
        json_schema_extra = {
            "example": {
                "start_time": "2026-03-02T10:00:00Z",
                "end_time": "2026-03-02T11:00:00Z",
                "status": "unavailable"
            }
        }


class SlotUpdateRequest(BaseModel):
    """All fields optional - only send what you want to change"""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[SlotStatus] = None
