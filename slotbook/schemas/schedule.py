"""
Pydantic schemas for schedule requests
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date, time


# ============================================================================
# Request Schemas (for incoming data)
# ============================================================================

class BreakRequest(BaseModel):
    """A named gap inside a working day"""
    name: str = Field(..., min_length=1, max_length=100)
    start_time: time
    end_time: time

    class Config:
        json_schema_extra = {
            "example": {"name": "Lunch", "start_time": "12:00", "end_time": "13:00"}
        }


class RuleItemRequest(BaseModel):
    """Weekly template entry. day_of_week: 0=Monday ... 6=Sunday"""
    day_of_week: int = Field(..., ge=0, le=6)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    is_working_day: bool = True


class RuleItemCreateRequest(RuleItemRequest):
    breaks: List[BreakRequest] = Field(default_factory=list)


class RuleItemUpdateRequest(BaseModel):
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    is_working_day: bool = True


class ScheduleInfoRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    effective_start_date: date
    effective_end_date: Optional[date] = None
    time_zone_id: str = Field(..., min_length=1, max_length=64, description="IANA time zone, e.g. Europe/Berlin")
    is_default: bool = False

    @field_validator("title")
    @classmethod
    def strip_title(cls, v):
        return v.strip()


class ScheduleCreateRequest(ScheduleInfoRequest):
    time_zone_id: Optional[str] = Field(
        None, min_length=1, max_length=64, description="IANA time zone; defaults to the business time zone"
    )
    rule_items: List[RuleItemCreateRequest] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Standard Weekly Schedule",
                "effective_start_date": "2026-01-05",
                "time_zone_id": "Europe/Berlin",
                "is_default": True,
                "rule_items": [
                    {
                        "day_of_week": 0,
                        "start_time": "09:00",
                        "end_time": "17:00",
                        "breaks": [{"name": "Lunch", "start_time": "12:00", "end_time": "13:00"}]
                    }
                ]
            }
        }


class OverrideRequest(BaseModel):
    """Date-specific exception. A working override replaces the weekly hours for that date."""
    override_date: date
    reason: str = Field(..., min_length=1, max_length=255)
    is_working_day: bool
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    class Config:
        json_schema_extra = {
            "example": {"override_date": "2026-12-25", "reason": "Holiday", "is_working_day": False}
        }
