# ============================================================================
# FILE: slotbook/api/v1/dashboard/schedules.py
# Vendor schedule management - thin HTTP layer over ScheduleService
# ============================================================================
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from datetime import date
from uuid import UUID

from slotbook.api.dependencies import get_business_scope
from slotbook.config.database import get_db
from slotbook.schemas.schedule import (
    BreakRequest,
    OverrideRequest,
    RuleItemRequest,
    RuleItemUpdateRequest,
    ScheduleCreateRequest,
    ScheduleInfoRequest,
)
from slotbook.services.schedule.schedule_service import ScheduleService

router = APIRouter(tags=["dashboard-schedules"])


@router.post("/workers/{worker_id}/schedules", status_code=status.HTTP_201_CREATED)
async def create_schedule(
        request: ScheduleCreateRequest,
        worker_id: UUID = Path(..., description="The worker ID"),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    """Create a schedule for a worker, optionally with its weekly rule items."""
    schedule = ScheduleService.create_schedule(
        db=db,
        worker_id=worker_id,
        business_profile_id=business_profile_id,
        title=request.title,
        effective_start_date=request.effective_start_date,
        effective_end_date=request.effective_end_date,
        time_zone_id=request.time_zone_id,
        is_default=request.is_default,
        rule_items=[item.model_dump() for item in request.rule_items],
    )
    return schedule.to_dict()


@router.get("/workers/{worker_id}/schedules")
async def list_schedules(
        worker_id: UUID = Path(..., description="The worker ID"),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    schedules = ScheduleService.list_worker_schedules(db, worker_id, business_profile_id)
    return {
        "worker_id": str(worker_id),
        "total": len(schedules),
        "schedules": [s.to_dict(detailed=False) for s in schedules],
    }


@router.get("/schedules/{schedule_id}")
async def get_schedule(
        schedule_id: UUID = Path(..., description="The schedule ID"),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    """Schedule with rule items, breaks and overrides."""
    return ScheduleService.get_schedule(db, schedule_id, business_profile_id).to_dict()


@router.patch("/schedules/{schedule_id}")
async def update_schedule(
        request: ScheduleInfoRequest,
        schedule_id: UUID = Path(..., description="The schedule ID"),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    schedule = ScheduleService.update_schedule_info(
        db=db,
        schedule_id=schedule_id,
        business_profile_id=business_profile_id,
        title=request.title,
        effective_start_date=request.effective_start_date,
        effective_end_date=request.effective_end_date,
        time_zone_id=request.time_zone_id,
        is_default=request.is_default,
    )
    return schedule.to_dict()


@router.delete("/schedules/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule(
        schedule_id: UUID = Path(..., description="The schedule ID"),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    ScheduleService.delete_schedule(db, schedule_id, business_profile_id)


@router.get("/schedules/{schedule_id}/availability")
async def get_schedule_availability(
        schedule_id: UUID = Path(..., description="The schedule ID"),
        date_from: date = Query(..., description="First date (inclusive)"),
        date_to: date = Query(..., description="Last date (inclusive)"),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    """Working intervals the schedule resolves to, in its own time zone."""
    return ScheduleService.get_availability(db, schedule_id, business_profile_id, date_from, date_to)


# ============================================================================
# Rule items & breaks
# ============================================================================

@router.post("/schedules/{schedule_id}/rule-items", status_code=status.HTTP_201_CREATED)
async def add_rule_item(
        request: RuleItemRequest,
        schedule_id: UUID = Path(...),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    item = ScheduleService.add_rule_item(
        db, schedule_id, business_profile_id,
        request.day_of_week, request.start_time, request.end_time, request.is_working_day
    )
    return item.to_dict()


@router.patch("/schedules/{schedule_id}/rule-items/{rule_item_id}")
async def update_rule_item(
        request: RuleItemUpdateRequest,
        schedule_id: UUID = Path(...),
        rule_item_id: UUID = Path(...),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    item = ScheduleService.update_rule_item(
        db, schedule_id, business_profile_id, rule_item_id,
        request.start_time, request.end_time, request.is_working_day
    )
    return item.to_dict()


@router.delete("/schedules/{schedule_id}/rule-items/{rule_item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_rule_item(
        schedule_id: UUID = Path(...),
        rule_item_id: UUID = Path(...),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    ScheduleService.remove_rule_item(db, schedule_id, business_profile_id, rule_item_id)


@router.post("/schedules/{schedule_id}/rule-items/{rule_item_id}/breaks", status_code=status.HTTP_201_CREATED)
async def add_break(
        request: BreakRequest,
        schedule_id: UUID = Path(...),
        rule_item_id: UUID = Path(...),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    break_rule = ScheduleService.add_break(
        db, schedule_id, business_profile_id, rule_item_id,
        request.name, request.start_time, request.end_time
    )
    return break_rule.to_dict()


@router.patch("/schedules/{schedule_id}/rule-items/{rule_item_id}/breaks/{break_id}")
async def update_break(
        request: BreakRequest,
        schedule_id: UUID = Path(...),
        rule_item_id: UUID = Path(...),
        break_id: UUID = Path(...),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    break_rule = ScheduleService.update_break(
        db, schedule_id, business_profile_id, rule_item_id, break_id,
        request.name, request.start_time, request.end_time
    )
    return break_rule.to_dict()


@router.delete(
    "/schedules/{schedule_id}/rule-items/{rule_item_id}/breaks/{break_id}",
    status_code=status.HTTP_204_NO_CONTENT
)
async def remove_break(
        schedule_id: UUID = Path(...),
        rule_item_id: UUID = Path(...),
        break_id: UUID = Path(...),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    ScheduleService.remove_break(db, schedule_id, business_profile_id, rule_item_id, break_id)


# ============================================================================
# Overrides
# ============================================================================

@router.post("/schedules/{schedule_id}/overrides", status_code=status.HTTP_201_CREATED)
async def add_override(
        request: OverrideRequest,
        schedule_id: UUID = Path(...),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    override = ScheduleService.add_override(
        db, schedule_id, business_profile_id,
        request.override_date, request.reason, request.is_working_day,
        request.start_time, request.end_time
    )
    return override.to_dict()


@router.patch("/schedules/{schedule_id}/overrides/{override_id}")
async def update_override(
        request: OverrideRequest,
        schedule_id: UUID = Path(...),
        override_id: UUID = Path(...),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    override = ScheduleService.update_override(
        db, schedule_id, business_profile_id, override_id,
        request.override_date, request.reason, request.is_working_day,
        request.start_time, request.end_time
    )
    return override.to_dict()


@router.delete("/schedules/{schedule_id}/overrides/{override_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_override(
        schedule_id: UUID = Path(...),
        override_id: UUID = Path(...),
        business_profile_id: UUID = Depends(get_business_scope),
        db: Session = Depends(get_db)
):
    ScheduleService.remove_override(db, schedule_id, business_profile_id, override_id)
