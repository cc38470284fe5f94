# slotbook/schemas/__init__.py
from .schedule import (
    BreakRequest,
    RuleItemRequest,
    RuleItemCreateRequest,
    RuleItemUpdateRequest,
    ScheduleInfoRequest,
    ScheduleCreateRequest,
    OverrideRequest
)

from .availability import (
    GenerateSlotsRequest,
    ManualSlotRequest,
    SlotUpdateRequest
)

from .booking import (
    BookingCreateRequest,
    CancelBookingRequest,
    RescheduleBookingRequest,
    VendorNotesRequest
)

__all__ = [
    "BreakRequest",
    "RuleItemRequest",
    "RuleItemCreateRequest",
    "RuleItemUpdateRequest",
    "ScheduleInfoRequest",
    "ScheduleCreateRequest",
    "OverrideRequest",
    "GenerateSlotsRequest",
    "ManualSlotRequest",
    "SlotUpdateRequest",
    "BookingCreateRequest",
    "CancelBookingRequest",
    "RescheduleBookingRequest",
    "VendorNotesRequest",
]
