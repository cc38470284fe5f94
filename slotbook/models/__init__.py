# slotbook/models/__init__.py
from .base import Base
from .business import BusinessProfile
from .service import Service, worker_services
from .worker import Worker
from .user import User, UserRole
from .schedule import Schedule, ScheduleRuleItem, BreakRule, ScheduleOverride
from .availability_slot import AvailabilitySlot, SlotStatus, BLOCKING_STATUSES
from .booking import Booking, BookingStatus, TERMINAL_STATUSES

__all__ = [
    "Base",
    "BusinessProfile",
    "Service",
    "worker_services",
    "Worker",
    "User",
    "UserRole",
    "Schedule",
    "ScheduleRuleItem",
    "BreakRule",
    "ScheduleOverride",
    "AvailabilitySlot",
    "SlotStatus",
    "BLOCKING_STATUSES",
    "Booking",
    "BookingStatus",
    "TERMINAL_STATUSES",
]
