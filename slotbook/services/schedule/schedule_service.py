# ============================================================================
# slotbook/services/schedule/schedule_service.py
# Loads, mutates and persists Schedule aggregates
# ============================================================================
"""Service for managing worker schedules"""
from datetime import date, time, timedelta
from typing import Any, Callable, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from slotbook.config.settings import get_settings
from slotbook.core.exceptions import NotFoundError, ValidationError
from slotbook.models.availability_slot import AvailabilitySlot
from slotbook.models.business import BusinessProfile
from slotbook.models.schedule import Schedule
from slotbook.models.worker import Worker
from slotbook.services.availability.availability_resolver import resolve_availability

logger = logging.getLogger(__name__)


class ScheduleService:
    """Handles schedule operations. Child entities change only through Schedule methods."""

    @staticmethod
    def enqueue_regeneration(worker_id) -> None:
        """Queue a slot regeneration for the worker when automatic regeneration is on"""
        if not get_settings().AUTO_REGENERATE_ON_SCHEDULE_EDIT:
            return
        from slotbook.tasks.availability_tasks import regenerate_worker_slots
        regenerate_worker_slots.delay(str(worker_id))
        logger.info(f"Queued slot regeneration for worker {worker_id}")

    @staticmethod
    def _clear_other_defaults(db: Session, schedule: Schedule) -> None:
        db.query(Schedule).filter(
            Schedule.worker_id == schedule.worker_id,
            Schedule.id != schedule.id,
            Schedule.is_default.is_(True)
        ).update({Schedule.is_default: False}, synchronize_session="fetch")

    @staticmethod
    def get_schedule(db: Session, schedule_id, business_profile_id=None, for_update: bool = False) -> Schedule:
        query = db.query(Schedule).filter(Schedule.id == schedule_id)
        if business_profile_id is not None:
            query = query.filter(Schedule.business_profile_id == business_profile_id)
        if for_update:
            query = query.with_for_update()
        schedule = query.first()
        if not schedule:
            raise NotFoundError(f"Schedule {schedule_id} not found.")
        return schedule

    @staticmethod
    def list_worker_schedules(db: Session, worker_id, business_profile_id) -> List[Schedule]:
        return db.query(Schedule).filter(
            Schedule.worker_id == worker_id,
            Schedule.business_profile_id == business_profile_id
        ).order_by(Schedule.is_default.desc(), Schedule.effective_start_date.asc()).all()

    @staticmethod
    def create_schedule(
            db: Session,
            worker_id,
            business_profile_id,
            title: str,
            effective_start_date: date,
            time_zone_id: Optional[str] = None,
            effective_end_date: Optional[date] = None,
            is_default: bool = False,
            rule_items: Optional[List[Dict[str, Any]]] = None
    ) -> Schedule:
        """
        Create a schedule, optionally with its weekly rule items and their breaks:
        [{"day_of_week": 0, "start_time": time, "end_time": time, "is_working_day": True,
          "breaks": [{"name": "Lunch", "start_time": time, "end_time": time}]}]
        Without a time zone the business zone is used, then DEFAULT_TIMEZONE.
        """
        worker = db.query(Worker).filter(
            Worker.id == worker_id,
            Worker.business_profile_id == business_profile_id
        ).first()
        if not worker:
            raise NotFoundError(f"Worker {worker_id} not found.")

        if not time_zone_id:
            business = db.query(BusinessProfile).filter(BusinessProfile.id == business_profile_id).first()
            time_zone_id = (business.timezone if business else None) or get_settings().DEFAULT_TIMEZONE

        schedule = Schedule.create(
            worker_id=worker.id,
            business_profile_id=business_profile_id,
            title=title,
            effective_start_date=effective_start_date,
            effective_end_date=effective_end_date,
            time_zone_id=time_zone_id,
            is_default=is_default,
        )
        for item_data in rule_items or []:
            item = schedule.add_rule_item(
                item_data["day_of_week"],
                item_data.get("start_time"),
                item_data.get("end_time"),
                item_data.get("is_working_day", True),
            )
            for break_data in item_data.get("breaks") or []:
                schedule.add_break(item.id, break_data["name"], break_data["start_time"], break_data["end_time"])

        try:
            db.add(schedule)
            db.flush()
            if schedule.is_default:
                ScheduleService._clear_other_defaults(db, schedule)
            db.commit()
            db.refresh(schedule)
        except Exception:
            db.rollback()
            raise

        logger.info(f"Created schedule {schedule.id} '{schedule.title}' for worker {worker.id}")
        ScheduleService.enqueue_regeneration(worker.id)
        return schedule

    @staticmethod
    def _mutate(db: Session, schedule_id, business_profile_id, change: Callable[[Schedule], Any]):
        """Lock the aggregate, apply one change, commit once, then queue regeneration."""
        schedule = ScheduleService.get_schedule(db, schedule_id, business_profile_id, for_update=True)
        try:
            result = change(schedule)
            if schedule.is_default:
                ScheduleService._clear_other_defaults(db, schedule)
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(schedule)
        ScheduleService.enqueue_regeneration(schedule.worker_id)
        return result

    @staticmethod
    def update_schedule_info(
            db: Session,
            schedule_id,
            business_profile_id,
            title: str,
            effective_start_date: date,
            time_zone_id: str,
            effective_end_date: Optional[date] = None,
            is_default: bool = False
    ) -> Schedule:
        def change(schedule: Schedule):
            schedule.update_info(title, effective_start_date, effective_end_date, time_zone_id, is_default)
            return schedule

        schedule = ScheduleService._mutate(db, schedule_id, business_profile_id, change)
        logger.info(f"Updated schedule {schedule.id} info")
        return schedule

    @staticmethod
    def delete_schedule(db: Session, schedule_id, business_profile_id) -> None:
        """Delete a schedule. Slots it generated survive, detached from it."""
        schedule = ScheduleService.get_schedule(db, schedule_id, business_profile_id, for_update=True)
        try:
            detached = db.query(AvailabilitySlot).filter(
                AvailabilitySlot.generating_schedule_id == schedule.id
            ).update({AvailabilitySlot.generating_schedule_id: None}, synchronize_session="fetch")
            db.delete(schedule)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"Deleted schedule {schedule_id}; detached {detached} slot(s)")

    # ------------------------------------------------------------------
    # Aggregate mutations
    # ------------------------------------------------------------------

    @staticmethod
    def add_rule_item(db: Session, schedule_id, business_profile_id, day_of_week: int,
                      start_time: Optional[time], end_time: Optional[time], is_working_day: bool = True):
        return ScheduleService._mutate(
            db, schedule_id, business_profile_id,
            lambda s: s.add_rule_item(day_of_week, start_time, end_time, is_working_day)
        )

    @staticmethod
    def update_rule_item(db: Session, schedule_id, business_profile_id, rule_item_id,
                         start_time: Optional[time], end_time: Optional[time], is_working_day: bool):
        return ScheduleService._mutate(
            db, schedule_id, business_profile_id,
            lambda s: s.update_rule_item(rule_item_id, start_time, end_time, is_working_day)
        )

    @staticmethod
    def remove_rule_item(db: Session, schedule_id, business_profile_id, rule_item_id) -> None:
        ScheduleService._mutate(db, schedule_id, business_profile_id, lambda s: s.remove_rule_item(rule_item_id))

    @staticmethod
    def add_break(db: Session, schedule_id, business_profile_id, rule_item_id,
                  name: str, start_time: time, end_time: time):
        return ScheduleService._mutate(
            db, schedule_id, business_profile_id,
            lambda s: s.add_break(rule_item_id, name, start_time, end_time)
        )

    @staticmethod
    def update_break(db: Session, schedule_id, business_profile_id, rule_item_id, break_id,
                     name: str, start_time: time, end_time: time):
        return ScheduleService._mutate(
            db, schedule_id, business_profile_id,
            lambda s: s.update_break(rule_item_id, break_id, name, start_time, end_time)
        )

    @staticmethod
    def remove_break(db: Session, schedule_id, business_profile_id, rule_item_id, break_id) -> None:
        ScheduleService._mutate(
            db, schedule_id, business_profile_id,
            lambda s: s.remove_break(rule_item_id, break_id)
        )

    @staticmethod
    def add_override(db: Session, schedule_id, business_profile_id, override_date: date, reason: str,
                     is_working_day: bool, start_time: Optional[time] = None, end_time: Optional[time] = None):
        return ScheduleService._mutate(
            db, schedule_id, business_profile_id,
            lambda s: s.add_override(override_date, reason, is_working_day, start_time, end_time)
        )

    @staticmethod
    def update_override(db: Session, schedule_id, business_profile_id, override_id, override_date: date,
                        reason: str, is_working_day: bool,
                        start_time: Optional[time] = None, end_time: Optional[time] = None):
        return ScheduleService._mutate(
            db, schedule_id, business_profile_id,
            lambda s: s.update_override(override_id, override_date, reason, is_working_day, start_time, end_time)
        )

    @staticmethod
    def remove_override(db: Session, schedule_id, business_profile_id, override_id) -> None:
        ScheduleService._mutate(db, schedule_id, business_profile_id, lambda s: s.remove_override(override_id))

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @staticmethod
    def get_availability(db: Session, schedule_id, business_profile_id, date_from: date, date_to: date) -> Dict:
        """Resolved working intervals (civil time in the schedule's zone) for a date range"""
        if date_from > date_to:
            raise ValidationError("date_from must not be after date_to.")
        max_days = get_settings().MAX_GENERATION_RANGE_DAYS
        if date_to - date_from > timedelta(days=max_days):
            raise ValidationError(f"Date range cannot exceed {max_days} days.")

        schedule = ScheduleService.get_schedule(db, schedule_id, business_profile_id)
        intervals = [
            {
                "date": interval.date.isoformat(),
                "start_time": interval.start_time.isoformat(timespec="minutes"),
                "end_time": interval.end_time.isoformat(timespec="minutes"),
            }
            for interval in resolve_availability(schedule, date_from, date_to)
        ]
        return {
            "schedule_id": str(schedule.id),
            "time_zone_id": schedule.time_zone_id,
            "date_from": date_from.isoformat(),
            "date_to": date_to.isoformat(),
            "intervals": intervals,
        }
