# slotbook/models/schedule.py
"""
Schedule aggregate: a worker's recurring weekly template plus date overrides.

Schedule is the only entry point for changing its rule items, their breaks and
its overrides. Every mutation re-validates sibling state (one rule item per
weekday, non-overlapping breaks inside their item, one override per date)
before touching the child collections.
"""
from datetime import date, time
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import uuid

from sqlalchemy import (
    Column, String, Boolean, Date, Time, Integer, ForeignKey, UniqueConstraint, CheckConstraint
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from slotbook.core.exceptions import ValidationError, ConflictError, NotFoundError, InvalidOperationError
from slotbook.models.base import Base, UTCDateTime, utcnow

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def validate_time_zone(time_zone_id: str) -> str:
    """Return the id unchanged if it names a known IANA zone, else raise ValidationError."""
    if not time_zone_id or not time_zone_id.strip():
        raise ValidationError("Time zone id is required.")
    try:
        ZoneInfo(time_zone_id)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown time zone id '{time_zone_id}'.")
    return time_zone_id


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required.")
    return value.strip()


def _require_interval(start_time: Optional[time], end_time: Optional[time], message: str):
    if start_time is None or end_time is None:
        raise ValidationError(message)
    if start_time >= end_time:
        raise ValidationError(message)


class BreakRule(Base):
    """A named gap inside a working rule item (e.g. lunch)."""
    __tablename__ = "break_rules"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_break_rules_interval"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    rule_item_id = Column(
        UUID(as_uuid=True),
        ForeignKey("schedule_rule_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(String(100), nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    rule_item = relationship("ScheduleRuleItem", back_populates="breaks")

    def overlaps(self, start_time: time, end_time: time) -> bool:
        return start_time < self.end_time and end_time > self.start_time

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "start_time": self.start_time.isoformat(timespec="minutes"),
            "end_time": self.end_time.isoformat(timespec="minutes"),
        }


class ScheduleRuleItem(Base):
    """Weekly template entry for one day of week (0=Monday, 6=Sunday)."""
    __tablename__ = "schedule_rule_items"
    __table_args__ = (
        UniqueConstraint("schedule_id", "day_of_week", name="uq_schedule_rule_items_day"),
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_schedule_rule_items_day"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    schedule_id = Column(
        UUID(as_uuid=True),
        ForeignKey("schedules.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_working_day = Column(Boolean, default=True, nullable=False)

    schedule = relationship("Schedule", back_populates="rule_items")
    breaks = relationship(
        "BreakRule",
        back_populates="rule_item",
        cascade="all, delete-orphan",
        order_by="BreakRule.start_time",
        lazy="selectin"
    )

    def sorted_breaks(self):
        return sorted(self.breaks, key=lambda b: b.start_time)

    def get_break(self, break_id) -> BreakRule:
        for break_rule in self.breaks:
            if break_rule.id == break_id:
                return break_rule
        raise NotFoundError(f"Break {break_id} not found on rule item {self.id}.")

    def _check_break_fits(self, start_time: time, end_time: time, ignore_break_id=None):
        if not self.is_working_day:
            raise InvalidOperationError("Breaks can only be added to a working day rule item.")
        _require_interval(start_time, end_time, "Break start time must be before break end time.")
        if start_time < self.start_time or end_time > self.end_time:
            raise ValidationError("Break must be within the working hours of the rule item.")
        for sibling in self.breaks:
            if sibling.id == ignore_break_id:
                continue
            if sibling.overlaps(start_time, end_time):
                raise ConflictError(f"Break overlaps with existing break '{sibling.name}'.")

    def to_dict(self):
        return {
            "id": str(self.id),
            "day_of_week": self.day_of_week,
            "day_name": DAY_NAMES[self.day_of_week],
            "start_time": self.start_time.isoformat(timespec="minutes"),
            "end_time": self.end_time.isoformat(timespec="minutes"),
            "is_working_day": self.is_working_day,
            "breaks": [b.to_dict() for b in self.sorted_breaks()],
        }


class ScheduleOverride(Base):
    """Date-specific exception that fully replaces the weekly rule item for that date."""
    __tablename__ = "schedule_overrides"
    __table_args__ = (
        UniqueConstraint("schedule_id", "override_date", name="uq_schedule_overrides_date"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    schedule_id = Column(
        UUID(as_uuid=True),
        ForeignKey("schedules.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    override_date = Column(Date, nullable=False)
    reason = Column(String(255), nullable=False)  # "Holiday", "Vacation", "Half day"
    is_working_day = Column(Boolean, nullable=False)  # False = day off
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)

    schedule = relationship("Schedule", back_populates="overrides")

    @staticmethod
    def _check_window(is_working_day: bool, start_time: Optional[time], end_time: Optional[time]):
        if is_working_day:
            _require_interval(
                start_time, end_time,
                "A working override needs a start time before its end time."
            )
        elif start_time is not None or end_time is not None:
            raise ValidationError("Start/end time must not be set for a non-working override.")

    def to_dict(self):
        return {
            "id": str(self.id),
            "override_date": self.override_date.isoformat(),
            "reason": self.reason,
            "is_working_day": self.is_working_day,
            "start_time": self.start_time.isoformat(timespec="minutes") if self.start_time else None,
            "end_time": self.end_time.isoformat(timespec="minutes") if self.end_time else None,
        }


class Schedule(Base):
    """Aggregate root for a worker's availability template."""
    __tablename__ = "schedules"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    worker_id = Column(
        UUID(as_uuid=True),
        ForeignKey("workers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    business_profile_id = Column(
        UUID(as_uuid=True),
        ForeignKey("business_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    title = Column(String(200), nullable=False)  # "Standard Weekly Schedule", "Summer Hours"
    is_default = Column(Boolean, default=False, nullable=False)
    effective_start_date = Column(Date, nullable=False)
    effective_end_date = Column(Date, nullable=True)  # Null = open-ended
    time_zone_id = Column(String(64), nullable=False, default="UTC")

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    rule_items = relationship(
        "ScheduleRuleItem",
        back_populates="schedule",
        cascade="all, delete-orphan",
        order_by="ScheduleRuleItem.day_of_week",
        lazy="selectin"
    )
    overrides = relationship(
        "ScheduleOverride",
        back_populates="schedule",
        cascade="all, delete-orphan",
        order_by="ScheduleOverride.override_date",
        lazy="selectin"
    )

    # ------------------------------------------------------------------
    # Construction / info
    # ------------------------------------------------------------------

    @classmethod
    def create(
            cls,
            worker_id,
            business_profile_id,
            title: str,
            effective_start_date: date,
            time_zone_id: str,
            effective_end_date: Optional[date] = None,
            is_default: bool = False
    ) -> "Schedule":
        schedule = cls(
            id=uuid.uuid4(),
            worker_id=worker_id,
            business_profile_id=business_profile_id,
            is_default=is_default,
        )
        schedule.update_info(title, effective_start_date, effective_end_date, time_zone_id, is_default)
        return schedule

    def update_info(
            self,
            title: str,
            effective_start_date: date,
            effective_end_date: Optional[date],
            time_zone_id: str,
            is_default: bool
    ):
        if effective_start_date is None:
            raise ValidationError("Effective start date is required.")
        if effective_end_date is not None and effective_end_date < effective_start_date:
            raise ValidationError("Effective end date cannot be before effective start date.")
        self.title = _require_text(title, "Title")
        self.effective_start_date = effective_start_date
        self.effective_end_date = effective_end_date
        self.time_zone_id = validate_time_zone(time_zone_id)
        self.is_default = is_default

    def covers_date(self, day: date) -> bool:
        if day < self.effective_start_date:
            return False
        return self.effective_end_date is None or day <= self.effective_end_date

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.time_zone_id)

    # ------------------------------------------------------------------
    # Rule items
    # ------------------------------------------------------------------

    def get_rule_item(self, rule_item_id) -> ScheduleRuleItem:
        for item in self.rule_items:
            if item.id == rule_item_id:
                return item
        raise NotFoundError(f"Rule item {rule_item_id} not found on schedule {self.id}.")

    def rule_item_for_day(self, day_of_week: int) -> Optional[ScheduleRuleItem]:
        return next((item for item in self.rule_items if item.day_of_week == day_of_week), None)

    def add_rule_item(
            self,
            day_of_week: int,
            start_time: time,
            end_time: time,
            is_working_day: bool = True
    ) -> ScheduleRuleItem:
        if day_of_week not in range(7):
            raise ValidationError("Day of week must be between 0 (Monday) and 6 (Sunday).")
        if self.rule_item_for_day(day_of_week) is not None:
            raise ConflictError(f"Schedule already has a rule item for {DAY_NAMES[day_of_week]}.")
        if is_working_day:
            _require_interval(start_time, end_time, "For a working day, start time must be before end time.")
        else:
            start_time = end_time = time.min

        item = ScheduleRuleItem(
            id=uuid.uuid4(),
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            is_working_day=is_working_day,
        )
        self.rule_items.append(item)
        return item

    def update_rule_item(
            self,
            rule_item_id,
            start_time: time,
            end_time: time,
            is_working_day: bool
    ) -> ScheduleRuleItem:
        """Change hours or working flag. Day of week is fixed; remove and re-add to move it."""
        item = self.get_rule_item(rule_item_id)
        if is_working_day:
            _require_interval(start_time, end_time, "For a working day, start time must be before end time.")
            for break_rule in item.breaks:
                if break_rule.start_time < start_time or break_rule.end_time > end_time:
                    raise ValidationError(
                        f"Break '{break_rule.name}' would fall outside the new working hours."
                    )
            item.start_time = start_time
            item.end_time = end_time
        else:
            # Non-working days carry no hours and no breaks
            item.start_time = time.min
            item.end_time = time.min
            item.breaks.clear()
        item.is_working_day = is_working_day
        return item

    def remove_rule_item(self, rule_item_id) -> ScheduleRuleItem:
        item = self.get_rule_item(rule_item_id)
        self.rule_items.remove(item)
        return item

    # ------------------------------------------------------------------
    # Breaks
    # ------------------------------------------------------------------

    def add_break(self, rule_item_id, name: str, start_time: time, end_time: time) -> BreakRule:
        item = self.get_rule_item(rule_item_id)
        name = _require_text(name, "Break name")
        item._check_break_fits(start_time, end_time)
        break_rule = BreakRule(id=uuid.uuid4(), name=name, start_time=start_time, end_time=end_time)
        item.breaks.append(break_rule)
        return break_rule

    def update_break(self, rule_item_id, break_id, name: str, start_time: time, end_time: time) -> BreakRule:
        item = self.get_rule_item(rule_item_id)
        break_rule = item.get_break(break_id)
        name = _require_text(name, "Break name")
        item._check_break_fits(start_time, end_time, ignore_break_id=break_rule.id)
        break_rule.name = name
        break_rule.start_time = start_time
        break_rule.end_time = end_time
        return break_rule

    def remove_break(self, rule_item_id, break_id) -> BreakRule:
        item = self.get_rule_item(rule_item_id)
        break_rule = item.get_break(break_id)
        item.breaks.remove(break_rule)
        return break_rule

    # ------------------------------------------------------------------
    # Overrides
    # ------------------------------------------------------------------

    def get_override(self, override_id) -> ScheduleOverride:
        for override in self.overrides:
            if override.id == override_id:
                return override
        raise NotFoundError(f"Override {override_id} not found on schedule {self.id}.")

    def override_for_date(self, day: date) -> Optional[ScheduleOverride]:
        return next((o for o in self.overrides if o.override_date == day), None)

    def add_override(
            self,
            override_date: date,
            reason: str,
            is_working_day: bool,
            start_time: Optional[time] = None,
            end_time: Optional[time] = None
    ) -> ScheduleOverride:
        if override_date is None:
            raise ValidationError("Override date is required.")
        reason = _require_text(reason, "Reason")
        ScheduleOverride._check_window(is_working_day, start_time, end_time)
        if self.override_for_date(override_date) is not None:
            raise ConflictError(f"An override already exists for {override_date.isoformat()}.")

        override = ScheduleOverride(
            id=uuid.uuid4(),
            override_date=override_date,
            reason=reason,
            is_working_day=is_working_day,
            start_time=start_time,
            end_time=end_time,
        )
        self.overrides.append(override)
        return override

    def update_override(
            self,
            override_id,
            override_date: date,
            reason: str,
            is_working_day: bool,
            start_time: Optional[time] = None,
            end_time: Optional[time] = None
    ) -> ScheduleOverride:
        override = self.get_override(override_id)
        if override_date is None:
            raise ValidationError("Override date is required.")
        reason = _require_text(reason, "Reason")
        ScheduleOverride._check_window(is_working_day, start_time, end_time)
        existing = self.override_for_date(override_date)
        if existing is not None and existing.id != override.id:
            raise ConflictError(f"An override already exists for {override_date.isoformat()}.")

        override.override_date = override_date
        override.reason = reason
        override.is_working_day = is_working_day
        override.start_time = start_time
        override.end_time = end_time
        return override

    def remove_override(self, override_id) -> ScheduleOverride:
        override = self.get_override(override_id)
        self.overrides.remove(override)
        return override

    # ------------------------------------------------------------------

    def __repr__(self):
        return f"<Schedule(id={self.id}, worker_id={self.worker_id}, title={self.title})>"

    def to_dict(self, detailed: bool = True):
        data = {
            "id": str(self.id),
            "worker_id": str(self.worker_id),
            "business_profile_id": str(self.business_profile_id),
            "title": self.title,
            "is_default": self.is_default,
            "effective_start_date": self.effective_start_date.isoformat(),
            "effective_end_date": self.effective_end_date.isoformat() if self.effective_end_date else None,
            "time_zone_id": self.time_zone_id,
        }
        if detailed:
            data["rule_items"] = [item.to_dict() for item in self.rule_items]
            data["overrides"] = [o.to_dict() for o in self.overrides]
        return data
