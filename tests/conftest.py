"""Shared fixtures: SQLite database, a demo tenant, and schedule builders"""
import os

# Must be set before slotbook.config.* builds its engine from settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_REGENERATE_ON_SCHEDULE_EDIT", "true")

import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from slotbook.config.database import build_engine
from slotbook.models import (
    AvailabilitySlot,
    Base,
    BusinessProfile,
    Schedule,
    Service,
    SlotStatus,
    User,
    UserRole,
    Worker,
)
from slotbook.services.schedule.schedule_service import ScheduleService

MONDAY = date(2030, 1, 7)


def utc(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def enqueued(monkeypatch):
    """Capture regeneration jobs instead of sending them to the broker"""
    calls = []
    monkeypatch.setattr(ScheduleService, "enqueue_regeneration", staticmethod(lambda worker_id: calls.append(worker_id)))
    return calls


# ============================================================================
# Tenant data
# ============================================================================

def make_user(db, email, role, business_profile_id=None, password=None):
    user = User(
        id=uuid.uuid4(),
        email=email,
        hashed_password=User.hash_password(password) if password else "unused-hash",
        full_name=email.split("@")[0].title(),
        role=role,
        business_profile_id=business_profile_id,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def business(db):
    business = BusinessProfile(id=uuid.uuid4(), name="Corner Salon", timezone="UTC")
    db.add(business)
    db.commit()
    return business


@pytest.fixture
def service(db, business):
    service = Service(
        id=uuid.uuid4(),
        business_profile_id=business.id,
        name="Haircut",
        duration_minutes=60,
        price=Decimal("40.00"),
    )
    db.add(service)
    db.commit()
    return service


@pytest.fixture
def worker(db, business, service):
    worker = Worker(
        id=uuid.uuid4(),
        business_profile_id=business.id,
        first_name="Sam",
        last_name="Rivera",
        services=[service],
    )
    db.add(worker)
    db.commit()
    return worker


@pytest.fixture
def customer(db):
    return make_user(db, "customer@example.com", UserRole.CUSTOMER)


@pytest.fixture
def other_customer(db):
    return make_user(db, "someone-else@example.com", UserRole.CUSTOMER)


@pytest.fixture
def vendor(db, business):
    return make_user(db, "vendor@example.com", UserRole.VENDOR, business_profile_id=business.id)


# ============================================================================
# Schedules and slots
# ============================================================================

@pytest.fixture
def weekly_schedule(db, worker, business):
    """Default UTC schedule: Mon-Fri 09:00-17:00, lunch 12:00-13:00 on Monday"""
    schedule = Schedule.create(
        worker_id=worker.id,
        business_profile_id=business.id,
        title="Standard Week",
        effective_start_date=date(2030, 1, 1),
        time_zone_id="UTC",
        is_default=True,
    )
    for day in range(5):
        item = schedule.add_rule_item(day, time(9, 0), time(17, 0))
        if day == 0:
            schedule.add_break(item.id, "Lunch", time(12, 0), time(13, 0))
    db.add(schedule)
    db.commit()
    return schedule


def add_slot(db, worker, start, end, status=SlotStatus.AVAILABLE, schedule=None):
    slot = AvailabilitySlot(
        id=uuid.uuid4(),
        worker_id=worker.id,
        business_profile_id=worker.business_profile_id,
        start_time=start,
        end_time=end,
        status=status,
        booking_id=uuid.uuid4() if status == SlotStatus.BOOKED else None,
        generating_schedule_id=schedule.id if schedule else None,
    )
    db.add(slot)
    db.commit()
    return slot


@pytest.fixture
def open_slot(db, worker):
    """Manual available slot, Monday 14:00-15:00 UTC"""
    return add_slot(db, worker, utc(MONDAY, 14), utc(MONDAY, 15))
