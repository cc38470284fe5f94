# ===== slotbook/seed_demo.py =====
"""
Seed a demo tenant: one business, one worker offering one service, a vendor and
a customer login, a Mon-Fri default schedule with lunch breaks, and two weeks of
generated slots.

Schedule edits queue regeneration jobs, so the broker must be reachable unless
AUTO_REGENERATE_ON_SCHEDULE_EDIT=false.

Usage:
    python -m slotbook.seed_demo
"""
import uuid
from datetime import date, time, timedelta
from decimal import Decimal

from slotbook.config.database import SessionLocal, create_tables
from slotbook.models import BusinessProfile, Service, User, UserRole, Worker
from slotbook.services.availability.slot_generator import SlotGenerator
from slotbook.services.schedule.schedule_service import ScheduleService

DEMO_PASSWORD = "DemoPass123!"


def seed_demo():
    create_tables()
    db = SessionLocal()

    try:
        business = BusinessProfile(id=uuid.uuid4(), name="Demo Barbershop", timezone="Europe/Berlin")
        service = Service(
            id=uuid.uuid4(),
            business_profile_id=business.id,
            name="Haircut",
            duration_minutes=30,
            price=Decimal("25.00"),
        )
        worker = Worker(
            id=uuid.uuid4(),
            business_profile_id=business.id,
            first_name="Alex",
            last_name="Demo",
            services=[service],
        )
        vendor = User(
            email="vendor@example.com",
            hashed_password=User.hash_password(DEMO_PASSWORD),
            full_name="Demo Vendor",
            role=UserRole.VENDOR,
            business_profile_id=business.id,
        )
        customer = User(
            email="customer@example.com",
            hashed_password=User.hash_password(DEMO_PASSWORD),
            full_name="Demo Customer",
            role=UserRole.CUSTOMER,
        )
        db.add_all([business, service, worker, vendor, customer])
        db.commit()

        # Mon-Fri 09:00-17:00 with a lunch break
        lunch = [{"name": "Lunch", "start_time": time(12, 0), "end_time": time(13, 0)}]
        schedule = ScheduleService.create_schedule(
            db=db,
            worker_id=worker.id,
            business_profile_id=business.id,
            title="Standard Weekly Schedule",
            effective_start_date=date.today(),
            time_zone_id=business.timezone,
            is_default=True,
            rule_items=[
                {"day_of_week": day, "start_time": time(9, 0), "end_time": time(17, 0), "breaks": lunch}
                for day in range(0, 5)
            ],
        )
        ScheduleService.add_override(
            db, schedule.id, business.id,
            override_date=date.today() + timedelta(days=7),
            reason="Half day",
            is_working_day=True,
            start_time=time(10, 0),
            end_time=time(14, 0),
        )

        start, end = SlotGenerator.default_range(days=14)
        result = SlotGenerator.generate_slots(
            db, worker.id, business.id, start, end, slot_duration_minutes=service.duration_minutes
        )
        print(f"✅ Demo data seeded: business {business.id}, {result.created} slots generated")

    except Exception as e:
        db.rollback()
        print("❌ Error seeding demo data:", e)
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_demo()
