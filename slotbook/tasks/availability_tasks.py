# ===== slotbook/tasks/availability_tasks.py =====
from datetime import datetime, date, time, timedelta, timezone
from typing import Optional
import json
import logging
import uuid

from redis.exceptions import LockError
from sqlalchemy.orm import Session

from slotbook.config.celery_config import celery_app
from slotbook.config.database import SessionLocal
from slotbook.config.redis import get_sync_redis, RedisKeys
from slotbook.config.settings import get_settings
from slotbook.core.exceptions import NotFoundError, ValidationError
from slotbook.models.schedule import Schedule
from slotbook.models.worker import Worker
from slotbook.services.availability.slot_generator import SlotGenerator

logger = logging.getLogger(__name__)


def generation_window(date_from: Optional[str] = None, date_to: Optional[str] = None):
    """UTC window for a job: explicit ISO dates (inclusive) or today plus the configured horizon."""
    if not date_from and not date_to:
        return SlotGenerator.default_range()

    start_day = date.fromisoformat(date_from) if date_from else datetime.now(timezone.utc).date()
    end_day = (
        date.fromisoformat(date_to) if date_to
        else start_day + timedelta(days=get_settings().GENERATION_HORIZON_DAYS - 1)
    )
    start = datetime.combine(start_day, time.min, tzinfo=timezone.utc)
    end = datetime.combine(end_day + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return start, end


def generate_for_worker(db: Session, worker_id: str, date_from: Optional[str] = None,
                        date_to: Optional[str] = None) -> dict:
    """Regenerate one worker's slots from their default schedule. Skips workers that cannot be generated."""
    worker = db.query(Worker).filter(Worker.id == uuid.UUID(str(worker_id))).first()
    if not worker or not worker.is_active:
        return {"status": "skipped", "reason": "worker_not_found_or_inactive"}

    start, end = generation_window(date_from, date_to)
    try:
        result = SlotGenerator.generate_slots(db, worker.id, worker.business_profile_id, start, end)
    except NotFoundError:
        logger.info(f"Worker {worker_id} has no default schedule; nothing to generate")
        return {"status": "skipped", "reason": "no_default_schedule"}

    return {
        "status": "success",
        "range_start": start.isoformat(),
        "range_end": end.isoformat(),
        **result.to_dict(),
    }


@celery_app.task(bind=True, max_retries=3)
def regenerate_worker_slots(self, worker_id: str, date_from: Optional[str] = None, date_to: Optional[str] = None):
    """Bring a worker's generated slots in line with their default schedule"""
    settings = get_settings()
    redis_client = get_sync_redis()
    lock = redis_client.lock(
        RedisKeys.SLOT_GENERATION_LOCK.format(worker_id=worker_id),
        timeout=settings.GENERATION_LOCK_TIMEOUT_SECONDS,
        blocking_timeout=5,
    )

    if not lock.acquire():
        logger.info(f"Slot generation already running for worker {worker_id}, retrying later")
        raise self.retry(countdown=10 * (self.request.retries + 1))

    db = SessionLocal()
    try:
        outcome = generate_for_worker(db, worker_id, date_from, date_to)

        if outcome["status"] == "success":
            redis_client.set(
                RedisKeys.SLOT_GENERATION_STATUS.format(worker_id=worker_id),
                json.dumps({**outcome, "finished_at": datetime.now(timezone.utc).isoformat()}),
            )
        return outcome

    except ValidationError as exc:
        # Bad input will not get better on retry
        logger.error(f"Slot generation rejected for worker {worker_id}: {exc}")
        return {"status": "failed", "reason": exc.message}

    except Exception as exc:
        logger.error(f"Slot generation failed for worker {worker_id}: {exc}", exc_info=True)
        raise self.retry(countdown=60 * (self.request.retries + 1))

    finally:
        db.close()
        try:
            lock.release()
        except LockError:
            logger.warning(f"Generation lock for worker {worker_id} expired before release")


@celery_app.task
def regenerate_all_default_schedules():
    """Nightly: roll every active worker's generated horizon forward"""
    db = SessionLocal()
    try:
        worker_ids = [
            str(worker_id) for (worker_id,) in
            db.query(Schedule.worker_id)
            .join(Worker, Worker.id == Schedule.worker_id)
            .filter(Schedule.is_default.is_(True), Worker.is_active.is_(True))
            .distinct()
            .all()
        ]
    finally:
        db.close()

    for worker_id in worker_ids:
        regenerate_worker_slots.delay(worker_id)

    logger.info(f"Queued slot regeneration for {len(worker_ids)} worker(s)")
    return {"status": "queued", "workers": len(worker_ids)}
