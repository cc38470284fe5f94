"""Celery application factory"""
from celery import Celery
from celery.schedules import crontab

from slotbook.config.settings import get_settings

settings = get_settings()


def create_celery_app() -> Celery:
    """Create and configure the Celery app used by API (enqueue) and worker (execute)"""
    app = Celery(
        "slotbook",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=["slotbook.tasks.availability_tasks"],
    )

    app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        result_serializer="json",
        accept_content=["json"],
        timezone="UTC",
        enable_utc=True,
        task_acks_late=True,
        worker_prefetch_multiplier=1,
        task_routes={
            "slotbook.tasks.availability_tasks.*": {"queue": "availability"},
        },
        beat_schedule={
            # Keep the generated horizon rolling forward
            "roll-slot-generation-horizon": {
                "task": "slotbook.tasks.availability_tasks.regenerate_all_default_schedules",
                "schedule": crontab(hour=2, minute=15),
            },
        },
    )

    return app


celery_app = create_celery_app()
