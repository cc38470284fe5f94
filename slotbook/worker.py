"""
Celery worker entry point
Runs slot generation jobs and the nightly horizon roll
"""
import logging
from celery.signals import worker_ready, worker_shutdown

from slotbook.config.celery_config import celery_app
from slotbook.utils.my_logging import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@worker_ready.connect
def worker_ready_handler(sender=None, **kwargs):
    logger.info("Celery worker ready")
    logger.info(f"Registered tasks: {sorted(name for name in celery_app.tasks if name.startswith('slotbook.'))}")


@worker_shutdown.connect
def worker_shutdown_handler(sender=None, **kwargs):
    logger.info("Celery worker shutting down")


if __name__ == "__main__":
    celery_app.start([
        'worker',
        '--loglevel=info',
        '--queues=availability,celery',
        '--beat',
        '--concurrency=4',
        '--max-tasks-per-child=1000'
    ])
