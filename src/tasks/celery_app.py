"""Celery application configuration for background task processing."""

from celery import Celery
from celery.schedules import crontab
from celery.signals import worker_process_shutdown

from config.settings import settings
from src.utils.database import cleanup_connections

# Create Celery app, broker and backend are set in conf.update() below
celery_app = Celery(
    'eligibility',
    include=[
        'src.tasks.check_in_tasks',
    ]
)

celery_app.conf.update(
    broker_url=settings.celery.broker_url,
    result_backend=settings.celery.result_backend,
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    task_track_started=True,
    task_time_limit=14 * 60,  # A sweep must finish before the next tick
    task_soft_time_limit=13 * 60,
    worker_max_tasks_per_child=50,  # Restart worker after 50 tasks to prevent memory leaks
    broker_connection_retry_on_startup=True,
    broker_connection_max_retries=10,
    result_expires=3600,  # 1 hour in seconds
    # Only ack after the task finishes; duplicate delivery is safe because the sweep is idempotent
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
)

# Configure periodic tasks
celery_app.conf.beat_schedule = {
    # Company windows close at arbitrary local times, so sweep on a fixed UTC cadence
    'missed-check-in-detector': {
        'task': 'src.tasks.check_in_tasks.detect_missed_check_ins',
        'schedule': crontab(minute=f'*/{settings.sweep.interval_minutes}'),
    },
}


@worker_process_shutdown.connect
def close_database_connections(**kwargs):
    """Release pooled database connections when a worker child exits."""
    cleanup_connections()


__all__ = ['celery_app']
