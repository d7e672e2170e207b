"""Celery tasks for check-in eligibility jobs."""

import logging
from celery import shared_task
from src.tasks.celery_app import celery_app  # noqa: F401

logger = logging.getLogger(__name__)


@shared_task(name="src.tasks.check_in_tasks.detect_missed_check_ins", bind=True)
def detect_missed_check_ins(self):
    """
    Run the missed check-in sweep (Celery task wrapper).
    Scheduled every 15 minutes.
    """
    from src.jobs.missed_check_in_detector import run_missed_check_in_detector

    logger.info(f"Starting missed check-in sweep (task {self.request.id})")
    try:
        result = run_missed_check_in_detector()
        if result.get("success"):
            logger.info(f"Missed check-in sweep completed: {result.get('detected', 0)} detected")
        else:
            logger.warning(f"Missed check-in sweep did not complete: {result.get('error')}")
        return result
    except Exception as e:
        logger.error(f"Error in missed check-in sweep task: {e}", exc_info=True)
        raise
