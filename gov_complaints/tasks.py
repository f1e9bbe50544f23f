"""
Celery application and periodic tasks.

Run a worker with ``celery -A gov_complaints.tasks worker`` and the
scheduler with ``celery -A gov_complaints.tasks beat``.
"""

from celery import Celery
from celery.schedules import crontab

from gov_complaints.config.database import get_db_context
from gov_complaints.config.settings import settings
from gov_complaints.core.exceptions import ConcurrencyConflictError
from gov_complaints.core.logging import get_logger, setup_logging
from gov_complaints.services.complaint.complaint_lock_service import ComplaintLockService

logger = get_logger(__name__)

celery_app = Celery(
    'gov_complaints',
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

celery_app.conf.beat_schedule = {
    'unlock-expired-complaints': {
        'task': 'gov_complaints.tasks.unlock_expired_complaints',
        'schedule': crontab(
            minute=settings.LOCK_SWEEP_CRON_MINUTE,
            hour=settings.LOCK_SWEEP_CRON_HOUR,
        ),
    },
}


def run_lock_sweep() -> int:
    """Release expired claims using a fresh session."""
    with get_db_context() as session:
        try:
            return ComplaintLockService(session).unlock_expired_complaints()
        except ConcurrencyConflictError:
            # a complaint changed mid-sweep; the next run picks it up
            logger.warning("Lock sweep hit a concurrent update, skipping this run")
            return 0


@celery_app.task(name='gov_complaints.tasks.unlock_expired_complaints')
def unlock_expired_complaints() -> int:
    setup_logging()
    count = run_lock_sweep()
    logger.info(f"Lock sweep finished, {count} complaints unlocked")
    return count
