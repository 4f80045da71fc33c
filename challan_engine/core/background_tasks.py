"""
Background Task Management

Celery application and the periodic billing jobs it runs. The overdue
sweep is scheduled daily through Celery beat; the broker is Redis.
"""

from datetime import date
from typing import Optional

from celery import Celery
from celery.schedules import crontab

from .config import settings
from .database import db_manager
from .exceptions import BaseAppException, PersistenceError
from .logging import get_logger

logger = get_logger(__name__)

SWEEP_OVERDUE_TASK = "challan_engine.sweep_overdue_challans"


def create_celery_app() -> Celery:
    """Create and configure the Celery application"""
    app = Celery(
        'challan_engine',
        broker=settings.tasks.CELERY_BROKER_URL,
        backend=settings.tasks.CELERY_RESULT_BACKEND,
    )

    app.conf.update(
        task_serializer='json',
        accept_content=['json'],
        result_serializer='json',
        timezone='UTC',
        enable_utc=True,
        task_track_started=True,
        worker_prefetch_multiplier=1,
        task_acks_late=True,
        task_always_eager=settings.tasks.TASK_ALWAYS_EAGER,
    )

    app.conf.beat_schedule = {
        'sweep-overdue-challans': {
            'task': SWEEP_OVERDUE_TASK,
            'schedule': crontab(hour=settings.tasks.OVERDUE_SWEEP_HOUR, minute=0),  # daily
        },
    }
    return app


celery_app = create_celery_app()


@celery_app.task(name=SWEEP_OVERDUE_TASK, bind=True, max_retries=3, default_retry_delay=300)
def sweep_overdue_challans(self, as_of: Optional[str] = None) -> int:
    """
    Flip pending challans past their due date to overdue.

    Args:
        as_of: ISO date; defaults to today

    Returns:
        Number of challans updated
    """
    from challan_engine.services.billing import ChallanLifecycleService
    from challan_engine.services.base import ErrorCode

    day = date.fromisoformat(as_of) if as_of else date.today()

    session = db_manager.get_session()
    try:
        result = ChallanLifecycleService(session).sweep_overdue(day)
    finally:
        session.close()

    if not result.is_success:
        logger.error(
            f"Overdue sweep failed: {result.message}",
            extra={"as_of": day.isoformat(), "error_code": result.error.code.value},
        )
        if result.error.code == ErrorCode.PERSISTENCE_ERROR:
            raise self.retry(exc=PersistenceError(result.message, operation="sweep overdue"))
        raise BaseAppException(result.message)

    return result.data


__all__ = [
    "celery_app",
    "create_celery_app",
    "sweep_overdue_challans",
    "SWEEP_OVERDUE_TASK",
]
