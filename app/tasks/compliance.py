import logging

from app.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    name="app.tasks.compliance.run_compliance_notifications", ignore_result=True
)
def run_compliance_notifications() -> None:
    """Periodic task generating compliance notifications for expiring documents.

    A failed or timed-out cycle is logged and abandoned; the next scheduled
    run retries naturally.
    """
    from app.db import SessionLocal
    from app.services.compliance_notifier import NotificationCycleTimeout, run_cycle

    db = SessionLocal()
    try:
        run_cycle(db)
    except NotificationCycleTimeout as e:
        db.rollback()
        logger.warning("Compliance notification cycle abandoned: %s", e)
    except Exception as e:
        db.rollback()
        logger.exception("Failed to run compliance notification cycle: %s", e)
    finally:
        db.close()
