from celery import Celery

from app.config import settings

celery_app = Celery(
    "workforce_compliance",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.tasks.compliance"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
)

if settings.notifier_mode == "beat":
    celery_app.conf.beat_schedule = {
        "compliance-notification-cycle": {
            "task": "app.tasks.compliance.run_compliance_notifications",
            "schedule": float(settings.notifier_interval_seconds),
        },
    }
