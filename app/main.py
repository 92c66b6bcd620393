import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from app.config import settings
from app.db import SessionLocal
from app.errors import register_error_handlers
from app.logging import configure_logging
from app.services.compliance_documents import seed_compliance_defaults
from app.services.compliance_scheduler import NotificationScheduler
from app.tasks.compliance import run_compliance_notifications

logger = logging.getLogger(__name__)

configure_logging()

notifier = NotificationScheduler(
    run_compliance_notifications,
    interval_seconds=settings.notifier_interval_seconds,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = SessionLocal()
    try:
        seed_compliance_defaults(db)
    finally:
        db.close()
    if settings.notifier_mode == "thread":
        notifier.start()
    else:
        logger.info("In-process notifier disabled (mode=%s)", settings.notifier_mode)
    yield
    notifier.stop(timeout=settings.cycle_timeout_seconds)


app = FastAPI(title=f"{settings.brand_name} API", lifespan=lifespan)
register_error_handlers(app)


@app.get("/health")
def health_check():
    return {"status": "ok", "notifier_running": notifier.is_running}


@app.get("/metrics")
def metrics():
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
