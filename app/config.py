import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _resolve_database_url() -> str:
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    environment = os.getenv("ENVIRONMENT", "").strip().lower()
    if environment == "development":
        return "postgresql+psycopg://localhost:5434/workforce_compliance"

    raise ValueError(
        "DATABASE_URL is not set. Set DATABASE_URL for non-development "
        "environments or set ENVIRONMENT=development for local defaults."
    )


@dataclass(frozen=True)
class Settings:
    database_url: str = _resolve_database_url()
    db_pool_size: int = int(os.getenv("DB_POOL_SIZE", "5"))
    db_max_overflow: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))
    db_pool_timeout: int = int(os.getenv("DB_POOL_TIMEOUT", "30"))
    db_pool_recycle: int = int(os.getenv("DB_POOL_RECYCLE", "1800"))

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Celery
    celery_broker_url: str = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    celery_result_backend: str = os.getenv(
        "CELERY_RESULT_BACKEND", "redis://localhost:6379/1"
    )

    # Compliance notifier: "thread" runs in-process, "beat" defers to celery beat
    notifier_mode: str = os.getenv("COMPLIANCE_NOTIFIER_MODE", "thread").lower()
    notifier_interval_seconds: int = int(
        os.getenv("COMPLIANCE_NOTIFIER_INTERVAL_SECONDS", str(24 * 60 * 60))
    )
    cycle_timeout_seconds: int = int(os.getenv("COMPLIANCE_CYCLE_TIMEOUT_SECONDS", "30"))
    expiring_window_days: int = int(os.getenv("COMPLIANCE_EXPIRING_WINDOW_DAYS", "30"))
    dependency_lookahead_days: int = int(
        os.getenv("COMPLIANCE_DEPENDENCY_LOOKAHEAD_DAYS", "60")
    )
    currency: str = os.getenv("COMPLIANCE_CURRENCY", "AED")

    # Branding
    brand_name: str = os.getenv("BRAND_NAME", "Workforce Compliance")


settings = Settings()
