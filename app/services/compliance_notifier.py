"""Daily compliance notification cycle.

Scans documents that expire within the alert window (or already have),
derives their status and fine, and inserts at most one notification per
recipient per document per server-local calendar day. The unique
constraint on ``notifications`` backs the read-then-insert check, so two
replicas racing on the same row produce a single notification.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from prometheus_client import Counter
from sqlalchemy import func, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.models.compliance import (
    Company,
    ComplianceDocument,
    ComplianceStatus,
    Employee,
    Notification,
    NotificationCategory,
)
from app.services.compliance import ComplianceSnapshot, display_name, evaluate_document
from app.services.compliance_rules import RuleBook, load_display_names

logger = logging.getLogger(__name__)

ENTITY_TYPE = "document"

NOTIFICATIONS_CREATED = Counter(
    "compliance_notifications_created_total",
    "Compliance notifications inserted by the notification cycle",
    ["category"],
)
CYCLES = Counter(
    "compliance_notification_cycles_total",
    "Compliance notification cycles by outcome",
    ["outcome"],
)


class NotificationCycleTimeout(Exception):
    """The cycle ran past its deadline and was abandoned."""


@dataclass
class AlertCandidate:
    document: ComplianceDocument
    employee_name: str
    company_id: uuid.UUID
    company_name: str
    recipient_id: uuid.UUID


@dataclass(frozen=True)
class FormattedAlert:
    title: str
    body: str
    category: NotificationCategory


@dataclass
class CycleResult:
    scanned: int = 0
    alerts: int = 0
    inserted: int = 0
    duplicates: int = 0
    skipped: int = 0
    failed: int = 0


def format_alert(
    candidate: AlertCandidate,
    snapshot: ComplianceSnapshot,
    currency: str = "AED",
    names: Mapping[str, str] | None = None,
) -> FormattedAlert | None:
    """Title, body and category for a document, or ``None`` if it needs no alert."""
    doc_name = display_name(candidate.document.document_type, names)
    who = f"{candidate.employee_name} ({candidate.company_name})"

    if snapshot.status == ComplianceStatus.penalty_active:
        overdue = -(snapshot.days_remaining or 0)
        return FormattedAlert(
            title=f"{doc_name} - PENALTY ACTIVE",
            body=(
                f"{who}: {doc_name} expired {overdue} days ago. "
                f"Estimated fine: {snapshot.estimated_fine:,.2f} {currency}."
            ),
            category=NotificationCategory.document_penalty,
        )
    if snapshot.status == ComplianceStatus.in_grace:
        return FormattedAlert(
            title=f"{doc_name} - In Grace Period",
            body=(
                f"{who}: {doc_name} grace period active. Renew within "
                f"{snapshot.grace_days_remaining or 0} days to avoid fines."
            ),
            category=NotificationCategory.document_grace,
        )
    if snapshot.status == ComplianceStatus.expiring_soon:
        return FormattedAlert(
            title=f"{doc_name} - Expiring Soon",
            body=(
                f"{who}: {doc_name} expires in {snapshot.days_remaining} days. "
                "Please renew promptly."
            ),
            category=NotificationCategory.document_expiring,
        )
    return None


class NotificationCycle:
    def __init__(
        self,
        window_days: int | None = None,
        timeout_seconds: float | None = None,
        currency: str | None = None,
    ):
        self.window_days = (
            settings.expiring_window_days if window_days is None else window_days
        )
        self.timeout_seconds = (
            settings.cycle_timeout_seconds
            if timeout_seconds is None
            else timeout_seconds
        )
        self.currency = currency or settings.currency

    def run(self, db: Session, now: datetime | None = None) -> CycleResult:
        """Run one cycle. Raises on cycle-level faults; row faults are logged."""
        now = now or datetime.now().astimezone()
        today = now.date()
        deadline = time.monotonic() + self.timeout_seconds
        result = CycleResult()

        self._apply_statement_timeout(db)
        rules = RuleBook.load(db)
        names = load_display_names(db)
        rows = self._candidates(db, today)
        result.scanned = len(rows)
        if not rows:
            logger.info("No expiring or expired documents found")
            return result

        for row in rows:
            self._check_deadline(deadline)
            # SET LOCAL ends with each commit or rollback
            self._apply_statement_timeout(db)
            try:
                document = db.get(ComplianceDocument, row.document_id)
                if document is None:
                    result.skipped += 1
                    continue
                candidate = AlertCandidate(
                    document=document,
                    employee_name=row.employee_name,
                    company_id=row.company_id,
                    company_name=row.company_name,
                    recipient_id=row.owner_id,
                )
                snapshot = evaluate_document(
                    document,
                    rules.resolve(candidate.company_id, document.document_type, document),
                    now,
                )
                alert = format_alert(candidate, snapshot, self.currency, names)
            except Exception as e:
                db.rollback()
                result.failed += 1
                logger.warning("Skipping malformed document %s: %s", row.document_id, e)
                continue

            if alert is None:
                result.skipped += 1
                continue
            result.alerts += 1

            try:
                notified = self._already_notified(db, candidate, today)
            except SQLAlchemyError as e:
                db.rollback()
                result.failed += 1
                logger.warning(
                    "Duplicate check failed for document %s: %s", row.document_id, e
                )
                continue
            if notified:
                result.duplicates += 1
                continue
            self._insert(db, candidate, alert, today, result)

        logger.info(
            "Compliance check complete - %d new notifications from %d alerts "
            "(%d duplicates, %d failed)",
            result.inserted,
            result.alerts,
            result.duplicates,
            result.failed,
        )
        return result

    def _candidates(self, db: Session, today: date) -> list:
        horizon = today + timedelta(days=self.window_days)
        return (
            db.query(
                ComplianceDocument.id.label("document_id"),
                Employee.name.label("employee_name"),
                Company.id.label("company_id"),
                Company.name.label("company_name"),
                Company.owner_id.label("owner_id"),
            )
            .select_from(ComplianceDocument)
            .join(Employee, ComplianceDocument.employee_id == Employee.id)
            .join(Company, Employee.company_id == Company.id)
            .filter(
                ComplianceDocument.expiry_date.is_not(None),
                ComplianceDocument.expiry_date <= horizon,
                ComplianceDocument.file_url.is_not(None),
                func.trim(ComplianceDocument.file_url) != "",
            )
            .order_by(ComplianceDocument.expiry_date.asc())
            .all()
        )

    def _check_deadline(self, deadline: float) -> None:
        if time.monotonic() > deadline:
            raise NotificationCycleTimeout(
                f"Notification cycle exceeded {self.timeout_seconds}s"
            )

    def _apply_statement_timeout(self, db: Session) -> None:
        """Bound statements in the current transaction on PostgreSQL.

        ``SET LOCAL`` never outlives the transaction, so pooled connections
        go back without the limit.
        """
        if db.get_bind().dialect.name != "postgresql":
            return
        millis = int(self.timeout_seconds * 1000)
        db.execute(text(f"SET LOCAL statement_timeout = {millis}"))

    @staticmethod
    def _already_notified(db: Session, candidate: AlertCandidate, today: date) -> bool:
        return (
            db.query(Notification.id)
            .filter(
                Notification.person_id == candidate.recipient_id,
                Notification.entity_type == ENTITY_TYPE,
                Notification.entity_id == str(candidate.document.id),
                Notification.notify_date == today,
            )
            .first()
            is not None
        )

    @staticmethod
    def _insert(
        db: Session,
        candidate: AlertCandidate,
        alert: FormattedAlert,
        today: date,
        result: CycleResult,
    ) -> None:
        notification = Notification(
            person_id=candidate.recipient_id,
            title=alert.title,
            body=alert.body,
            category=alert.category.value,
            entity_type=ENTITY_TYPE,
            entity_id=str(candidate.document.id),
            notify_date=today,
            is_read=False,
        )
        try:
            db.add(notification)
            db.commit()
        except IntegrityError:
            # Another cycle inserted the same (recipient, document, day) first
            db.rollback()
            result.duplicates += 1
            logger.info(
                "Notification for document %s already created today",
                candidate.document.id,
            )
            return
        except SQLAlchemyError as e:
            db.rollback()
            result.failed += 1
            logger.warning(
                "Failed to insert notification for document %s: %s",
                candidate.document.id,
                e,
            )
            return
        result.inserted += 1
        NOTIFICATIONS_CREATED.labels(category=alert.category.value).inc()


def run_cycle(db: Session, now: datetime | None = None) -> CycleResult:
    cycle = NotificationCycle()
    try:
        result = cycle.run(db, now)
    except NotificationCycleTimeout:
        CYCLES.labels(outcome="timeout").inc()
        raise
    except Exception:
        CYCLES.labels(outcome="error").inc()
        raise
    CYCLES.labels(outcome="success").inc()
    return result
