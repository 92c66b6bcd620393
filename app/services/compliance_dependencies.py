from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

from app.config import settings
from app.models.compliance import (
    ComplianceDocument,
    DependencySeverity,
    DocumentDependency,
)
from app.services.common import coerce_uuid
from app.services.compliance import display_name
from app.services.compliance_rules import load_display_names

logger = logging.getLogger(__name__)

DEFAULT_LOOKAHEAD_DAYS = 60


@dataclass(frozen=True)
class DependencyEdge:
    blocking_doc_type: str
    blocked_doc_type: str
    description: str


@dataclass(frozen=True)
class DependencyAlert:
    severity: DependencySeverity
    blocking_doc: str
    blocked_doc: str
    message: str
    blocking_expiry: date
    blocked_expiry: date


def check_dependencies(
    edges: Iterable[DependencyEdge],
    expiries: Mapping[str, date | None],
    now: date | datetime,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
    names: Mapping[str, str] | None = None,
) -> list[DependencyAlert]:
    """Flag edges whose blocking document lapses before, or too soon after,
    the document it gates.

    ``expiries`` maps document type to expiry date for a single employee.
    ``names`` overrides built-in display names in the alert message.
    Edges are compared pairwise only, so cycles in the graph are harmless.
    """
    today = now.date() if isinstance(now, datetime) else now
    window = timedelta(days=lookahead_days)
    alerts: list[DependencyAlert] = []
    for edge in edges:
        blocking_expiry = expiries.get(edge.blocking_doc_type)
        blocked_expiry = expiries.get(edge.blocked_doc_type)
        if blocking_expiry is None or blocked_expiry is None:
            continue
        if blocking_expiry > blocked_expiry + window:
            continue

        name = display_name(edge.blocking_doc_type, names)
        days_left = (blocking_expiry - today).days
        if days_left < 0:
            severity = DependencySeverity.critical
            message = f"{name} has EXPIRED - {edge.description}"
        else:
            severity = DependencySeverity.warning
            message = f"{name} expires in {days_left} days - {edge.description}"
        alerts.append(
            DependencyAlert(
                severity=severity,
                blocking_doc=edge.blocking_doc_type,
                blocked_doc=edge.blocked_doc_type,
                message=message,
                blocking_expiry=blocking_expiry,
                blocked_expiry=blocked_expiry,
            )
        )
    return alerts


def load_edges(db: Session) -> list[DependencyEdge]:
    rows = db.query(DocumentDependency).all()
    return [
        DependencyEdge(
            blocking_doc_type=row.blocking_doc_type,
            blocked_doc_type=row.blocked_doc_type,
            description=row.description,
        )
        for row in rows
    ]


def employee_expiries(db: Session, employee_id) -> dict[str, date]:
    """Latest known expiry per document type for one employee."""
    documents = (
        db.query(ComplianceDocument)
        .filter(
            ComplianceDocument.employee_id == coerce_uuid(employee_id),
            ComplianceDocument.expiry_date.is_not(None),
        )
        .all()
    )
    expiries: dict[str, date] = {}
    for document in documents:
        current = expiries.get(document.document_type)
        if current is None or document.expiry_date > current:
            expiries[document.document_type] = document.expiry_date
    return expiries


def dependency_alerts(
    db: Session, employee_id, now: date | datetime | None = None
) -> list[DependencyAlert]:
    now = now or datetime.now()
    alerts = check_dependencies(
        load_edges(db),
        employee_expiries(db, employee_id),
        now,
        lookahead_days=settings.dependency_lookahead_days,
        names=load_display_names(db),
    )
    logger.debug(
        "Found %d dependency alerts for employee %s", len(alerts), employee_id
    )
    return alerts
