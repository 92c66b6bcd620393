import logging
from collections.abc import Mapping
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.compliance import (
    ComplianceDocument,
    ComplianceRule,
    DocumentDependency,
    DocumentType,
    Employee,
)
from app.schemas.compliance import (
    DependencyAlertRead,
    DocumentRead,
    DocumentWithCompliance,
)
from app.services.common import get_or_404
from app.services.compliance import (
    MANDATORY_DOCS,
    ResolvedRule,
    display_name,
    evaluate_document,
)
from app.services.compliance_dependencies import dependency_alerts
from app.services.compliance_rules import compliance_rules, load_display_names

logger = logging.getLogger(__name__)

DEFAULT_DEPENDENCIES = (
    (
        "passport",
        "visa",
        "Passport must have 6+ months validity to renew Residence Visa",
    ),
    (
        "health_insurance",
        "work_permit",
        "Valid health insurance required to issue/renew Work Permit",
    ),
    ("visa", "emirates_id", "Valid residence visa required to renew Emirates ID"),
    (
        "medical_fitness",
        "visa",
        "Medical fitness certificate required for visa issuance/renewal",
    ),
)

_EXTRA_DOC_TYPES = ("health_insurance", "medical_fitness", "trade_license")


def with_compliance(
    document: ComplianceDocument,
    rule: ResolvedRule,
    now: date | datetime,
    names: Mapping[str, str] | None = None,
) -> DocumentWithCompliance:
    snapshot = evaluate_document(document, rule, now)
    stored = DocumentRead.model_validate(document).model_dump()
    return DocumentWithCompliance(
        **stored,
        display_name=display_name(document.document_type, names),
        status=snapshot.status.value,
        estimated_fine=snapshot.estimated_fine,
        days_remaining=snapshot.days_remaining,
        grace_days_remaining=snapshot.grace_days_remaining,
        days_in_penalty=snapshot.days_in_penalty,
    )


class ComplianceDocuments:
    @staticmethod
    def get(
        db: Session, document_id: str, now: date | datetime | None = None
    ) -> DocumentWithCompliance:
        document = get_or_404(db, ComplianceDocument, document_id, "Document")
        rule = compliance_rules.resolve(
            db, document.employee.company_id, document.document_type, document
        )
        return with_compliance(
            document, rule, now or datetime.now(), load_display_names(db)
        )

    @staticmethod
    def list_by_employee(
        db: Session, employee_id: str, now: date | datetime | None = None
    ) -> list[DocumentWithCompliance]:
        employee = get_or_404(db, Employee, employee_id, "Employee")
        now = now or datetime.now()
        names = load_display_names(db)
        documents = db.scalars(
            select(ComplianceDocument)
            .where(ComplianceDocument.employee_id == employee.id)
            .order_by(ComplianceDocument.document_type.asc())
        ).all()
        return [
            with_compliance(
                document,
                compliance_rules.resolve(
                    db, employee.company_id, document.document_type, document
                ),
                now,
                names,
            )
            for document in documents
        ]

    @staticmethod
    def dependency_alerts(
        db: Session, employee_id: str, now: date | datetime | None = None
    ) -> list[DependencyAlertRead]:
        employee = get_or_404(db, Employee, employee_id, "Employee")
        return [
            DependencyAlertRead.model_validate(alert)
            for alert in dependency_alerts(db, employee.id, now)
        ]

    @staticmethod
    def seed_mandatory_slots(db: Session, employee_id: str) -> list[ComplianceDocument]:
        """Create an empty (incomplete) document for each missing mandatory type."""
        employee = get_or_404(db, Employee, employee_id, "Employee")
        mandatory = db.scalars(
            select(DocumentType.doc_type).where(
                DocumentType.is_mandatory.is_(True),
                DocumentType.is_active.is_(True),
            )
        ).all()
        if not mandatory:
            mandatory = [config.doc_type for config in MANDATORY_DOCS]
        existing = set(
            db.scalars(
                select(ComplianceDocument.document_type).where(
                    ComplianceDocument.employee_id == employee.id
                )
            ).all()
        )
        created = []
        for doc_type in mandatory:
            if doc_type in existing:
                continue
            document = ComplianceDocument(employee_id=employee.id, document_type=doc_type)
            db.add(document)
            created.append(document)
        db.flush()
        logger.info(
            "Seeded %d mandatory document slots for employee %s",
            len(created),
            employee.id,
        )
        return created


def seed_compliance_defaults(db: Session) -> None:
    """Insert built-in document types, global rules and dependency edges.

    Each table is seeded only while it is empty, so reruns are no-ops.
    """
    if db.scalars(select(DocumentType.id).limit(1)).first() is None:
        for config in MANDATORY_DOCS:
            db.add(
                DocumentType(
                    doc_type=config.doc_type,
                    display_name=config.display_name,
                    is_mandatory=True,
                )
            )
        for doc_type in _EXTRA_DOC_TYPES:
            db.add(
                DocumentType(
                    doc_type=doc_type,
                    display_name=display_name(doc_type),
                    is_mandatory=False,
                )
            )
        logger.info("Seeded default document types")

    if db.scalars(select(ComplianceRule.id).limit(1)).first() is None:
        for config in MANDATORY_DOCS:
            db.add(
                ComplianceRule(
                    company_id=None,
                    doc_type=config.doc_type,
                    grace_period_days=config.grace_period_days,
                    fine_per_day=config.fine_per_day,
                    fine_type=config.fine_type,
                    fine_cap=config.fine_cap,
                )
            )
        logger.info("Seeded default global compliance rules")

    if db.scalars(select(DocumentDependency.id).limit(1)).first() is None:
        for blocking, blocked, description in DEFAULT_DEPENDENCIES:
            db.add(
                DocumentDependency(
                    blocking_doc_type=blocking,
                    blocked_doc_type=blocked,
                    description=description,
                )
            )
        logger.info("Seeded default document dependencies")

    db.commit()


compliance_documents = ComplianceDocuments()
