"""Effective compliance rule resolution.

Precedence, highest first: the company's own rule for the document type,
the global rule (no company), the deprecated per-document copy, and
finally a zero-grace zero-fine daily default. Resolution never fails.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.compliance import (
    Company,
    ComplianceDocument,
    ComplianceRule,
    DocumentType,
    FineType,
)
from app.schemas.compliance import ComplianceRuleSet
from app.services.common import apply_ordering, coerce_uuid, get_or_404
from app.services.compliance import ResolvedRule, as_decimal, coerce_fine_type

logger = logging.getLogger(__name__)

DEFAULT_RULE = ResolvedRule()

_LEGACY_FIELDS = ("grace_period_days", "fine_per_day", "fine_type", "fine_cap")


def rule_from_model(rule: ComplianceRule) -> ResolvedRule:
    return ResolvedRule(
        grace_period_days=max(rule.grace_period_days or 0, 0),
        fine_per_day=as_decimal(rule.fine_per_day),
        fine_type=coerce_fine_type(rule.fine_type),
        fine_cap=as_decimal(rule.fine_cap),
    )


def legacy_rule(document: ComplianceDocument | None) -> ResolvedRule | None:
    """Rule copied onto the document row before rules moved to their own table."""
    if document is None:
        return None
    values = {name: getattr(document, name, None) for name in _LEGACY_FIELDS}
    if all(value is None for value in values.values()):
        return None
    return ResolvedRule(
        grace_period_days=max(values["grace_period_days"] or 0, 0),
        fine_per_day=as_decimal(values["fine_per_day"]),
        fine_type=(
            coerce_fine_type(values["fine_type"])
            if values["fine_type"]
            else FineType.daily
        ),
        fine_cap=as_decimal(values["fine_cap"]),
    )


def resolve_rule(
    company_rule: ComplianceRule | None,
    global_rule: ComplianceRule | None,
    legacy: ResolvedRule | None = None,
) -> ResolvedRule:
    if company_rule is not None:
        return rule_from_model(company_rule)
    if global_rule is not None:
        return rule_from_model(global_rule)
    if legacy is not None:
        return legacy
    return DEFAULT_RULE


class RuleBook:
    """In-memory index of every compliance rule, loaded once per cycle."""

    def __init__(self, rules: Iterable[ComplianceRule]):
        self._company: dict[tuple[uuid.UUID, str], ComplianceRule] = {}
        self._global: dict[str, ComplianceRule] = {}
        for rule in rules:
            if rule.company_id is None:
                self._global[rule.doc_type] = rule
            else:
                self._company[(rule.company_id, rule.doc_type)] = rule

    @classmethod
    def load(cls, db: Session) -> "RuleBook":
        return cls(db.scalars(select(ComplianceRule)).all())

    def __len__(self) -> int:
        return len(self._company) + len(self._global)

    def resolve(
        self,
        company_id,
        doc_type: str,
        document: ComplianceDocument | None = None,
    ) -> ResolvedRule:
        company_rule = None
        if company_id is not None:
            company_rule = self._company.get((coerce_uuid(company_id), doc_type))
        return resolve_rule(
            company_rule, self._global.get(doc_type), legacy_rule(document)
        )


def load_display_names(db: Session) -> dict[str, str]:
    """Display names maintained in ``document_types``, keyed by slug."""
    return {
        doc_type: name
        for doc_type, name in db.execute(
            select(DocumentType.doc_type, DocumentType.display_name)
        ).all()
        if name
    }


def _validate_rule_values(payload: ComplianceRuleSet) -> FineType:
    try:
        fine_type = FineType(payload.fine_type)
    except ValueError:
        raise HTTPException(
            status_code=400, detail=f"Invalid fine_type: {payload.fine_type}"
        )
    if payload.grace_period_days < 0:
        raise HTTPException(
            status_code=400, detail="grace_period_days must not be negative"
        )
    if payload.fine_per_day < 0 or payload.fine_cap < 0:
        raise HTTPException(
            status_code=400, detail="fine_per_day and fine_cap must not be negative"
        )
    return fine_type


class ComplianceRules:
    @staticmethod
    def list(
        db: Session,
        company_id: str | None,
        doc_type: str | None,
        include_global: bool = True,
        order_by: str = "doc_type",
        order_dir: str = "asc",
    ) -> list[ComplianceRule]:
        stmt = select(ComplianceRule)
        if company_id is not None:
            company_filter = ComplianceRule.company_id == coerce_uuid(company_id)
            if include_global:
                company_filter = company_filter | ComplianceRule.company_id.is_(None)
            stmt = stmt.where(company_filter)
        elif not include_global:
            stmt = stmt.where(ComplianceRule.company_id.is_not(None))
        if doc_type is not None:
            stmt = stmt.where(ComplianceRule.doc_type == doc_type)
        stmt = apply_ordering(
            stmt,
            order_by,
            order_dir,
            {
                "doc_type": ComplianceRule.doc_type,
                "created_at": ComplianceRule.created_at,
            },
        )
        return db.scalars(stmt).all()

    @staticmethod
    def set_rule(db: Session, payload: ComplianceRuleSet) -> ComplianceRule:
        """Create or replace the single rule for a (company, doc_type) scope."""
        fine_type = _validate_rule_values(payload)
        company_id = coerce_uuid(payload.company_id)
        if company_id is not None and not db.get(Company, company_id):
            raise HTTPException(status_code=404, detail="Company not found")

        stmt = select(ComplianceRule).where(ComplianceRule.doc_type == payload.doc_type)
        if company_id is None:
            stmt = stmt.where(ComplianceRule.company_id.is_(None))
        else:
            stmt = stmt.where(ComplianceRule.company_id == company_id)
        rule = db.scalars(stmt).first()
        if rule is None:
            rule = ComplianceRule(company_id=company_id, doc_type=payload.doc_type)
            db.add(rule)
        rule.grace_period_days = payload.grace_period_days
        rule.fine_per_day = payload.fine_per_day
        rule.fine_type = fine_type
        rule.fine_cap = payload.fine_cap
        db.flush()
        db.refresh(rule)
        logger.info(
            "Set compliance rule %s for %s/%s",
            rule.id,
            company_id or "global",
            payload.doc_type,
        )
        return rule

    @staticmethod
    def delete(db: Session, rule_id: str) -> None:
        rule = get_or_404(db, ComplianceRule, rule_id, "Compliance rule")
        db.delete(rule)
        db.flush()
        logger.info("Deleted compliance rule %s", rule_id)

    @staticmethod
    def resolve(
        db: Session,
        company_id,
        doc_type: str,
        document: ComplianceDocument | None = None,
    ) -> ResolvedRule:
        company_rule = None
        if company_id is not None:
            company_rule = db.scalars(
                select(ComplianceRule).where(
                    ComplianceRule.company_id == coerce_uuid(company_id),
                    ComplianceRule.doc_type == doc_type,
                )
            ).first()
        global_rule = db.scalars(
            select(ComplianceRule).where(
                ComplianceRule.company_id.is_(None),
                ComplianceRule.doc_type == doc_type,
            )
        ).first()
        return resolve_rule(company_rule, global_rule, legacy_rule(document))


compliance_rules = ComplianceRules()
