import uuid
from decimal import Decimal

import pytest
from fastapi import HTTPException

from app.models.compliance import ComplianceDocument, ComplianceRule, FineType
from app.schemas.compliance import ComplianceRuleRead, ComplianceRuleSet
from app.services.compliance import ResolvedRule
from app.services.compliance_rules import (
    DEFAULT_RULE,
    RuleBook,
    compliance_rules,
    legacy_rule,
    resolve_rule,
)


def _rule(company_id=None, doc_type="visa", grace=0, fine="50", fine_type=FineType.daily):
    return ComplianceRule(
        company_id=company_id,
        doc_type=doc_type,
        grace_period_days=grace,
        fine_per_day=Decimal(fine),
        fine_type=fine_type,
        fine_cap=Decimal("0"),
    )


class TestResolveRule:
    def test_company_rule_wins_over_global(self) -> None:
        company = _rule(company_id=uuid.uuid4(), grace=10, fine="75")
        global_ = _rule(grace=0, fine="50")
        resolved = resolve_rule(company, global_)
        assert resolved.grace_period_days == 10
        assert resolved.fine_per_day == Decimal("75")

    def test_global_used_without_company_rule(self) -> None:
        resolved = resolve_rule(None, _rule(grace=5))
        assert resolved.grace_period_days == 5

    def test_legacy_fallback(self) -> None:
        legacy = ResolvedRule(7, Decimal("9"), FineType.monthly, Decimal("90"))
        assert resolve_rule(None, None, legacy) == legacy

    def test_hard_default(self) -> None:
        resolved = resolve_rule(None, None, None)
        assert resolved == DEFAULT_RULE
        assert resolved.grace_period_days == 0
        assert resolved.fine_per_day == 0
        assert resolved.fine_type == FineType.daily
        assert resolved.fine_cap == 0


class TestLegacyRule:
    def test_no_legacy_columns(self) -> None:
        assert legacy_rule(ComplianceDocument(document_type="visa")) is None
        assert legacy_rule(None) is None

    def test_partial_legacy_columns_default_the_rest(self) -> None:
        doc = ComplianceDocument(document_type="visa", fine_per_day=Decimal("25"))
        resolved = legacy_rule(doc)
        assert resolved.fine_per_day == Decimal("25")
        assert resolved.grace_period_days == 0
        assert resolved.fine_type == FineType.daily

    def test_legacy_fine_type_string(self) -> None:
        doc = ComplianceDocument(document_type="visa", fine_type="one_time")
        assert legacy_rule(doc).fine_type == FineType.one_time


class TestRuleBook:
    def test_precedence_and_fallbacks(self) -> None:
        company_id = uuid.uuid4()
        book = RuleBook(
            [
                _rule(company_id=company_id, doc_type="visa", grace=3),
                _rule(doc_type="visa", grace=1),
                _rule(doc_type="emirates_id", grace=30),
            ]
        )
        assert len(book) == 3
        assert book.resolve(company_id, "visa").grace_period_days == 3
        assert book.resolve(uuid.uuid4(), "visa").grace_period_days == 1
        assert book.resolve(str(company_id), "emirates_id").grace_period_days == 30
        assert book.resolve(company_id, "unknown") == DEFAULT_RULE

    def test_legacy_used_when_no_rows(self) -> None:
        doc = ComplianceDocument(document_type="passport", grace_period_days=12)
        assert RuleBook([]).resolve(None, "passport", doc).grace_period_days == 12


class TestComplianceRulesService:
    def test_set_rule_creates_global(self, db_session) -> None:
        rule = compliance_rules.set_rule(
            db_session,
            ComplianceRuleSet(doc_type="visa", fine_per_day=Decimal("50")),
        )
        db_session.commit()
        assert rule.company_id is None
        assert rule.fine_type == FineType.daily
        read = ComplianceRuleRead.model_validate(rule)
        assert read.fine_type == FineType.daily

    def test_set_rule_upserts_same_scope(self, db_session, company) -> None:
        payload = ComplianceRuleSet(
            company_id=company.id, doc_type="visa", grace_period_days=5
        )
        first = compliance_rules.set_rule(db_session, payload)
        second = compliance_rules.set_rule(
            db_session,
            ComplianceRuleSet(
                company_id=company.id, doc_type="visa", grace_period_days=9
            ),
        )
        db_session.commit()
        assert first.id == second.id
        rules = compliance_rules.list(
            db_session, str(company.id), "visa", include_global=False
        )
        assert len(rules) == 1
        assert rules[0].grace_period_days == 9

    def test_set_rule_invalid_fine_type(self, db_session) -> None:
        with pytest.raises(HTTPException) as exc:
            compliance_rules.set_rule(
                db_session, ComplianceRuleSet(doc_type="visa", fine_type="weekly")
            )
        assert exc.value.status_code == 400

    def test_set_rule_negative_values(self, db_session) -> None:
        with pytest.raises(HTTPException) as exc:
            compliance_rules.set_rule(
                db_session, ComplianceRuleSet(doc_type="visa", grace_period_days=-1)
            )
        assert exc.value.status_code == 400

    def test_set_rule_unknown_company(self, db_session) -> None:
        with pytest.raises(HTTPException) as exc:
            compliance_rules.set_rule(
                db_session,
                ComplianceRuleSet(company_id=uuid.uuid4(), doc_type="visa"),
            )
        assert exc.value.status_code == 404

    def test_list_includes_global(self, db_session, company) -> None:
        compliance_rules.set_rule(db_session, ComplianceRuleSet(doc_type="visa"))
        compliance_rules.set_rule(
            db_session, ComplianceRuleSet(company_id=company.id, doc_type="passport")
        )
        db_session.commit()
        rules = compliance_rules.list(db_session, str(company.id), None)
        assert [r.doc_type for r in rules] == ["passport", "visa"]

    def test_resolve_prefers_company_rule(self, db_session, company) -> None:
        compliance_rules.set_rule(
            db_session, ComplianceRuleSet(doc_type="visa", grace_period_days=1)
        )
        compliance_rules.set_rule(
            db_session,
            ComplianceRuleSet(
                company_id=company.id, doc_type="visa", grace_period_days=14
            ),
        )
        db_session.commit()
        resolved = compliance_rules.resolve(db_session, company.id, "visa")
        assert resolved.grace_period_days == 14
        assert compliance_rules.resolve(db_session, None, "visa").grace_period_days == 1

    def test_resolve_never_fails(self, db_session) -> None:
        assert compliance_rules.resolve(db_session, uuid.uuid4(), "nothing") == (
            DEFAULT_RULE
        )

    def test_delete(self, db_session) -> None:
        rule = compliance_rules.set_rule(db_session, ComplianceRuleSet(doc_type="visa"))
        db_session.commit()
        compliance_rules.delete(db_session, str(rule.id))
        db_session.commit()
        assert compliance_rules.list(db_session, None, "visa") == []

    def test_delete_not_found(self, db_session) -> None:
        with pytest.raises(HTTPException) as exc:
            compliance_rules.delete(db_session, str(uuid.uuid4()))
        assert exc.value.status_code == 404
