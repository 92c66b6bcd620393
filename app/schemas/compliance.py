from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.compliance import DependencySeverity, FineType


# ---------------------------------------------------------------------------
# ComplianceRule
# ---------------------------------------------------------------------------


class ComplianceRuleSet(BaseModel):
    company_id: UUID | None = None
    doc_type: str = Field(min_length=2, max_length=50)
    grace_period_days: int = 0
    fine_per_day: Decimal = Decimal("0")
    fine_type: str = "daily"
    fine_cap: Decimal = Decimal("0")


class ComplianceRuleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: UUID | None = None
    doc_type: str
    grace_period_days: int
    fine_per_day: Decimal
    fine_type: FineType
    fine_cap: Decimal
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Documents with computed compliance fields
# ---------------------------------------------------------------------------


class ComplianceRead(BaseModel):
    status: str
    estimated_fine: Decimal
    days_remaining: int | None = None
    grace_days_remaining: int | None = None
    days_in_penalty: int | None = None


class DocumentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: UUID
    document_type: str
    document_number: str | None = None
    issue_date: date | None = None
    expiry_date: date | None = None
    file_url: str | None = None
    file_name: str | None = None
    metadata_: dict[str, Any] | None = Field(default=None, alias="metadata_")
    created_at: datetime
    updated_at: datetime


class DocumentWithCompliance(DocumentRead, ComplianceRead):
    display_name: str


# ---------------------------------------------------------------------------
# Dependency alerts
# ---------------------------------------------------------------------------


class DependencyAlertRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    severity: DependencySeverity
    blocking_doc: str
    blocked_doc: str
    message: str
    blocking_expiry: date
    blocked_expiry: date
