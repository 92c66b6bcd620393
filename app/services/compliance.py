"""Pure compliance calculations for employee documents.

Nothing in this module touches the database or the clock: every function
takes ``now`` explicitly and is safe to call from any thread. Status and
fine are always derived from the current dates and the resolved rule,
never read back from storage.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from app.models.compliance import ComplianceStatus, FineType

EXPIRING_WINDOW_DAYS = 30
MONTH_DAYS = 30

_CENT = Decimal("0.01")
_ZERO = Decimal("0")


@dataclass(frozen=True)
class MandatoryDocConfig:
    doc_type: str
    display_name: str
    grace_period_days: int
    fine_per_day: Decimal
    fine_type: FineType
    fine_cap: Decimal


# Seeded as global rules and as empty slots for every new employee.
MANDATORY_DOCS: tuple[MandatoryDocConfig, ...] = (
    MandatoryDocConfig(
        "passport", "Passport", 0, Decimal("0"), FineType.daily, Decimal("0")
    ),
    MandatoryDocConfig(
        "visa", "Residence Visa", 0, Decimal("50"), FineType.daily, Decimal("0")
    ),
    MandatoryDocConfig(
        "emirates_id", "Emirates ID", 30, Decimal("20"), FineType.daily, Decimal("1000")
    ),
    MandatoryDocConfig(
        "work_permit",
        "Work Permit / Labour Card",
        50,
        Decimal("500"),
        FineType.one_time,
        Decimal("500"),
    ),
    MandatoryDocConfig(
        "iloe_insurance",
        "ILOE Insurance",
        0,
        Decimal("400"),
        FineType.one_time,
        Decimal("400"),
    ),
)

_EXTRA_DISPLAY_NAMES = {
    "health_insurance": "Health Insurance",
    "medical_fitness": "Medical Fitness Certificate",
    "trade_license": "Trade License",
}


@dataclass(frozen=True)
class ResolvedRule:
    grace_period_days: int = 0
    fine_per_day: Decimal = _ZERO
    fine_type: FineType = FineType.daily
    fine_cap: Decimal = _ZERO


@dataclass(frozen=True)
class ComplianceSnapshot:
    status: ComplianceStatus
    estimated_fine: Decimal
    days_remaining: int | None
    grace_days_remaining: int | None
    days_in_penalty: int | None


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def as_decimal(value) -> Decimal:
    """Decimal for a stored amount; missing, unparseable, NaN and infinite are 0."""
    if value is None:
        return _ZERO
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return _ZERO
    if not value.is_finite():
        return _ZERO
    return value


def coerce_fine_type(value) -> FineType:
    """Map a stored fine type to the enum; unknown values charge daily."""
    if isinstance(value, FineType):
        return value
    try:
        return FineType(str(value).strip().lower())
    except ValueError:
        return FineType.daily


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


# ---------------------------------------------------------------------------
# Day arithmetic
# ---------------------------------------------------------------------------


def days_remaining(expiry_date: date | None, now: date | datetime) -> int | None:
    """Whole days until expiry; negative once overdue, ``None`` without expiry."""
    if expiry_date is None:
        return None
    return (_as_date(expiry_date) - _as_date(now)).days


def grace_days_remaining(
    expiry_date: date | None, grace_period_days: int, now: date | datetime
) -> int | None:
    if expiry_date is None or grace_period_days <= 0:
        return None
    today = _as_date(now)
    expiry = _as_date(expiry_date)
    grace_end = expiry + timedelta(days=grace_period_days)
    if today <= expiry or today > grace_end:
        return None
    return (grace_end - today).days


def days_in_penalty(
    expiry_date: date | None, grace_period_days: int, now: date | datetime
) -> int | None:
    if expiry_date is None:
        return None
    penalty_start = _as_date(expiry_date) + timedelta(days=max(grace_period_days, 0))
    days = (_as_date(now) - penalty_start).days
    if days <= 0:
        return None
    return days


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


def compute_status(
    now: date | datetime,
    issue_date: date | None,
    expiry_date: date | None,
    file_url: str | None,
    document_number: str | None,
    grace_period_days: int,
) -> ComplianceStatus:
    if expiry_date is None or _blank(document_number) or _blank(file_url):
        return ComplianceStatus.incomplete

    remaining = days_remaining(expiry_date, now)
    if remaining > EXPIRING_WINDOW_DAYS:
        return ComplianceStatus.valid
    if remaining >= 0:
        return ComplianceStatus.expiring_soon

    grace_end = _as_date(expiry_date) + timedelta(days=max(grace_period_days, 0))
    if _as_date(now) <= grace_end:
        return ComplianceStatus.in_grace
    return ComplianceStatus.penalty_active


# ---------------------------------------------------------------------------
# Fine
# ---------------------------------------------------------------------------


def compute_fine(
    now: date | datetime,
    expiry_date: date | None,
    rule: ResolvedRule,
    status: ComplianceStatus,
) -> Decimal:
    """Accrued fine for a document; zero unless a penalty is active.

    A ``fine_cap`` of zero means uncapped, not "capped at zero".
    """
    if status != ComplianceStatus.penalty_active or expiry_date is None:
        return _ZERO
    rate = as_decimal(rule.fine_per_day)
    if rate <= 0:
        return _ZERO
    days = days_in_penalty(expiry_date, rule.grace_period_days, now)
    if not days:
        return _ZERO

    fine_type = coerce_fine_type(rule.fine_type)
    if fine_type == FineType.one_time:
        fine = rate
    elif fine_type == FineType.monthly:
        fine = math.ceil(days / MONTH_DAYS) * rate
    else:
        fine = days * rate

    cap = as_decimal(rule.fine_cap)
    if cap > 0 and fine > cap:
        fine = cap
    return fine.quantize(_CENT, rounding=ROUND_HALF_UP)


def evaluate(
    *,
    now: date | datetime,
    rule: ResolvedRule,
    expiry_date: date | None,
    issue_date: date | None = None,
    file_url: str | None = None,
    document_number: str | None = None,
) -> ComplianceSnapshot:
    status = compute_status(
        now, issue_date, expiry_date, file_url, document_number, rule.grace_period_days
    )
    return ComplianceSnapshot(
        status=status,
        estimated_fine=compute_fine(now, expiry_date, rule, status),
        days_remaining=days_remaining(expiry_date, now),
        grace_days_remaining=(
            grace_days_remaining(expiry_date, rule.grace_period_days, now)
            if status == ComplianceStatus.in_grace
            else None
        ),
        days_in_penalty=(
            days_in_penalty(expiry_date, rule.grace_period_days, now)
            if status == ComplianceStatus.penalty_active
            else None
        ),
    )


def evaluate_document(document, rule: ResolvedRule, now: date | datetime):
    return evaluate(
        now=now,
        rule=rule,
        expiry_date=document.expiry_date,
        issue_date=document.issue_date,
        file_url=document.file_url,
        document_number=document.document_number,
    )


# ---------------------------------------------------------------------------
# Document types
# ---------------------------------------------------------------------------


def display_name(doc_type: str | None, names: Mapping[str, str] | None = None) -> str:
    """Human name for a type slug.

    ``names`` holds the ``document_types`` table contents and wins over the
    built-in names.
    """
    if not doc_type:
        return "Document"
    if names and names.get(doc_type):
        return names[doc_type]
    for config in MANDATORY_DOCS:
        if config.doc_type == doc_type:
            return config.display_name
    if doc_type in _EXTRA_DISPLAY_NAMES:
        return _EXTRA_DISPLAY_NAMES[doc_type]
    words = doc_type.replace("_", " ").split()
    return " ".join(word[:1].upper() + word[1:] for word in words) or "Document"


def is_mandatory_type(doc_type: str) -> bool:
    return any(config.doc_type == doc_type for config in MANDATORY_DOCS)
