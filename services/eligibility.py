"""
Lender eligibility. The criteria live on the lender rows; ranking applications against
them is an external matching subsystem, consumed only through EligibilityMatcher.
"""
from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from models import Lender, LoanApplication
from services.errors import ValidationError


class EligibilityMatcher(Protocol):
    async def match(self, application: LoanApplication, lenders: Sequence[Lender]) -> list[Lender]: ...


class PassThroughMatcher:
    """Default matcher: every candidate lender stays selectable."""

    async def match(self, application: LoanApplication, lenders: Sequence[Lender]) -> list[Lender]:
        return list(lenders)


# Numeric criteria that only apply when their flag is on
_GATED_CRITERIA = {
    "requires_filed_accounts": "min_filed_accounts_years",
    "accepts_ccjs": "max_ccj_value",
    "requires_homeowner": "homeowner_min_loan",
    "requires_card_payments": "min_card_payment_percentage",
}


def _get(criteria: dict[str, Any], key: str) -> Optional[Any]:
    value = criteria.get(key)
    return None if value in ("", []) else value


def normalize_criteria(criteria: dict[str, Any]) -> dict[str, Any]:
    """
    Validate lender criteria and clear values that do not apply.
    Raises ValidationError with the first rule broken.
    """
    out = dict(criteria)
    min_loan, max_loan = _get(out, "absolute_min_loan"), _get(out, "absolute_max_loan")
    if min_loan is not None and max_loan is not None and min_loan >= max_loan:
        raise ValidationError("Minimum loan amount must be less than maximum loan amount")
    min_term, max_term = _get(out, "min_term_months"), _get(out, "max_term_months")
    if min_term is not None and max_term is not None and min_term >= max_term:
        raise ValidationError("Minimum term must be less than maximum term")
    if out.get("requires_filed_accounts") and (_get(out, "min_filed_accounts_years") or 0) < 1:
        raise ValidationError("If filed accounts are required, minimum years must be at least 1")
    if out.get("requires_card_payments") and (_get(out, "min_card_payment_percentage") or 0) <= 0:
        raise ValidationError("If card payments are required, minimum percentage must be greater than 0")

    for flag, dependent in _GATED_CRITERIA.items():
        if flag in out and not out[flag]:
            out[dependent] = None
    for list_key in ("accepted_business_types", "prohibited_industries"):
        if list_key in out and not out[list_key]:
            out[list_key] = None
    return out
