"""Lender panel maintenance. Criteria are validated and normalized before every write."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Lender, LenderSubmission, Offer
from models.enums import Role
from services.auth import AuthContext, require_role
from services.eligibility import normalize_criteria
from services.errors import ValidationError
from services.queries import get_lender_or_404
from utils.diff import apply_fields, diff_fields
from utils.ids import new_id

logger = logging.getLogger(__name__)

CONTACT_FIELDS = (
    "name",
    "status",
    "contact_email",
    "contact_phone",
    "notes",
    "submission_method",
    "api_endpoint",
    "submission_email",
)
CRITERIA_FIELDS = (
    "min_trading_months",
    "min_monthly_revenue",
    "absolute_min_loan",
    "absolute_max_loan",
    "accepted_business_types",
    "prohibited_industries",
    "requires_filed_accounts",
    "min_filed_accounts_years",
    "accepts_ccjs",
    "max_ccj_value",
    "requires_homeowner",
    "homeowner_min_loan",
    "requires_card_payments",
    "min_card_payment_percentage",
    "requires_existing_lending",
    "max_existing_lenders",
    "min_term_months",
    "max_term_months",
    "requires_profitable",
    "min_profit_margin_percentage",
    "requires_positive_net_assets",
    "min_net_assets_ratio",
    "is_eligible_panel",
)


def lender_to_dict(lender: Lender) -> dict[str, Any]:
    data = {"id": lender.id}
    for field in CONTACT_FIELDS + CRITERIA_FIELDS:
        data[field] = getattr(lender, field)
    data["created_at"] = lender.created_at.isoformat() if lender.created_at else None
    data["updated_at"] = lender.updated_at.isoformat() if lender.updated_at else None
    return data


def _criteria_snapshot(lender: Lender) -> dict[str, Any]:
    return {field: getattr(lender, field) for field in CRITERIA_FIELDS}


async def list_lenders(session: AsyncSession, status: str | None = None) -> list[Lender]:
    stmt = select(Lender).order_by(Lender.name)
    if status:
        stmt = stmt.where(Lender.status == status)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_lender(session: AsyncSession, ctx: AuthContext, values: dict[str, Any]) -> Lender:
    require_role(ctx, Role.ADMIN)
    if not (values.get("name") or "").strip():
        raise ValidationError("Lender name is required")
    values = {k: v for k, v in values.items() if k in CONTACT_FIELDS + CRITERIA_FIELDS}
    values.update(normalize_criteria({k: v for k, v in values.items() if k in CRITERIA_FIELDS}))

    lender = Lender(
        id=new_id("lender"),
        status="active",
        submission_method="email",
        requires_filed_accounts=False,
        accepts_ccjs=False,
        requires_homeowner=False,
        requires_card_payments=False,
        requires_existing_lending=False,
        requires_profitable=False,
        requires_positive_net_assets=False,
        is_eligible_panel=False,
    )
    apply_fields(lender, diff_fields(lender, values))
    session.add(lender)
    await session.flush()
    logger.info("Lender %s (%s) created", lender.id, lender.name)
    return lender


async def update_lender(session: AsyncSession, ctx: AuthContext, lender_id: str, values: dict[str, Any]) -> Lender:
    require_role(ctx, Role.ADMIN)
    lender = await get_lender_or_404(session, lender_id)
    unknown = sorted(set(values) - set(CONTACT_FIELDS + CRITERIA_FIELDS))
    if unknown:
        raise ValidationError(f"Unknown lender field(s): {', '.join(unknown)}")
    if "name" in values and not (values["name"] or "").strip():
        raise ValidationError("Lender name is required")

    criteria_in = {k: v for k, v in values.items() if k in CRITERIA_FIELDS}
    if criteria_in:
        # Rules span several fields, so validate the merged result
        merged = {**_criteria_snapshot(lender), **criteria_in}
        values = {**values, **normalize_criteria(merged)}
    changes = diff_fields(lender, values)
    if apply_fields(lender, changes):
        await session.flush()
        logger.debug("Lender %s updated: %s", lender.id, sorted(changes))
    return lender


async def _has_offers(session: AsyncSession, lender_id: str) -> bool:
    result = await session.execute(select(Offer.id).where(Offer.lender_id == lender_id).limit(1))
    return result.first() is not None


async def delete_lender(session: AsyncSession, ctx: AuthContext, lender_id: str) -> None:
    """Lenders with submissions or offers are deactivated rather than deleted."""
    require_role(ctx, Role.ADMIN)
    lender = await get_lender_or_404(session, lender_id)
    referenced = await session.execute(
        select(LenderSubmission.id).where(LenderSubmission.lender_id == lender.id).limit(1)
    )
    if referenced.first() is not None or await _has_offers(session, lender.id):
        lender.status = "inactive"
        logger.info("Lender %s is referenced; marked inactive instead of deleting", lender.id)
    else:
        await session.delete(lender)
    await session.flush()
