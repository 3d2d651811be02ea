"""Companies created by partners (referrals) or admins, and the referral invariant."""
from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Company
from models.enums import Role
from services.auth import AuthContext, require_role
from services.errors import AccessDeniedError, NotFoundError, ValidationError
from services.queries import get_company, get_profile
from utils.diff import apply_fields, diff_fields, present
from utils.ids import new_id

logger = logging.getLogger(__name__)


def company_to_dict(c: Company) -> dict[str, Any]:
    return {
        "id": c.id,
        "name": c.name,
        "company_number": c.company_number,
        "industry": c.industry,
        "website": c.website,
        "address_line_1": c.address_line_1,
        "address_line_2": c.address_line_2,
        "city": c.city,
        "postcode": c.postcode,
        "country": c.country,
        "referred_by": c.referred_by,
        "partner_company_id": c.partner_company_id,
    }


async def check_referral(
    session: AsyncSession, referred_by: Optional[str], partner_company_id: Optional[str]
) -> None:
    """referred_by must be a PARTNER profile of the same partner company."""
    if not referred_by:
        return
    partner = await get_profile(session, referred_by)
    if partner is None or partner.role != Role.PARTNER.value:
        raise ValidationError("Referring user must be a partner")
    if partner.partner_company_id != partner_company_id:
        raise ValidationError("Referring partner does not belong to the company's partner firm")


async def create_company(session: AsyncSession, ctx: AuthContext, values: dict[str, Any]) -> Company:
    require_role(ctx, Role.ADMIN, Role.PARTNER)
    if not (values.get("name") or "").strip():
        raise ValidationError("Company name is required")
    if ctx.is_partner:
        # Partners always refer the companies they create
        values = {**values, "referred_by": ctx.user_id, "partner_company_id": ctx.partner_company_id}
    await check_referral(session, values.get("referred_by"), values.get("partner_company_id"))

    company = Company(id=new_id("co"), country="United Kingdom")
    apply_fields(company, diff_fields(company, present(values)))
    session.add(company)
    await session.flush()
    logger.info("Company %s created by %s %s", company.id, ctx.role.value, ctx.user_id)
    return company


async def update_company(session: AsyncSession, ctx: AuthContext, company_id: str, values: dict[str, Any]) -> Company:
    require_role(ctx, Role.ADMIN, Role.PARTNER)
    company = await get_company(session, company_id)
    if company is None:
        raise NotFoundError("Company not found")
    if ctx.is_partner:
        if company.referred_by != ctx.user_id:
            raise AccessDeniedError("You can only edit companies you referred")
        values = {k: v for k, v in values.items() if k not in ("referred_by", "partner_company_id")}
    changes = diff_fields(company, values)
    if "referred_by" in changes or "partner_company_id" in changes:
        await check_referral(
            session,
            changes.get("referred_by", company.referred_by),
            changes.get("partner_company_id", company.partner_company_id),
        )
    apply_fields(company, changes)
    await session.flush()
    return company


async def list_companies(session: AsyncSession, ctx: AuthContext) -> list[Company]:
    stmt = select(Company).order_by(Company.name)
    if ctx.is_partner:
        conds = [Company.referred_by == ctx.user_id]
        if ctx.partner_company_id:
            conds.append(Company.partner_company_id == ctx.partner_company_id)
        stmt = stmt.where(or_(*conds))
    elif ctx.is_client:
        if not ctx.company_id:
            return []
        stmt = stmt.where(Company.id == ctx.company_id)
    result = await session.execute(stmt)
    return list(result.scalars().all())
