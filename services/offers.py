"""Lender offers: admin records them, the client accepts or declines."""
from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Offer
from models.enums import TERMINAL_STAGES, OfferStatus, Role
from services.applications import load_for_viewer
from services.auth import AuthContext, require_role
from services.errors import InvalidTransitionError, NotFoundError, ValidationError
from services.queries import get_application_or_404, get_lender_or_404
from services.stages import touch
from utils.ids import new_id

logger = logging.getLogger(__name__)


def offer_to_dict(o: Offer) -> dict[str, Any]:
    return {
        "id": o.id,
        "application_id": o.application_id,
        "lender_id": o.lender_id,
        "amount": o.amount,
        "loan_term": o.loan_term,
        "cost_of_funding": o.cost_of_funding,
        "repayments": o.repayments,
        "status": o.status,
        "created_at": o.created_at.isoformat() if o.created_at else None,
    }


async def list_offers(session: AsyncSession, ctx: AuthContext, application_id: str) -> list[Offer]:
    app = await load_for_viewer(session, ctx, application_id)
    result = await session.execute(
        select(Offer).where(Offer.application_id == app.id).order_by(Offer.created_at.desc())
    )
    return list(result.scalars().all())


async def create_offer(
    session: AsyncSession,
    ctx: AuthContext,
    application_id: str,
    lender_id: str,
    amount: float,
    loan_term: Optional[str] = None,
    cost_of_funding: Optional[str] = None,
    repayments: Optional[str] = None,
) -> Offer:
    require_role(ctx, Role.ADMIN)
    if amount is None or amount <= 0:
        raise ValidationError("Offer amount must be positive")
    app = await get_application_or_404(session, application_id)
    await get_lender_or_404(session, lender_id)
    offer = Offer(
        id=new_id("offer"),
        application_id=app.id,
        lender_id=lender_id,
        amount=amount,
        loan_term=loan_term,
        cost_of_funding=cost_of_funding,
        repayments=repayments,
        status=OfferStatus.PENDING.value,
    )
    session.add(offer)
    await session.flush()
    return offer


async def _load_pending_offer(session: AsyncSession, ctx: AuthContext, offer_id: str) -> Offer:
    result = await session.execute(select(Offer).where(Offer.id == offer_id))
    offer = result.scalar_one_or_none()
    if not offer:
        raise NotFoundError("Offer not found")
    await load_for_viewer(session, ctx, offer.application_id)
    if offer.status != OfferStatus.PENDING.value:
        raise InvalidTransitionError(f"This offer has already been {offer.status}")
    return offer


async def accept_offer(session: AsyncSession, ctx: AuthContext, offer_id: str) -> Offer:
    """Copy the offer onto the application as the accepted deal; other pending offers are declined."""
    require_role(ctx, Role.CLIENT)
    offer = await _load_pending_offer(session, ctx, offer_id)
    app = await get_application_or_404(session, offer.application_id)
    if app.stage in {s.value for s in TERMINAL_STAGES}:
        raise InvalidTransitionError("Offers cannot be accepted on a closed application")

    offer.status = OfferStatus.ACCEPTED.value
    others = await session.execute(
        select(Offer).where(
            Offer.application_id == app.id,
            Offer.id != offer.id,
            Offer.status == OfferStatus.PENDING.value,
        )
    )
    for other in others.scalars().all():
        other.status = OfferStatus.DECLINED.value

    app.lender_id = offer.lender_id
    app.offer_amount = offer.amount
    app.offer_loan_term = offer.loan_term
    app.offer_cost_of_funding = offer.cost_of_funding
    app.offer_repayments = offer.repayments
    touch(app)
    await session.flush()
    logger.info("Offer %s accepted on application %s", offer.id, app.id)
    return offer


async def decline_offer(session: AsyncSession, ctx: AuthContext, offer_id: str) -> Offer:
    require_role(ctx, Role.CLIENT)
    offer = await _load_pending_offer(session, ctx, offer_id)
    offer.status = OfferStatus.DECLINED.value
    await session.flush()
    return offer
