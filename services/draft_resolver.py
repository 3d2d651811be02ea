"""
Draft Resolver: locate the caller's in-progress application (or start fresh) and merge
profile, company and application rows into one wizard form.

Entry into the wizard never fails on a lookup error: whatever was loaded so far is
returned at step 1 with ``degraded`` set.
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models import Company, Document, LoanApplication, Profile
from models.enums import FundingPurpose, PropertyStatus, Stage
from schemas.wizard import WizardForm, WizardSnapshot
from services.auth import AuthContext, ensure_can_view
from services.errors import NotFoundError
from services.queries import get_application, get_company, get_profile
from services.stages import stage_presentation

logger = logging.getLogger(__name__)

TOTAL_STEPS = 5


def clamp_step(step: Optional[int]) -> int:
    return max(1, min(TOTAL_STEPS, step or 1))


def _enum_or_none(enum_cls, value):
    try:
        return enum_cls(value) if value else None
    except ValueError:
        return None


def _merge_profile(form: WizardForm, profile: Profile) -> None:
    # Profile is the most specific source for personal fields
    form.first_name = profile.first_name or form.first_name
    form.last_name = profile.last_name or form.last_name
    form.phone = profile.phone or form.phone
    form.date_of_birth = profile.date_of_birth or form.date_of_birth
    form.property_status = _enum_or_none(PropertyStatus, profile.property_status) or form.property_status


def _merge_company(form: WizardForm, company: Company) -> None:
    form.company_id = company.id
    form.company_name = company.name
    form.company_number = company.company_number
    form.industry = company.industry
    form.website = company.website
    form.address_line_1 = company.address_line_1
    form.address_line_2 = company.address_line_2
    form.city = company.city
    form.postcode = company.postcode
    form.country = company.country


def _merge_application(form: WizardForm, app: LoanApplication) -> None:
    form.application_id = app.id
    form.funding_needed = app.requested_amount
    form.funding_purpose = _enum_or_none(FundingPurpose, app.purpose)
    form.brief_description = app.description


async def find_draft(session: AsyncSession, user_id: str) -> Optional[LoanApplication]:
    """Most recent stage=created application of the caller. Older ones are reported as orphans."""
    result = await session.execute(
        select(LoanApplication)
        .where(LoanApplication.created_by == user_id, LoanApplication.stage == Stage.CREATED.value)
        .order_by(LoanApplication.created_at.desc(), LoanApplication.updated_at.desc())
    )
    drafts = list(result.scalars().all())
    if len(drafts) > 1:
        logger.warning(
            "User %s has %d drafts; resuming %s, orphaned: %s",
            user_id,
            len(drafts),
            drafts[0].id,
            ", ".join(d.id for d in drafts[1:]),
        )
    return drafts[0] if drafts else None


async def resolve_draft(
    session: AsyncSession, ctx: AuthContext, application_id: Optional[str] = None
) -> WizardSnapshot:
    snapshot = WizardSnapshot()
    form = snapshot.form
    try:
        profile = await get_profile(session, ctx.user_id)
        if profile:
            _merge_profile(form, profile)
            snapshot.step = clamp_step(profile.onboarding_step)
            snapshot.completed = bool(profile.onboarding_completed)

        company = await get_company(session, profile.company_id if profile else None)
        if company is not None:
            _merge_company(form, company)

        if application_id:
            app = await get_application(session, application_id)
            if app is None:
                raise NotFoundError(f"Application {application_id} not found")
        else:
            app = await find_draft(session, ctx.user_id)

        if app is not None:
            app_company = company
            if app_company is None and app.company_id:
                app_company = await get_company(session, app.company_id)
            ensure_can_view(ctx, app, app_company)
            if company is None and app_company is not None:
                _merge_company(form, app_company)
            _merge_application(form, app)
            snapshot.stage = stage_presentation(app.stage)
            docs = await session.execute(
                select(Document).where(Document.application_id == app.id).order_by(Document.created_at)
            )
            snapshot.documents = [
                {"id": d.id, "category": d.category, "original_filename": d.original_filename}
                for d in docs.scalars().all()
            ]
    except (SQLAlchemyError, NotFoundError) as e:
        logger.warning("Draft resolution degraded for user %s: %s", ctx.user_id, e)
        if isinstance(e, SQLAlchemyError):
            await session.rollback()
        snapshot.step = 1
        snapshot.degraded = True
    return snapshot
