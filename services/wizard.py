"""
Intake wizard: five linear steps, each validated before advancing, each advance performing
a diff-before-write of the rows the step owns.

    1 Company -> 2 Personal Details -> 3 Funding Request -> 4 Documents -> 5 Review

Backward navigation is always allowed and never writes. Save & Exit performs the same
diffed writes without validation or stage change. Submission is the only stage move the
wizard can make (created -> submitted).
"""
from __future__ import annotations

import logging
from datetime import date
from enum import IntEnum
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from models import Company, LoanApplication, Profile
from models.enums import DocumentCategory, LoanType, Role, Stage
from schemas.wizard import WizardForm, WizardSnapshot
from services.auth import AuthContext, require_role
from services.documents import has_document
from services.errors import AccessDeniedError, InvalidTransitionError, ValidationError
from services.queries import get_application_or_404, get_company, get_profile
from services.registry import CompanyRegistry
from services.stages import apply_transition, stage_presentation, touch
from services.validation import is_adult, is_valid_uk_phone
from utils.diff import apply_fields, diff_fields, present
from utils.ids import new_id

logger = logging.getLogger(__name__)


class WizardStep(IntEnum):
    COMPANY = 1
    PERSONAL_DETAILS = 2
    FUNDING_REQUEST = 3
    DOCUMENTS = 4
    REVIEW = 5


MANUAL_DIRECTOR = "manual"

STEP_LABELS = {
    WizardStep.COMPANY: "Your Company",
    WizardStep.PERSONAL_DETAILS: "Your Details",
    WizardStep.FUNDING_REQUEST: "Funding Request",
    WizardStep.DOCUMENTS: "Documents",
    WizardStep.REVIEW: "Review",
}


def _parse_step(step: int) -> WizardStep:
    try:
        return WizardStep(step)
    except ValueError:
        raise ValidationError(f"Unknown wizard step {step}") from None


def validate_step(step: int, form: WizardForm, today: Optional[date] = None) -> None:
    """Field-level gate for a step. Step 4 additionally needs a bank statement (checked in advance_step)."""
    step = _parse_step(step)
    if step == WizardStep.COMPANY:
        if not (form.company_name or "").strip() or not (form.industry or "").strip():
            raise ValidationError("Please provide your company name and industry")
        if not (form.first_name or "").strip() or not (form.last_name or "").strip():
            raise ValidationError("Please select yourself as a director or enter your name")
    elif step == WizardStep.PERSONAL_DETAILS:
        if not all([(form.first_name or "").strip(), (form.last_name or "").strip(), form.phone,
                    form.date_of_birth, form.property_status]):
            raise ValidationError("Please fill in all required fields")
        if not is_valid_uk_phone(form.phone):
            raise ValidationError("Please enter a valid UK phone number")
        if not is_adult(form.date_of_birth, today):
            raise ValidationError("You must be 18 or older to apply")
    elif step == WizardStep.FUNDING_REQUEST:
        if not form.funding_needed or form.funding_needed <= 0:
            raise ValidationError("Please enter a valid funding amount")
        if not form.funding_purpose:
            raise ValidationError("Please select a funding purpose")


async def match_director(registry: Optional[CompanyRegistry], form: WizardForm) -> bool:
    """
    Resolve the director chosen from the registry's officer list into first/last name.

    Returns True when the identity was matched against the registry. Manual entry (no
    selection, "manual", no company number, or the registry unavailable) returns False
    and leaves the typed names to validate_step.
    """
    choice = (form.selected_director or "").strip()
    if not choice or choice.lower() == MANUAL_DIRECTOR or not form.company_number or registry is None:
        return False
    details = await registry.get_details(form.company_number)
    if details is None:
        logger.warning("Registry unavailable for %s; accepting manual director entry", form.company_number)
        return False
    for officer in details.get("officers") or []:
        if (officer.get("name") or "").strip().lower() == choice.lower():
            form.first_name = officer.get("first_name")
            form.last_name = officer.get("last_name")
            return True
    raise ValidationError("The selected director is not an active officer of this company")


def previous_step(step: int) -> int:
    return max(WizardStep.COMPANY, _parse_step(step) - 1)


async def _get_or_create_profile(session: AsyncSession, ctx: AuthContext) -> Profile:
    profile = await get_profile(session, ctx.user_id)
    if profile is None:
        profile = Profile(id=ctx.user_id, role=ctx.role.value, onboarding_step=1, onboarding_completed=False,
                          is_primary_director=False)
        session.add(profile)
        await session.flush()
        logger.info("Created missing profile for %s", ctx.user_id)
    return profile


async def _load_own_draft(session: AsyncSession, user_id: str, application_id: str) -> LoanApplication:
    app = await get_application_or_404(session, application_id)
    if app.created_by != user_id:
        raise AccessDeniedError("You do not have access to this application")
    return app


def _personal_values(form: WizardForm) -> dict:
    return present({
        "first_name": form.first_name,
        "last_name": form.last_name,
        "phone": form.phone,
        "date_of_birth": form.date_of_birth,
        "property_status": form.property_status,
    })


async def save_personal_details(session: AsyncSession, profile: Profile, form: WizardForm) -> bool:
    changes = diff_fields(profile, _personal_values(form))
    if apply_fields(profile, changes):
        await session.flush()
        logger.debug("Profile %s updated: %s", profile.id, sorted(changes))
    return bool(changes)


async def save_company(session: AsyncSession, profile: Profile, form: WizardForm) -> Company:
    """Create the caller's company, or write only the fields that changed."""
    values = present({
        "name": form.company_name,
        "company_number": form.company_number,
        "industry": form.industry,
        "website": form.website,
        "address_line_1": form.address_line_1,
        "address_line_2": form.address_line_2,
        "city": form.city,
        "postcode": form.postcode,
        "country": form.country,
    })
    company = await get_company(session, profile.company_id)
    if company is not None:
        changes = diff_fields(company, values)
        if apply_fields(company, changes):
            logger.debug("Company %s updated: %s", company.id, sorted(changes))
    else:
        company = Company(id=new_id("co"), country="United Kingdom")
        apply_fields(company, diff_fields(company, values))
        session.add(company)
        await session.flush()
        profile.company_id = company.id
        profile.is_primary_director = True
        logger.info("Company %s created for profile %s", company.id, profile.id)

    # Director identity lives on the profile
    apply_fields(profile, diff_fields(profile, present({"first_name": form.first_name, "last_name": form.last_name})))

    if form.application_id:
        app = await _load_own_draft(session, profile.id, form.application_id)
        if app.company_id is None:
            app.company_id = company.id
            touch(app)
    await session.flush()
    form.company_id = company.id
    return company


async def save_application(session: AsyncSession, profile: Profile, form: WizardForm) -> LoanApplication:
    """Create the draft application, or write only the funding fields that changed."""
    values = {
        "requested_amount": form.funding_needed,
        "purpose": form.funding_purpose,
        "description": form.brief_description,
    }
    if form.application_id:
        app = await _load_own_draft(session, profile.id, form.application_id)
        if app.stage != Stage.CREATED.value:
            raise InvalidTransitionError("This application has already been submitted and can no longer be edited")
        changes = diff_fields(app, present(values))
        if apply_fields(app, changes):
            touch(app)
            await session.flush()
        return app

    app = LoanApplication(
        id=new_id("app"),
        created_by=profile.id,
        owner_id=profile.id,
        company_id=profile.company_id,
        stage=Stage.CREATED.value,
        loan_type=LoanType.TERM_LOAN.value,
        is_hidden=False,
        version=1,
    )
    apply_fields(app, diff_fields(app, present(values)))
    session.add(app)
    await session.flush()
    form.application_id = app.id
    logger.info("Draft application %s created for %s", app.id, profile.id)
    return app


async def _snapshot(session: AsyncSession, step: int, form: WizardForm) -> WizardSnapshot:
    stage = None
    if form.application_id:
        app = await get_application_or_404(session, form.application_id)
        stage = stage_presentation(app.stage)
    return WizardSnapshot(step=step, form=form, stage=stage)


async def advance_step(
    session: AsyncSession,
    ctx: AuthContext,
    step: int,
    form: WizardForm,
    today: Optional[date] = None,
    registry: Optional[CompanyRegistry] = None,
) -> WizardSnapshot:
    """Validate ``step``, persist what it owns (diffed), and move to the next step."""
    require_role(ctx, Role.CLIENT)
    current = _parse_step(step)
    if current == WizardStep.REVIEW:
        return await submit_application(session, ctx, form)

    if current == WizardStep.COMPANY:
        await match_director(registry, form)
    validate_step(current, form, today)
    profile = await _get_or_create_profile(session, ctx)

    if current == WizardStep.COMPANY:
        await save_company(session, profile, form)
    elif current == WizardStep.PERSONAL_DETAILS:
        await save_personal_details(session, profile, form)
    elif current == WizardStep.FUNDING_REQUEST:
        await save_application(session, profile, form)
    elif current == WizardStep.DOCUMENTS:
        if not form.application_id:
            # Created on the fly from complete funding data; the caller stays on step 4 to upload
            try:
                validate_step(WizardStep.FUNDING_REQUEST, form)
            except ValidationError:
                raise ValidationError("Please complete the funding request step first") from None
            await save_application(session, profile, form)
            if profile.onboarding_step != current:
                profile.onboarding_step = int(current)
            await session.flush()
            return await _snapshot(session, current, form)
        await _load_own_draft(session, ctx.user_id, form.application_id)
        if not await has_document(session, form.application_id, DocumentCategory.BANK_STATEMENTS):
            raise ValidationError("Please upload at least one bank statement to continue")

    next_step = current + 1
    if profile.onboarding_step != next_step:
        profile.onboarding_step = next_step
    await session.flush()
    return await _snapshot(session, next_step, form)


async def save_and_exit(session: AsyncSession, ctx: AuthContext, step: int, form: WizardForm) -> WizardSnapshot:
    """Persist whatever the form holds (diffed) without validating or changing stage."""
    require_role(ctx, Role.CLIENT)
    current = _parse_step(step)
    profile = await _get_or_create_profile(session, ctx)
    await save_personal_details(session, profile, form)
    if (form.company_name or "").strip():
        await save_company(session, profile, form)
    if form.funding_needed and form.funding_needed > 0:
        await save_application(session, profile, form)
    profile.onboarding_step = int(current)
    await session.flush()
    logger.info("Wizard progress saved for %s at step %d", ctx.user_id, current)
    return await _snapshot(session, current, form)


async def submit_application(session: AsyncSession, ctx: AuthContext, form: WizardForm) -> WizardSnapshot:
    """Final submission: created -> submitted, then one more diffed profile write."""
    require_role(ctx, Role.CLIENT)
    if not form.application_id:
        raise ValidationError("Please complete all steps before submitting")
    app = await _load_own_draft(session, ctx.user_id, form.application_id)
    if app.stage == Stage.SUBMITTED.value:
        return await _snapshot(session, WizardStep.REVIEW, form)
    if app.stage != Stage.CREATED.value:
        raise InvalidTransitionError("Only draft applications can be submitted")
    # Earlier step gates are re-checked against what was persisted
    if not app.requested_amount or app.requested_amount <= 0 or not app.purpose:
        raise ValidationError("Please complete the funding request step first")
    if not await has_document(session, app.id, DocumentCategory.BANK_STATEMENTS):
        raise ValidationError("Please upload at least one bank statement to continue")

    apply_transition(app, Stage.SUBMITTED)
    app.is_hidden = False

    profile = await _get_or_create_profile(session, ctx)
    await save_personal_details(session, profile, form)
    profile.onboarding_step = int(WizardStep.REVIEW)
    profile.onboarding_completed = True
    await session.flush()
    logger.info("Application %s submitted by %s", app.id, ctx.user_id)
    snapshot = await _snapshot(session, WizardStep.REVIEW, form)
    snapshot.completed = True
    return snapshot
