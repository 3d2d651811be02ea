"""
Application reads and writes outside the wizard: role-scoped listing, admin/partner
create and update, and the cascading delete.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import (
    Company,
    Document,
    InformationRequest,
    LenderSubmission,
    LoanApplication,
    Offer,
)
from models.enums import TERMINAL_STAGES, Role, Stage
from services.auth import AuthContext, ensure_can_view, is_visible_to_client, require_role
from services.errors import AccessDeniedError, PersistenceError, ValidationError
from services.queries import get_application_or_404, get_company
from services.stages import apply_transition, check_version, parse_stage, stage_presentation, touch
from services.storage import BlobStore, BlobStoreError
from utils.diff import apply_fields, diff_fields
from utils.ids import new_id

logger = logging.getLogger(__name__)

ADMIN_FIELDS = (
    "company_id",
    "owner_id",
    "prospective_client_email",
    "requested_amount",
    "loan_type",
    "urgency",
    "purpose",
    "description",
    "monthly_revenue",
    "trading_months",
    "workflow_status",
    "is_hidden",
    "admin_notes",
    "lender_id",
    "offer_amount",
    "offer_loan_term",
    "offer_cost_of_funding",
    "offer_repayments",
)
PARTNER_FIELDS = ("requested_amount", "loan_type", "urgency", "purpose", "is_hidden")
# Never shown outside the admin view
INTERNAL_FIELDS = ("admin_notes", "workflow_status")


def application_to_dict(app: LoanApplication, role: Role = Role.ADMIN) -> dict[str, Any]:
    """Role view of an application. The stage badge always comes from stage_presentation."""
    data = {
        "id": app.id,
        "created_by": app.created_by,
        "owner_id": app.owner_id,
        "company_id": app.company_id,
        "prospective_client_email": app.prospective_client_email,
        "requested_amount": app.requested_amount,
        "loan_type": app.loan_type,
        "urgency": app.urgency,
        "purpose": app.purpose,
        "description": app.description,
        "monthly_revenue": app.monthly_revenue,
        "trading_months": app.trading_months,
        "stage": stage_presentation(app.stage),
        "workflow_status": app.workflow_status,
        "is_hidden": app.is_hidden,
        "admin_notes": app.admin_notes,
        "lender_id": app.lender_id,
        "offer_amount": app.offer_amount,
        "offer_loan_term": app.offer_loan_term,
        "offer_cost_of_funding": app.offer_cost_of_funding,
        "offer_repayments": app.offer_repayments,
        "version": app.version,
        "submitted_at": app.submitted_at.isoformat() if app.submitted_at else None,
        "created_at": app.created_at.isoformat() if app.created_at else None,
        "updated_at": app.updated_at.isoformat() if app.updated_at else None,
    }
    if role != Role.ADMIN:
        for key in INTERNAL_FIELDS:
            data.pop(key, None)
    return data


async def load_for_viewer(session: AsyncSession, ctx: AuthContext, application_id: str) -> LoanApplication:
    app = await get_application_or_404(session, application_id)
    company = await get_company(session, app.company_id)
    ensure_can_view(ctx, app, company)
    return app


async def list_applications(
    session: AsyncSession, ctx: AuthContext, stage: Optional[str] = None
) -> list[LoanApplication]:
    stmt = select(LoanApplication).order_by(LoanApplication.created_at.desc())
    if stage:
        stmt = stmt.where(LoanApplication.stage == parse_stage(stage).value)

    if ctx.is_partner:
        referred = select(Company.id).where(Company.referred_by == ctx.user_id)
        if ctx.partner_company_id:
            referred = select(Company.id).where(
                or_(Company.referred_by == ctx.user_id, Company.partner_company_id == ctx.partner_company_id)
            )
        stmt = stmt.where(or_(LoanApplication.created_by == ctx.user_id, LoanApplication.company_id.in_(referred)))
    elif ctx.is_client:
        owned = [LoanApplication.created_by == ctx.user_id, LoanApplication.owner_id == ctx.user_id]
        if ctx.company_id:
            owned.append(LoanApplication.company_id == ctx.company_id)
        stmt = stmt.where(or_(*owned))

    result = await session.execute(stmt)
    apps = list(result.scalars().all())
    if ctx.is_client:
        apps = [a for a in apps if a.created_by == ctx.user_id or is_visible_to_client(a)]
    return apps


async def create_application(session: AsyncSession, ctx: AuthContext, values: dict[str, Any]) -> LoanApplication:
    """Admin or partner creates an application outside the wizard."""
    require_role(ctx, Role.ADMIN, Role.PARTNER)
    stage = parse_stage(values.pop("stage", None) or Stage.CREATED)
    company_id = values.get("company_id")

    if ctx.is_partner:
        if stage != Stage.CREATED:
            raise AccessDeniedError("Partners can only create draft applications")
        company = await get_company(session, company_id)
        if company is None or company.referred_by != ctx.user_id:
            raise AccessDeniedError("You can only create applications for companies you referred")
        values = {k: v for k, v in values.items() if k in PARTNER_FIELDS + ("company_id",)}
    else:
        values = {k: v for k, v in values.items() if k in ADMIN_FIELDS}
        if stage in TERMINAL_STAGES:
            raise ValidationError("A new application cannot start in a terminal stage")

    if not values.get("requested_amount") or values["requested_amount"] <= 0:
        raise ValidationError("Requested amount must be positive")

    app = LoanApplication(
        id=new_id("app"),
        created_by=ctx.user_id,
        stage=Stage.CREATED.value,
        is_hidden=values.pop("is_hidden", True),
        version=1,
    )
    apply_fields(app, diff_fields(app, values))
    session.add(app)
    if stage != Stage.CREATED:
        apply_transition(app, stage)
    await session.flush()
    logger.info("Application %s created by %s %s", app.id, ctx.role.value, ctx.user_id)
    return app


async def update_application(
    session: AsyncSession,
    ctx: AuthContext,
    application_id: str,
    values: dict[str, Any],
    expected_version: Optional[int] = None,
) -> LoanApplication:
    """Admin may edit every commercial/workflow field; partners only a few, and only on drafts."""
    app = await load_for_viewer(session, ctx, application_id)
    if ctx.is_admin:
        allowed = ADMIN_FIELDS
    elif ctx.is_partner:
        if app.stage != Stage.CREATED.value:
            raise AccessDeniedError("Partners can only edit applications that have not been submitted")
        allowed = PARTNER_FIELDS
    else:
        raise AccessDeniedError("Clients update applications through the intake wizard")

    rejected = sorted(set(values) - set(allowed))
    if rejected:
        raise AccessDeniedError(f"Not allowed to update: {', '.join(rejected)}")
    check_version(app, expected_version)

    if "requested_amount" in values and values["requested_amount"] is not None and values["requested_amount"] <= 0:
        raise ValidationError("Requested amount must be positive")
    changes = diff_fields(app, values)
    if apply_fields(app, changes):
        touch(app)
        await session.flush()
    return app


async def delete_application(
    session: AsyncSession, ctx: AuthContext, application_id: str, blob_store: BlobStore
) -> None:
    """
    Cascading delete. Blobs go first: if their removal fails nothing else is deleted and
    the call can simply be retried. Rows are then deleted in the request transaction.
    """
    require_role(ctx, Role.ADMIN)
    app = await get_application_or_404(session, application_id)

    docs = (await session.execute(select(Document).where(Document.application_id == app.id))).scalars().all()
    paths = [d.storage_path for d in docs if d.storage_path]
    if paths:
        try:
            await blob_store.remove(paths)
        except BlobStoreError as e:
            logger.error("Blob removal failed while deleting application %s: %s", app.id, e)
            raise PersistenceError(
                f"Could not remove documents for application {app.id}; nothing was deleted. Try again."
            ) from e

    try:
        for model in (Document, InformationRequest, LenderSubmission, Offer):
            await session.execute(delete(model).where(model.application_id == app.id))
        await session.delete(app)
        await session.flush()
    except Exception as e:
        logger.error("Row deletion failed for application %s after blob removal: %s", app.id, e)
        raise PersistenceError(
            f"Documents for application {app.id} were removed but its records were not. Try again."
        ) from e
    logger.info("Deleted application %s with %d documents", application_id, len(docs))
