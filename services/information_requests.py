"""
Information request sub-machine: admin asks, client answers, admin resolves.

    pending -> client_responded -> resolved
    pending -> resolved

client_responded_at is set exactly when a client response is recorded.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import InformationRequest
from models.enums import InfoRequestStatus, Role, Stage
from services.applications import load_for_viewer
from services.auth import AuthContext, require_role
from services.errors import InvalidTransitionError, ValidationError
from services.queries import get_application_or_404, get_information_request_or_404
from services.stages import apply_transition
from utils.ids import new_id

logger = logging.getLogger(__name__)


def information_request_to_dict(req: InformationRequest) -> dict[str, Any]:
    return {
        "id": req.id,
        "application_id": req.application_id,
        "title": req.title,
        "message": req.message,
        "description": req.description,
        "status": req.status,
        "client_response_text": req.client_response_text,
        "client_responded_at": req.client_responded_at.isoformat() if req.client_responded_at else None,
        "resolved_at": req.resolved_at.isoformat() if req.resolved_at else None,
        "created_at": req.created_at.isoformat() if req.created_at else None,
    }


async def list_information_requests(
    session: AsyncSession, ctx: AuthContext, application_id: str
) -> list[InformationRequest]:
    app = await load_for_viewer(session, ctx, application_id)
    result = await session.execute(
        select(InformationRequest)
        .where(InformationRequest.application_id == app.id)
        .order_by(InformationRequest.created_at.desc())
    )
    return list(result.scalars().all())


async def create_information_request(
    session: AsyncSession,
    ctx: AuthContext,
    application_id: str,
    message: str,
    title: Optional[str] = None,
    description: Optional[str] = None,
) -> InformationRequest:
    require_role(ctx, Role.ADMIN)
    message = (message or "").strip()
    if not message:
        raise ValidationError("Request message cannot be empty")
    app = await get_application_or_404(session, application_id)
    req = InformationRequest(
        id=new_id("ir"),
        application_id=app.id,
        created_by=ctx.user_id,
        title=(title or "").strip() or None,
        message=message,
        description=(description or "").strip() or None,
        status=InfoRequestStatus.PENDING.value,
    )
    session.add(req)
    await session.flush()
    logger.info("Information request %s opened on application %s", req.id, app.id)
    return req


async def respond_to_information_request(
    session: AsyncSession, ctx: AuthContext, request_id: str, response_text: str
) -> InformationRequest:
    require_role(ctx, Role.CLIENT, Role.PARTNER)
    response_text = (response_text or "").strip()
    if not response_text:
        raise ValidationError("Response cannot be empty")
    req = await get_information_request_or_404(session, request_id)
    app = await load_for_viewer(session, ctx, req.application_id)
    if req.status != InfoRequestStatus.PENDING.value:
        raise InvalidTransitionError(f"This request is already {req.status.replace('_', ' ')}")

    req.client_response_text = response_text
    req.client_responded_at = datetime.now(timezone.utc)
    req.status = InfoRequestStatus.CLIENT_RESPONDED.value

    # Answering hands the case back to the caseworker queue
    if app.stage == Stage.INFO_REQUIRED.value:
        apply_transition(app, Stage.SUBMITTED)
    await session.flush()
    return req


async def resolve_information_request(session: AsyncSession, ctx: AuthContext, request_id: str) -> InformationRequest:
    require_role(ctx, Role.ADMIN)
    req = await get_information_request_or_404(session, request_id)
    if req.status == InfoRequestStatus.RESOLVED.value:
        raise InvalidTransitionError("This request is already resolved")
    req.status = InfoRequestStatus.RESOLVED.value
    req.resolved_at = datetime.now(timezone.utc)
    await session.flush()
    return req
