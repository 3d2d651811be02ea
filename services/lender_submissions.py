"""
Lender submission sub-machine: one row per (application, lender), created only by the
batch send action, then moved by delivery reports from the notification collaborator.

    pending -> sent -> acknowledged
    pending/sent -> failed | retry
    failed -> retry (operator) -> sent | failed
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from models import Lender, LenderSubmission, LoanApplication
from models.enums import TERMINAL_STAGES, Role, SubmissionMethod, SubmissionStatus
from services.auth import AuthContext, require_role
from services.eligibility import EligibilityMatcher, PassThroughMatcher
from services.errors import InvalidTransitionError, ValidationError
from services.queries import get_application_or_404, get_submission_or_404
from services.stages import format_stage, touch
from utils.ids import new_id

logger = logging.getLogger(__name__)

WORKFLOW_SUBMITTED_TO_LENDERS = "submitted_to_lenders"

ALLOWED_TRANSITIONS: dict[SubmissionStatus, frozenset[SubmissionStatus]] = {
    SubmissionStatus.PENDING: frozenset({SubmissionStatus.SENT, SubmissionStatus.FAILED, SubmissionStatus.RETRY}),
    SubmissionStatus.SENT: frozenset({SubmissionStatus.ACKNOWLEDGED, SubmissionStatus.FAILED, SubmissionStatus.RETRY}),
    SubmissionStatus.RETRY: frozenset({SubmissionStatus.SENT, SubmissionStatus.FAILED}),
    SubmissionStatus.FAILED: frozenset({SubmissionStatus.RETRY}),
    SubmissionStatus.ACKNOWLEDGED: frozenset(),
}


def submission_to_dict(s: LenderSubmission) -> dict[str, Any]:
    return {
        "id": s.id,
        "application_id": s.application_id,
        "lender_id": s.lender_id,
        "method": s.method,
        "status": s.status,
        "sent_at": s.sent_at.isoformat() if s.sent_at else None,
        "retry_count": s.retry_count,
        "last_error": s.last_error,
        "created_at": s.created_at.isoformat() if s.created_at else None,
    }


async def submitted_lender_ids(session: AsyncSession, application_id: str) -> set[str]:
    result = await session.execute(
        select(LenderSubmission.lender_id).where(LenderSubmission.application_id == application_id)
    )
    return set(result.scalars().all())


async def list_submissions(session: AsyncSession, application_id: str) -> list[LenderSubmission]:
    result = await session.execute(
        select(LenderSubmission)
        .where(LenderSubmission.application_id == application_id)
        .order_by(LenderSubmission.created_at.desc())
    )
    return list(result.scalars().all())


async def available_lenders(
    session: AsyncSession,
    ctx: AuthContext,
    application_id: str,
    matcher: Optional[EligibilityMatcher] = None,
) -> list[Lender]:
    """Lenders that can still be selected for this application."""
    require_role(ctx, Role.ADMIN)
    app = await get_application_or_404(session, application_id)
    already = await submitted_lender_ids(session, app.id)
    result = await session.execute(select(Lender).where(Lender.status == "active").order_by(Lender.name))
    candidates = [lender for lender in result.scalars().all() if lender.id not in already]
    return await (matcher or PassThroughMatcher()).match(app, candidates)


def _check_stage_policy(app: LoanApplication) -> None:
    if app.stage in {s.value for s in TERMINAL_STAGES} and not settings.allow_submissions_for_terminal_stages:
        raise InvalidTransitionError(
            f"Application is {format_stage(app.stage)}; it can no longer be sent to lenders"
        )


async def send_to_lenders(
    session: AsyncSession, ctx: AuthContext, application_id: str, lender_ids: Sequence[str]
) -> list[LenderSubmission]:
    """
    Create one pending row per lender not yet submitted-to. All rows are inserted in one
    flush, so the batch is all-or-nothing; lenders already present are filtered out.
    """
    require_role(ctx, Role.ADMIN)
    requested = list(dict.fromkeys(lid for lid in lender_ids if lid))
    if not requested:
        raise ValidationError("Select at least one lender")

    app = await get_application_or_404(session, application_id)
    _check_stage_policy(app)

    result = await session.execute(select(Lender).where(Lender.id.in_(requested)))
    lenders = {lender.id: lender for lender in result.scalars().all()}
    unknown = [lid for lid in requested if lid not in lenders]
    if unknown:
        raise ValidationError(f"Unknown lender(s): {', '.join(unknown)}")

    already = await submitted_lender_ids(session, app.id)
    new_ids = [lid for lid in requested if lid not in already]
    if not new_ids:
        logger.info("Application %s already submitted to all %d selected lenders", app.id, len(requested))
        return []

    rows = [
        LenderSubmission(
            id=new_id("sub"),
            application_id=app.id,
            lender_id=lid,
            method=lenders[lid].submission_method or SubmissionMethod.EMAIL.value,
            status=SubmissionStatus.PENDING.value,
            retry_count=0,
        )
        for lid in new_ids
    ]
    session.add_all(rows)
    app.workflow_status = WORKFLOW_SUBMITTED_TO_LENDERS
    touch(app)
    await session.flush()
    logger.info(
        "Application %s sent to %d lenders (%d skipped as already submitted)",
        app.id,
        len(rows),
        len(requested) - len(rows),
    )
    return rows


def _transition(submission: LenderSubmission, target: SubmissionStatus) -> None:
    current = SubmissionStatus(submission.status)
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(f"Lender submission cannot move from {current.value} to {target.value}")
    submission.status = target.value
    submission.updated_at = datetime.now(timezone.utc)


async def record_delivery(
    session: AsyncSession, submission_id: str, outcome: SubmissionStatus | str, error: Optional[str] = None
) -> LenderSubmission:
    """Delivery report from the notification collaborator. Failures keep the row."""
    try:
        outcome = SubmissionStatus(outcome)
    except ValueError:
        raise ValidationError(f"Unknown delivery outcome '{outcome}'") from None
    if outcome == SubmissionStatus.PENDING:
        raise ValidationError("A delivery report cannot move a submission back to pending")

    submission = await get_submission_or_404(session, submission_id)
    _transition(submission, outcome)
    if outcome == SubmissionStatus.SENT:
        submission.sent_at = datetime.now(timezone.utc)
        submission.last_error = None
    elif outcome in (SubmissionStatus.FAILED, SubmissionStatus.RETRY):
        submission.last_error = error or "Delivery failed"
        logger.warning("Submission %s to lender %s %s: %s", submission.id, submission.lender_id, outcome.value,
                       submission.last_error)
    await session.flush()
    return submission


async def retry_submission(session: AsyncSession, ctx: AuthContext, submission_id: str) -> LenderSubmission:
    """Operator-triggered retry of a failed delivery."""
    require_role(ctx, Role.ADMIN)
    submission = await get_submission_or_404(session, submission_id)
    app = await get_application_or_404(session, submission.application_id)
    _check_stage_policy(app)
    _transition(submission, SubmissionStatus.RETRY)
    submission.retry_count = (submission.retry_count or 0) + 1
    await session.flush()
    logger.info("Submission %s queued for retry #%d", submission.id, submission.retry_count)
    return submission


async def list_lender_submissions(session: AsyncSession, lender_id: str) -> list[dict[str, Any]]:
    """Submissions made to one lender, with a summary of each application."""
    result = await session.execute(
        select(LenderSubmission, LoanApplication)
        .join(LoanApplication, LoanApplication.id == LenderSubmission.application_id)
        .where(LenderSubmission.lender_id == lender_id)
        .order_by(LenderSubmission.created_at.desc())
    )
    out = []
    for submission, app in result.all():
        row = submission_to_dict(submission)
        row["application"] = {
            "id": app.id,
            "requested_amount": app.requested_amount,
            "loan_type": app.loan_type,
            "stage": app.stage,
            "company_id": app.company_id,
        }
        out.append(row)
    return out
