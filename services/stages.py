"""
Application stage machine and the single stage -> presentation mapping used by every
role view (client, partner, admin).
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from models import LoanApplication
from models.enums import TERMINAL_STAGES, Role, Stage
from services.auth import AuthContext, require_role
from services.errors import ConflictError, InvalidTransitionError, ValidationError
from services.queries import get_application_or_404

logger = logging.getLogger(__name__)

_BADGES: dict[Stage, str] = {
    Stage.CREATED: "default",
    Stage.SUBMITTED: "info",
    Stage.IN_CREDIT: "purple",
    Stage.INFO_REQUIRED: "warning",
    Stage.APPROVED: "success",
    Stage.ONBOARDING: "info",
    Stage.FUNDED: "success",
    Stage.DECLINED: "error",
    Stage.WITHDRAWN: "default",
}


def parse_stage(value: str | Stage) -> Stage:
    try:
        return Stage(value)
    except ValueError:
        raise ValidationError(f"Unknown stage '{value}'") from None


def is_terminal(stage: str | Stage) -> bool:
    return parse_stage(stage) in TERMINAL_STAGES


def format_stage(stage: str | Stage) -> str:
    """'info_required' -> 'Info Required'."""
    return " ".join(word.capitalize() for word in parse_stage(stage).value.split("_"))


def stage_presentation(stage: str | Stage) -> dict:
    s = parse_stage(stage)
    return {
        "value": s.value,
        "label": format_stage(s),
        "badge": _BADGES[s],
        "terminal": s in TERMINAL_STAGES,
    }


def check_version(app: LoanApplication, expected_version: Optional[int]) -> None:
    """Fail when the caller's copy of the row is stale."""
    if expected_version is not None and expected_version != app.version:
        raise ConflictError(
            f"Application {app.id} was modified by someone else "
            f"(expected version {expected_version}, found {app.version}). Reload and try again."
        )


def touch(app: LoanApplication) -> None:
    app.version = (app.version or 0) + 1
    app.updated_at = datetime.now(timezone.utc)


def apply_transition(app: LoanApplication, new_stage: Stage) -> bool:
    """
    Move ``app`` to ``new_stage``. Returns False for a no-op.
    Non-terminal stages may move anywhere; terminal stages only accept a no-op.
    """
    current = parse_stage(app.stage)
    if new_stage == current:
        return False
    if current in TERMINAL_STAGES:
        raise InvalidTransitionError(
            f"Application is {format_stage(current)}; a terminal stage cannot move to {format_stage(new_stage)}"
        )
    app.stage = new_stage.value
    if new_stage == Stage.SUBMITTED and app.submitted_at is None:
        app.submitted_at = datetime.now(timezone.utc)
    touch(app)
    logger.info("Application %s stage %s -> %s", app.id, current.value, new_stage.value)
    return True


async def change_stage(
    session: AsyncSession,
    ctx: AuthContext,
    application_id: str,
    new_stage: str | Stage,
    expected_version: Optional[int] = None,
) -> LoanApplication:
    """Admin-driven free transition between stages."""
    require_role(ctx, Role.ADMIN)
    target = parse_stage(new_stage)
    app = await get_application_or_404(session, application_id)
    check_version(app, expected_version)
    apply_transition(app, target)
    await session.flush()
    return app
