from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_auth_context, get_notifier
from database import get_db
from models.enums import Role
from schemas.application import DeliveryReport
from schemas.lender import LenderCreate, LenderUpdate
from services import lender_submissions as submission_service
from services import lenders as lender_service
from services.auth import AuthContext, require_role
from services.notifications import LenderNotifier
from services.queries import get_lender_or_404
from utils.case import dict_keys_to_camel

router = APIRouter(prefix="/api/lenders", tags=["lenders"])


def _lender_to_response(lender) -> dict:
    return dict_keys_to_camel(lender_service.lender_to_dict(lender))


@router.get("", response_model=list[dict])
async def list_lenders(
    status: Optional[str] = None,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    lenders = await lender_service.list_lenders(db, status)
    return [_lender_to_response(l) for l in lenders]


@router.get("/{lender_id}", response_model=dict)
async def get_lender(lender_id: str, ctx: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    """Lender with the submissions made to it."""
    lender = await get_lender_or_404(db, lender_id)
    out = _lender_to_response(lender)
    out["submissions"] = dict_keys_to_camel(await submission_service.list_lender_submissions(db, lender.id))
    return out


@router.post("", response_model=dict, status_code=201)
async def create_lender(body: LenderCreate, ctx: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    lender = await lender_service.create_lender(db, ctx, body.model_dump(exclude_unset=True))
    return _lender_to_response(lender)


@router.patch("/{lender_id}", response_model=dict)
async def update_lender(
    lender_id: str,
    body: LenderUpdate,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    lender = await lender_service.update_lender(db, ctx, lender_id, body.model_dump(exclude_unset=True))
    return _lender_to_response(lender)


@router.delete("/{lender_id}", status_code=204)
async def delete_lender(lender_id: str, ctx: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    await lender_service.delete_lender(db, ctx, lender_id)
    return None


# Delivery tracking for individual submissions


@router.post("/submissions/{submission_id}/delivery", response_model=dict)
async def record_delivery(
    submission_id: str,
    body: DeliveryReport,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    # The delivery integration authenticates as an admin service user
    require_role(ctx, Role.ADMIN)
    submission = await submission_service.record_delivery(db, submission_id, body.status, body.error)
    return dict_keys_to_camel(submission_service.submission_to_dict(submission))


@router.post("/submissions/{submission_id}/retry", response_model=dict)
async def retry_submission(
    submission_id: str,
    background_tasks: BackgroundTasks,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    notifier: LenderNotifier = Depends(get_notifier),
):
    submission = await submission_service.retry_submission(db, ctx, submission_id)
    background_tasks.add_task(notifier.notify, submission.application_id, [submission.lender_id])
    return dict_keys_to_camel(submission_service.submission_to_dict(submission))
