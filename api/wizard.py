"""Client intake wizard: resume, advance, go back, save & exit, submit."""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_auth_context, get_registry
from database import get_db
from schemas.wizard import WizardSnapshot, WizardStepRequest, WizardSubmitRequest
from services import wizard as wizard_service
from services.auth import AuthContext
from services.draft_resolver import resolve_draft
from services.registry import CompanyRegistry
from utils.case import dict_keys_to_camel

router = APIRouter(prefix="/api/wizard", tags=["wizard"])


def _snapshot_to_response(snapshot: WizardSnapshot) -> dict:
    return dict_keys_to_camel(snapshot.model_dump(mode="json"))


@router.get("", response_model=dict)
async def resume(
    application_id: Optional[str] = None,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Rebuild the wizard form from the caller's profile, company and newest draft."""
    return _snapshot_to_response(await resolve_draft(db, ctx, application_id))


@router.post("/next", response_model=dict)
async def advance(
    body: WizardStepRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    registry: CompanyRegistry = Depends(get_registry),
):
    snapshot = await wizard_service.advance_step(db, ctx, body.step, body.form, registry=registry)
    return _snapshot_to_response(snapshot)


@router.post("/back", response_model=dict)
async def back(body: WizardStepRequest, ctx: AuthContext = Depends(get_auth_context)):
    # Never validates, never writes
    snapshot = WizardSnapshot(step=wizard_service.previous_step(body.step), form=body.form)
    return _snapshot_to_response(snapshot)


@router.post("/save", response_model=dict)
async def save_and_exit(
    body: WizardStepRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    snapshot = await wizard_service.save_and_exit(db, ctx, body.step, body.form)
    return _snapshot_to_response(snapshot)


@router.post("/submit", response_model=dict)
async def submit(
    body: WizardSubmitRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    snapshot = await wizard_service.submit_application(db, ctx, body.form)
    return _snapshot_to_response(snapshot)
