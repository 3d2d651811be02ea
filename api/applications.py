from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_auth_context, get_blob_store, get_matcher, get_notifier
from database import get_db
from models.enums import Role
from schemas.application import ApplicationCreate, ApplicationUpdate, SendToLenders, StageChange
from schemas.information_request import InformationRequestCreate
from schemas.offer import OfferCreate
from services import applications as application_service
from services import documents as document_service
from services import information_requests as info_service
from services import lender_submissions as submission_service
from services import offers as offer_service
from services.auth import AuthContext, require_role
from services.eligibility import EligibilityMatcher
from services.lenders import lender_to_dict
from services.notifications import LenderNotifier
from services.stages import change_stage
from services.storage import BlobStore
from utils.case import dict_keys_to_camel

router = APIRouter(prefix="/api/applications", tags=["applications"])


def _app_to_response(app, ctx: AuthContext) -> dict:
    """Serialize application to dict with camelCase for frontend."""
    return dict_keys_to_camel(application_service.application_to_dict(app, ctx.role))


@router.get("")
async def list_applications(
    stage: Optional[str] = None,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    apps = await application_service.list_applications(db, ctx, stage)
    return [_app_to_response(a, ctx) for a in apps]


@router.get("/{application_id}")
async def get_application(
    application_id: str, ctx: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)
):
    app = await application_service.load_for_viewer(db, ctx, application_id)
    return _app_to_response(app, ctx)


@router.post("", status_code=201)
async def create_application(
    body: ApplicationCreate, ctx: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)
):
    app = await application_service.create_application(db, ctx, body.model_dump(exclude_unset=True))
    return _app_to_response(app, ctx)


@router.patch("/{application_id}")
async def update_application(
    application_id: str,
    body: ApplicationUpdate,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    app = await application_service.update_application(db, ctx, application_id, body.changes(), body.version)
    return _app_to_response(app, ctx)


@router.post("/{application_id}/stage")
async def update_stage(
    application_id: str,
    body: StageChange,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    app = await change_stage(db, ctx, application_id, body.stage, body.version)
    return _app_to_response(app, ctx)


@router.delete("/{application_id}", status_code=204)
async def delete_application(
    application_id: str,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    await application_service.delete_application(db, ctx, application_id, blob_store)
    return None


# Documents


@router.get("/{application_id}/documents", response_model=list[dict])
async def list_documents(
    application_id: str,
    category: Optional[str] = None,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    docs = await document_service.list_documents(db, ctx, application_id, category)
    return [dict_keys_to_camel(document_service.document_to_dict(d, blob_store)) for d in docs]


@router.post("/{application_id}/documents", response_model=dict, status_code=201)
async def upload_document(
    application_id: str,
    category: str = Form(...),
    file: UploadFile = File(..., description="Supporting document"),
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    content = await file.read()
    doc = await document_service.upload_document(
        db, ctx, blob_store, application_id, category, file.filename or "", content, file.content_type
    )
    return dict_keys_to_camel(document_service.document_to_dict(doc, blob_store))


@router.delete("/{application_id}/documents/{document_id}", status_code=204)
async def delete_document(
    application_id: str,
    document_id: str,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    await document_service.delete_document(db, ctx, blob_store, application_id, document_id)
    return None


# Lender submissions


@router.get("/{application_id}/lenders/available", response_model=list[dict])
async def available_lenders(
    application_id: str,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    matcher: EligibilityMatcher = Depends(get_matcher),
):
    lenders = await submission_service.available_lenders(db, ctx, application_id, matcher)
    return [dict_keys_to_camel(lender_to_dict(l)) for l in lenders]


@router.get("/{application_id}/submissions", response_model=list[dict])
async def list_submissions(
    application_id: str, ctx: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)
):
    require_role(ctx, Role.ADMIN)
    submissions = await submission_service.list_submissions(db, application_id)
    return [dict_keys_to_camel(submission_service.submission_to_dict(s)) for s in submissions]


@router.post("/{application_id}/submissions", response_model=dict, status_code=201)
async def send_to_lenders(
    application_id: str,
    body: SendToLenders,
    background_tasks: BackgroundTasks,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
    notifier: LenderNotifier = Depends(get_notifier),
):
    rows = await submission_service.send_to_lenders(db, ctx, application_id, body.lender_ids)
    if rows:
        # Fired once the request transaction has committed
        background_tasks.add_task(notifier.notify, application_id, [r.lender_id for r in rows])
    return {
        "created": [dict_keys_to_camel(submission_service.submission_to_dict(r)) for r in rows],
        "skipped": len(set(body.lender_ids)) - len(rows),
    }


# Information requests and offers


@router.get("/{application_id}/information-requests", response_model=list[dict])
async def list_information_requests(
    application_id: str, ctx: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)
):
    reqs = await info_service.list_information_requests(db, ctx, application_id)
    return [dict_keys_to_camel(info_service.information_request_to_dict(r)) for r in reqs]


@router.post("/{application_id}/information-requests", response_model=dict, status_code=201)
async def create_information_request(
    application_id: str,
    body: InformationRequestCreate,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    req = await info_service.create_information_request(
        db, ctx, application_id, body.message, body.title, body.description
    )
    return dict_keys_to_camel(info_service.information_request_to_dict(req))


@router.get("/{application_id}/offers", response_model=list[dict])
async def list_offers(
    application_id: str, ctx: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)
):
    offers = await offer_service.list_offers(db, ctx, application_id)
    return [dict_keys_to_camel(offer_service.offer_to_dict(o)) for o in offers]


@router.post("/{application_id}/offers", response_model=dict, status_code=201)
async def create_offer(
    application_id: str,
    body: OfferCreate,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    offer = await offer_service.create_offer(
        db, ctx, application_id, body.lender_id, body.amount, body.loan_term, body.cost_of_funding, body.repayments
    )
    return dict_keys_to_camel(offer_service.offer_to_dict(offer))
