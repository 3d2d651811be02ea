from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_auth_context
from database import get_db
from schemas.information_request import InformationRequestResponse
from services import information_requests as info_service
from services.auth import AuthContext
from utils.case import dict_keys_to_camel

router = APIRouter(prefix="/api/information-requests", tags=["information-requests"])


@router.post("/{request_id}/respond", response_model=dict)
async def respond(
    request_id: str,
    body: InformationRequestResponse,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    req = await info_service.respond_to_information_request(db, ctx, request_id, body.response_text)
    return dict_keys_to_camel(info_service.information_request_to_dict(req))


@router.post("/{request_id}/resolve", response_model=dict)
async def resolve(request_id: str, ctx: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    req = await info_service.resolve_information_request(db, ctx, request_id)
    return dict_keys_to_camel(info_service.information_request_to_dict(req))
