from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_auth_context
from database import get_db
from services import offers as offer_service
from services.auth import AuthContext
from utils.case import dict_keys_to_camel

router = APIRouter(prefix="/api/offers", tags=["offers"])


@router.post("/{offer_id}/accept", response_model=dict)
async def accept_offer(offer_id: str, ctx: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    offer = await offer_service.accept_offer(db, ctx, offer_id)
    return dict_keys_to_camel(offer_service.offer_to_dict(offer))


@router.post("/{offer_id}/decline", response_model=dict)
async def decline_offer(offer_id: str, ctx: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    offer = await offer_service.decline_offer(db, ctx, offer_id)
    return dict_keys_to_camel(offer_service.offer_to_dict(offer))
