"""Company registry lookups used by the wizard's company step. Always best-effort."""
from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_auth_context, get_registry
from services.auth import AuthContext
from services.registry import CompanyRegistry
from utils.case import dict_keys_to_camel

router = APIRouter(prefix="/api/registry", tags=["registry"])


@router.get("/search", response_model=list[dict])
async def search_companies(
    q: str = Query("", description="Company name or number"),
    ctx: AuthContext = Depends(get_auth_context),
    registry: CompanyRegistry = Depends(get_registry),
):
    return dict_keys_to_camel(await registry.search(q))


@router.get("/companies/{number}", response_model=dict)
async def company_details(
    number: str,
    ctx: AuthContext = Depends(get_auth_context),
    registry: CompanyRegistry = Depends(get_registry),
):
    details = await registry.get_details(number)
    if details is None:
        raise HTTPException(status_code=404, detail="Company details unavailable")
    return dict_keys_to_camel(details)
