from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_auth_context
from database import get_db
from schemas.company import CompanyCreate, CompanyUpdate
from services import companies as company_service
from services.auth import AuthContext
from utils.case import dict_keys_to_camel

router = APIRouter(prefix="/api/companies", tags=["companies"])


@router.get("", response_model=list[dict])
async def list_companies(ctx: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)):
    companies = await company_service.list_companies(db, ctx)
    return [dict_keys_to_camel(company_service.company_to_dict(c)) for c in companies]


@router.post("", response_model=dict, status_code=201)
async def create_company(
    body: CompanyCreate, ctx: AuthContext = Depends(get_auth_context), db: AsyncSession = Depends(get_db)
):
    company = await company_service.create_company(db, ctx, body.model_dump(exclude_unset=True))
    return dict_keys_to_camel(company_service.company_to_dict(company))


@router.patch("/{company_id}", response_model=dict)
async def update_company(
    company_id: str,
    body: CompanyUpdate,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    company = await company_service.update_company(db, ctx, company_id, body.model_dump(exclude_unset=True))
    return dict_keys_to_camel(company_service.company_to_dict(company))
