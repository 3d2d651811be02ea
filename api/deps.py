"""
Request-scoped dependencies: the caller context built from the auth proxy headers, and
the collaborators (blob store, company registry, lender notifier, eligibility matcher).
Tests swap any of these through ``app.dependency_overrides``.
"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.enums import Role
from services.auth import AuthContext
from services.eligibility import EligibilityMatcher, PassThroughMatcher
from services.notifications import LenderNotifier, WebhookNotifier
from services.queries import get_profile
from services.registry import CompaniesHouseClient, CompanyRegistry
from services.storage import BlobStore, LocalBlobStore


async def get_auth_context(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    x_partner_company_id: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        role = Role((x_user_role or Role.CLIENT.value).upper())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role '{x_user_role}'") from None

    profile = await get_profile(db, x_user_id)
    if profile is None:
        # Unknown users may only act as clients; the wizard creates their profile
        if role != Role.CLIENT:
            raise HTTPException(status_code=403, detail=f"No {role.value.lower()} profile for this user")
        return AuthContext(user_id=x_user_id, role=Role.CLIENT)

    # The stored profile is authoritative; headers may only agree with it
    stored_role = Role(profile.role)
    if x_user_role and role != stored_role:
        raise HTTPException(status_code=403, detail="Role does not match your profile")
    if x_partner_company_id and x_partner_company_id != profile.partner_company_id:
        raise HTTPException(status_code=403, detail="Partner company does not match your profile")
    return AuthContext(
        user_id=x_user_id,
        role=stored_role,
        company_id=profile.company_id,
        partner_company_id=profile.partner_company_id,
    )


@lru_cache
def get_blob_store() -> BlobStore:
    return LocalBlobStore()


@lru_cache
def get_registry() -> CompanyRegistry:
    return CompaniesHouseClient()


@lru_cache
def get_notifier() -> LenderNotifier:
    return WebhookNotifier()


@lru_cache
def get_matcher() -> EligibilityMatcher:
    return PassThroughMatcher()
