"""Row loaders shared by the lifecycle services."""
from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Company, InformationRequest, Lender, LenderSubmission, LoanApplication, Profile
from services.errors import NotFoundError

MSG_APPLICATION_NOT_FOUND = "Application not found"
MSG_LENDER_NOT_FOUND = "Lender not found"


async def get_application(session: AsyncSession, application_id: str) -> Optional[LoanApplication]:
    result = await session.execute(select(LoanApplication).where(LoanApplication.id == application_id))
    return result.scalar_one_or_none()


async def get_application_or_404(session: AsyncSession, application_id: str) -> LoanApplication:
    app = await get_application(session, application_id)
    if not app:
        raise NotFoundError(MSG_APPLICATION_NOT_FOUND)
    return app


async def get_company(session: AsyncSession, company_id: Optional[str]) -> Optional[Company]:
    if not company_id:
        return None
    result = await session.execute(select(Company).where(Company.id == company_id))
    return result.scalar_one_or_none()


async def get_profile(session: AsyncSession, profile_id: str) -> Optional[Profile]:
    result = await session.execute(select(Profile).where(Profile.id == profile_id))
    return result.scalar_one_or_none()


async def get_profile_or_404(session: AsyncSession, profile_id: str) -> Profile:
    profile = await get_profile(session, profile_id)
    if not profile:
        raise NotFoundError("Profile not found")
    return profile


async def get_lender_or_404(session: AsyncSession, lender_id: str) -> Lender:
    result = await session.execute(select(Lender).where(Lender.id == lender_id))
    lender = result.scalar_one_or_none()
    if not lender:
        raise NotFoundError(MSG_LENDER_NOT_FOUND)
    return lender


async def get_submission_or_404(session: AsyncSession, submission_id: str) -> LenderSubmission:
    result = await session.execute(select(LenderSubmission).where(LenderSubmission.id == submission_id))
    submission = result.scalar_one_or_none()
    if not submission:
        raise NotFoundError("Lender submission not found")
    return submission


async def get_information_request_or_404(session: AsyncSession, request_id: str) -> InformationRequest:
    result = await session.execute(select(InformationRequest).where(InformationRequest.id == request_id))
    req = result.scalar_one_or_none()
    if not req:
        raise NotFoundError("Information request not found")
    return req
