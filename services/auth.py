"""
Explicit caller context passed into every lifecycle operation, plus the access rules
shared by the role-specific views.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from models import Company, LoanApplication
from models.enums import Role, Stage
from services.errors import AccessDeniedError


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    role: Role
    company_id: Optional[str] = None
    partner_company_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_partner(self) -> bool:
        return self.role == Role.PARTNER

    @property
    def is_client(self) -> bool:
        return self.role == Role.CLIENT


def require_role(ctx: AuthContext, *roles: Role) -> None:
    if ctx.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise AccessDeniedError(f"This action requires role {allowed}")


def is_visible_to_client(app: LoanApplication) -> bool:
    """Clients never see hidden drafts that have not progressed past created."""
    return not app.is_hidden or app.stage != Stage.CREATED.value


def can_view_application(ctx: AuthContext, app: LoanApplication, company: Optional[Company] = None) -> bool:
    if ctx.is_admin:
        return True
    if ctx.is_partner:
        if app.created_by == ctx.user_id:
            return True
        if company is None:
            return False
        if company.referred_by == ctx.user_id:
            return True
        return ctx.partner_company_id is not None and company.partner_company_id == ctx.partner_company_id
    # CLIENT
    if app.created_by == ctx.user_id:
        return True
    owns = app.owner_id == ctx.user_id or (ctx.company_id is not None and app.company_id == ctx.company_id)
    return owns and is_visible_to_client(app)


def ensure_can_view(ctx: AuthContext, app: LoanApplication, company: Optional[Company] = None) -> None:
    if not can_view_application(ctx, app, company):
        raise AccessDeniedError("You do not have access to this application")
