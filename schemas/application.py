from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from models.enums import LoanType, Stage, SubmissionStatus, Urgency


class ApplicationCreate(BaseModel):
    """Admin or partner creates an application outside the intake wizard."""

    company_id: Optional[str] = Field(None, alias="companyId")
    owner_id: Optional[str] = Field(None, alias="ownerId")
    prospective_client_email: Optional[str] = Field(None, alias="prospectiveClientEmail")
    requested_amount: float = Field(..., alias="requestedAmount")
    loan_type: Optional[LoanType] = Field(None, alias="loanType")
    urgency: Optional[Urgency] = None
    purpose: Optional[str] = None
    description: Optional[str] = None
    monthly_revenue: Optional[float] = Field(None, alias="monthlyRevenue")
    trading_months: Optional[int] = Field(None, alias="tradingMonths")
    stage: Optional[Stage] = None
    is_hidden: Optional[bool] = Field(None, alias="isHidden")
    admin_notes: Optional[str] = Field(None, alias="adminNotes")
    workflow_status: Optional[str] = Field(None, alias="workflowStatus")

    model_config = {"populate_by_name": True}


class ApplicationUpdate(BaseModel):
    """Partial update; only fields sent are considered. ``version`` guards against lost updates."""

    company_id: Optional[str] = Field(None, alias="companyId")
    owner_id: Optional[str] = Field(None, alias="ownerId")
    prospective_client_email: Optional[str] = Field(None, alias="prospectiveClientEmail")
    requested_amount: Optional[float] = Field(None, alias="requestedAmount")
    loan_type: Optional[LoanType] = Field(None, alias="loanType")
    urgency: Optional[Urgency] = None
    purpose: Optional[str] = None
    description: Optional[str] = None
    monthly_revenue: Optional[float] = Field(None, alias="monthlyRevenue")
    trading_months: Optional[int] = Field(None, alias="tradingMonths")
    workflow_status: Optional[str] = Field(None, alias="workflowStatus")
    is_hidden: Optional[bool] = Field(None, alias="isHidden")
    admin_notes: Optional[str] = Field(None, alias="adminNotes")
    lender_id: Optional[str] = Field(None, alias="lenderId")
    offer_amount: Optional[float] = Field(None, alias="offerAmount")
    offer_loan_term: Optional[str] = Field(None, alias="offerLoanTerm")
    offer_cost_of_funding: Optional[str] = Field(None, alias="offerCostOfFunding")
    offer_repayments: Optional[str] = Field(None, alias="offerRepayments")
    version: Optional[int] = None

    model_config = {"populate_by_name": True}

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"version"})


class StageChange(BaseModel):
    stage: Stage
    version: Optional[int] = None


class SendToLenders(BaseModel):
    lender_ids: list[str] = Field(..., alias="lenderIds", min_length=1)

    model_config = {"populate_by_name": True}


class DeliveryReport(BaseModel):
    """Outcome reported by the lender delivery collaborator."""

    status: SubmissionStatus
    error: Optional[str] = None
