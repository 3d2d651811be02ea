from typing import Optional

from pydantic import BaseModel, Field

from models.enums import SubmissionMethod


class LenderBase(BaseModel):
    contact_email: Optional[str] = Field(None, alias="contactEmail")
    contact_phone: Optional[str] = Field(None, alias="contactPhone")
    notes: Optional[str] = None
    status: Optional[str] = None
    submission_method: Optional[SubmissionMethod] = Field(None, alias="submissionMethod")
    api_endpoint: Optional[str] = Field(None, alias="apiEndpoint")
    submission_email: Optional[str] = Field(None, alias="submissionEmail")

    # Eligibility criteria
    min_trading_months: Optional[int] = Field(None, alias="minTradingMonths", ge=0)
    min_monthly_revenue: Optional[float] = Field(None, alias="minMonthlyRevenue", ge=0)
    absolute_min_loan: Optional[float] = Field(None, alias="absoluteMinLoan", ge=0)
    absolute_max_loan: Optional[float] = Field(None, alias="absoluteMaxLoan", ge=0)
    accepted_business_types: Optional[list[str]] = Field(None, alias="acceptedBusinessTypes")
    prohibited_industries: Optional[list[str]] = Field(None, alias="prohibitedIndustries")
    requires_filed_accounts: Optional[bool] = Field(None, alias="requiresFiledAccounts")
    min_filed_accounts_years: Optional[int] = Field(None, alias="minFiledAccountsYears")
    accepts_ccjs: Optional[bool] = Field(None, alias="acceptsCcjs")
    max_ccj_value: Optional[float] = Field(None, alias="maxCcjValue")
    requires_homeowner: Optional[bool] = Field(None, alias="requiresHomeowner")
    homeowner_min_loan: Optional[float] = Field(None, alias="homeownerMinLoan")
    requires_card_payments: Optional[bool] = Field(None, alias="requiresCardPayments")
    min_card_payment_percentage: Optional[float] = Field(None, alias="minCardPaymentPercentage")
    requires_existing_lending: Optional[bool] = Field(None, alias="requiresExistingLending")
    max_existing_lenders: Optional[int] = Field(None, alias="maxExistingLenders")
    min_term_months: Optional[int] = Field(None, alias="minTermMonths")
    max_term_months: Optional[int] = Field(None, alias="maxTermMonths")
    requires_profitable: Optional[bool] = Field(None, alias="requiresProfitable")
    min_profit_margin_percentage: Optional[float] = Field(None, alias="minProfitMarginPercentage")
    requires_positive_net_assets: Optional[bool] = Field(None, alias="requiresPositiveNetAssets")
    min_net_assets_ratio: Optional[float] = Field(None, alias="minNetAssetsRatio")
    is_eligible_panel: Optional[bool] = Field(None, alias="isEligiblePanel")

    model_config = {"populate_by_name": True}


class LenderCreate(LenderBase):
    """Create a lender on the panel."""
    name: str


class LenderUpdate(LenderBase):
    name: Optional[str] = None
