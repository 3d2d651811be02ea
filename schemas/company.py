from typing import Optional

from pydantic import BaseModel, Field


class CompanyBase(BaseModel):
    company_number: Optional[str] = Field(None, alias="companyNumber")
    industry: Optional[str] = None
    website: Optional[str] = None
    address_line_1: Optional[str] = Field(None, alias="addressLine1")
    address_line_2: Optional[str] = Field(None, alias="addressLine2")
    city: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    # Admin only; partners always refer their own companies
    referred_by: Optional[str] = Field(None, alias="referredBy")
    partner_company_id: Optional[str] = Field(None, alias="partnerCompanyId")

    model_config = {"populate_by_name": True}


class CompanyCreate(CompanyBase):
    name: str


class CompanyUpdate(CompanyBase):
    name: Optional[str] = None
