from __future__ import annotations

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from models.enums import FundingPurpose, PropertyStatus


class WizardForm(BaseModel):
    """Single in-memory form merged from profile, company and application rows."""

    # Step 1: Company
    company_id: Optional[str] = None
    company_name: Optional[str] = None
    company_number: Optional[str] = None
    industry: Optional[str] = None
    website: Optional[str] = None
    address_line_1: Optional[str] = None
    address_line_2: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None

    # Registry officer name the caller picked as themselves, or "manual"
    selected_director: Optional[str] = None

    # Step 2: Personal details (first/last name also identify the director in step 1)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    property_status: Optional[PropertyStatus] = None

    # Step 3: Funding request
    application_id: Optional[str] = None
    funding_needed: Optional[float] = None
    funding_purpose: Optional[FundingPurpose] = None
    brief_description: Optional[str] = None

    model_config = {"populate_by_name": True, "alias_generator": to_camel}


class WizardStepRequest(BaseModel):
    step: int = Field(..., ge=1, le=5)
    form: WizardForm

    model_config = {"populate_by_name": True, "alias_generator": to_camel}


class WizardSubmitRequest(BaseModel):
    form: WizardForm

    model_config = {"populate_by_name": True, "alias_generator": to_camel}


class WizardSnapshot(BaseModel):
    step: int = 1
    form: WizardForm = Field(default_factory=WizardForm)
    stage: Optional[dict[str, Any]] = None
    documents: list[dict[str, Any]] = Field(default_factory=list)
    degraded: bool = False
    completed: bool = False

    model_config = {"populate_by_name": True, "alias_generator": to_camel}
