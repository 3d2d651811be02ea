from typing import Optional

from pydantic import BaseModel, Field


class OfferCreate(BaseModel):
    lender_id: str = Field(..., alias="lenderId")
    amount: float
    loan_term: Optional[str] = Field(None, alias="loanTerm")
    cost_of_funding: Optional[str] = Field(None, alias="costOfFunding")
    repayments: Optional[str] = None

    model_config = {"populate_by_name": True}
