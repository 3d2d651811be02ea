from typing import Optional

from pydantic import BaseModel, Field


class InformationRequestCreate(BaseModel):
    message: str
    title: Optional[str] = None
    description: Optional[str] = None


class InformationRequestResponse(BaseModel):
    """Client's answer to an open request."""
    response_text: str = Field(..., alias="responseText")

    model_config = {"populate_by_name": True}
