from schemas.application import (
    ApplicationCreate,
    ApplicationUpdate,
    DeliveryReport,
    SendToLenders,
    StageChange,
)
from schemas.company import CompanyCreate, CompanyUpdate
from schemas.information_request import InformationRequestCreate, InformationRequestResponse
from schemas.lender import LenderCreate, LenderUpdate
from schemas.offer import OfferCreate
from schemas.wizard import WizardForm, WizardSnapshot, WizardStepRequest, WizardSubmitRequest

__all__ = [
    "ApplicationCreate",
    "ApplicationUpdate",
    "CompanyCreate",
    "CompanyUpdate",
    "DeliveryReport",
    "InformationRequestCreate",
    "InformationRequestResponse",
    "LenderCreate",
    "LenderUpdate",
    "OfferCreate",
    "SendToLenders",
    "StageChange",
    "WizardForm",
    "WizardSnapshot",
    "WizardStepRequest",
    "WizardSubmitRequest",
]
