from models.application import Document, LoanApplication, Offer
from models.company import Company, PartnerCompany, Profile
from models.information_request import InformationRequest
from models.lender import Lender, LenderSubmission

__all__ = [
    "Company",
    "Document",
    "InformationRequest",
    "Lender",
    "LenderSubmission",
    "LoanApplication",
    "Offer",
    "PartnerCompany",
    "Profile",
]
