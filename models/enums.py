"""Enumerations shared by the ORM models, schemas and lifecycle services."""
from enum import Enum


class Role(str, Enum):
    CLIENT = "CLIENT"
    PARTNER = "PARTNER"
    ADMIN = "ADMIN"


class Stage(str, Enum):
    """Primary lifecycle state of an application."""

    CREATED = "created"
    SUBMITTED = "submitted"
    IN_CREDIT = "in_credit"
    INFO_REQUIRED = "info_required"
    APPROVED = "approved"
    ONBOARDING = "onboarding"
    FUNDED = "funded"
    DECLINED = "declined"
    WITHDRAWN = "withdrawn"


TERMINAL_STAGES = frozenset({Stage.FUNDED, Stage.DECLINED, Stage.WITHDRAWN})


class LoanType(str, Enum):
    TERM_LOAN = "term_loan"
    REVOLVING = "revolving"
    ASSET_FINANCE = "asset_finance"
    INVOICE_FINANCE = "invoice_finance"
    OTHER = "other"


class Urgency(str, Enum):
    ASAP = "asap"
    WITHIN_1_MONTH = "within_1_month"
    THREE_PLUS_MONTHS = "three_plus_months"


class FundingPurpose(str, Enum):
    WORKING_CAPITAL = "working_capital"
    STOCK_INVENTORY = "stock_inventory"
    EQUIPMENT = "equipment"
    EXPANSION = "expansion"
    CASH_FLOW = "cash_flow"
    OTHER = "other"


class PropertyStatus(str, Enum):
    HOMEOWNER = "homeowner"
    TENANT_PRIVATE = "tenant_private"
    TENANT_COUNCIL = "tenant_council"
    LIVING_WITH_FAMILY = "living_with_family"
    OTHER = "other"


class DocumentCategory(str, Enum):
    BANK_STATEMENTS = "bank_statements"
    MANAGEMENT_ACCOUNTS = "management_accounts"
    CASHFLOW_FORECAST = "cashflow_forecast"
    OTHER = "other"


class SubmissionMethod(str, Enum):
    API = "api"
    EMAIL = "email"


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    RETRY = "retry"
    ACKNOWLEDGED = "acknowledged"


class InfoRequestStatus(str, Enum):
    PENDING = "pending"
    CLIENT_RESPONDED = "client_responded"
    RESOLVED = "resolved"


class OfferStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
