from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint, func

from database import Base


class Lender(Base):
    __tablename__ = "lenders"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(256), nullable=False)
    status = Column(String(32), nullable=False, default="active")
    contact_email = Column(String(320), nullable=True)
    contact_phone = Column(String(32), nullable=True)
    notes = Column(Text, nullable=True)
    submission_method = Column(String(16), nullable=True, default="email")
    api_endpoint = Column(String(512), nullable=True)
    submission_email = Column(String(320), nullable=True)

    # Eligibility criteria (consumed by an external matcher)
    min_trading_months = Column(Integer, nullable=True)
    min_monthly_revenue = Column(Float, nullable=True)
    absolute_min_loan = Column(Float, nullable=True)
    absolute_max_loan = Column(Float, nullable=True)
    accepted_business_types = Column(JSON, nullable=True)
    prohibited_industries = Column(JSON, nullable=True)
    requires_filed_accounts = Column(Boolean, nullable=False, default=False)
    min_filed_accounts_years = Column(Integer, nullable=True)
    accepts_ccjs = Column(Boolean, nullable=False, default=False)
    max_ccj_value = Column(Float, nullable=True)
    requires_homeowner = Column(Boolean, nullable=False, default=False)
    homeowner_min_loan = Column(Float, nullable=True)
    requires_card_payments = Column(Boolean, nullable=False, default=False)
    min_card_payment_percentage = Column(Float, nullable=True)
    requires_existing_lending = Column(Boolean, nullable=False, default=False)
    max_existing_lenders = Column(Integer, nullable=True)
    min_term_months = Column(Integer, nullable=True)
    max_term_months = Column(Integer, nullable=True)
    requires_profitable = Column(Boolean, nullable=False, default=False)
    min_profit_margin_percentage = Column(Float, nullable=True)
    requires_positive_net_assets = Column(Boolean, nullable=False, default=False)
    min_net_assets_ratio = Column(Float, nullable=True)
    is_eligible_panel = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class LenderSubmission(Base):
    __tablename__ = "lender_submissions"
    __table_args__ = (UniqueConstraint("application_id", "lender_id", name="uq_submission_application_lender"),)

    id = Column(String(64), primary_key=True, index=True)
    application_id = Column(String(64), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    lender_id = Column(String(64), ForeignKey("lenders.id", ondelete="CASCADE"), nullable=False, index=True)
    method = Column(String(16), nullable=False, default="email")
    status = Column(String(16), nullable=False, default="pending", index=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    retry_count = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
