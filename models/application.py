from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, func

from database import Base


class LoanApplication(Base):
    __tablename__ = "applications"

    id = Column(String(64), primary_key=True, index=True)
    created_by = Column(String(64), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    owner_id = Column(String(64), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    company_id = Column(String(64), ForeignKey("companies.id", ondelete="CASCADE"), nullable=True, index=True)
    prospective_client_email = Column(String(320), nullable=True)

    requested_amount = Column(Float, nullable=True)
    loan_type = Column(String(32), nullable=True)
    urgency = Column(String(32), nullable=True)
    purpose = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    # Informational; consumed by lender matching downstream
    monthly_revenue = Column(Float, nullable=True)
    trading_months = Column(Integer, nullable=True)

    stage = Column(String(32), nullable=False, default="created", index=True)
    workflow_status = Column(String(64), nullable=True)
    is_hidden = Column(Boolean, nullable=False, default=False)
    admin_notes = Column(Text, nullable=True)

    # Accepted offer
    lender_id = Column(String(64), ForeignKey("lenders.id", ondelete="SET NULL"), nullable=True)
    offer_amount = Column(Float, nullable=True)
    offer_loan_term = Column(String(64), nullable=True)
    offer_cost_of_funding = Column(String(64), nullable=True)
    offer_repayments = Column(String(64), nullable=True)

    submitted_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class Document(Base):
    __tablename__ = "documents"

    id = Column(String(64), primary_key=True, index=True)
    application_id = Column(String(64), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String(32), nullable=False, index=True)
    original_filename = Column(String(512), nullable=False)
    storage_path = Column(String(1024), nullable=False)
    mime_type = Column(String(128), nullable=True)
    size_bytes = Column(Integer, nullable=True)
    uploaded_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Offer(Base):
    __tablename__ = "offers"

    id = Column(String(64), primary_key=True, index=True)
    application_id = Column(String(64), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    lender_id = Column(String(64), ForeignKey("lenders.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Float, nullable=False)
    loan_term = Column(String(64), nullable=True)
    cost_of_funding = Column(String(64), nullable=True)
    repayments = Column(String(64), nullable=True)
    status = Column(String(16), nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
