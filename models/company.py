from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, func

from database import Base


class PartnerCompany(Base):
    __tablename__ = "partner_companies"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(256), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True, index=True)
    email = Column(String(320), nullable=True)
    role = Column(String(16), nullable=False, default="CLIENT", index=True)
    first_name = Column(String(128), nullable=True)
    last_name = Column(String(128), nullable=True)
    phone = Column(String(32), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    property_status = Column(String(32), nullable=True)
    # CLIENT: the company this profile directs
    company_id = Column(String(64), ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True)
    is_primary_director = Column(Boolean, nullable=False, default=False)
    # PARTNER: the partner firm this user belongs to
    partner_company_id = Column(String(64), ForeignKey("partner_companies.id", ondelete="SET NULL"), nullable=True)
    onboarding_step = Column(Integer, nullable=False, default=1)
    onboarding_completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class Company(Base):
    __tablename__ = "companies"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(256), nullable=False)
    company_number = Column(String(32), nullable=True)
    industry = Column(String(128), nullable=True)
    website = Column(String(512), nullable=True)
    address_line_1 = Column(String(256), nullable=True)
    address_line_2 = Column(String(256), nullable=True)
    city = Column(String(128), nullable=True)
    postcode = Column(String(16), nullable=True)
    country = Column(String(128), nullable=True, default="United Kingdom")
    # Partner profile id; checked against partner_company_id by the service layer
    referred_by = Column(String(64), nullable=True, index=True)
    partner_company_id = Column(String(64), ForeignKey("partner_companies.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
