from sqlalchemy import Column, DateTime, ForeignKey, String, Text, func

from database import Base


class InformationRequest(Base):
    __tablename__ = "information_requests"

    id = Column(String(64), primary_key=True, index=True)
    application_id = Column(String(64), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by = Column(String(64), nullable=True)
    title = Column(String(256), nullable=True)
    message = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(32), nullable=False, default="pending", index=True)
    client_response_text = Column(Text, nullable=True)
    client_responded_at = Column(DateTime(timezone=True), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
