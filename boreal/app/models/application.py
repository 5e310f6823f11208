"""
Application database model.

An insurance application submitted against a lead and moved through
underwriting.
"""

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from boreal.app.db.session import Base
from boreal.app.models.policy_enums import ApplicationStatus


class Application(Base):
    """
    Application model.

    Underwriting flow: SUBMITTED -> UNDER_REVIEW -> APPROVED -> ACTIVE
    (ACTIVE is set by policy activation).
    """
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    lead_id = Column(Integer, ForeignKey('leads.id'), nullable=True, index=True)

    business_name = Column(String(255), nullable=True)
    loan_amount = Column(Numeric(12, 2), nullable=True)
    annual_premium = Column(Numeric(12, 2), nullable=True)  # From the accepted quote

    status = Column(Enum(ApplicationStatus), default=ApplicationStatus.SUBMITTED, nullable=False, index=True)

    submitted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Application(id={self.id}, status='{self.status.value}')>"
