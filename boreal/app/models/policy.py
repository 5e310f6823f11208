"""
Policy database model.

Created when an approved application is activated.
"""

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, Date, DateTime, Enum
from sqlalchemy.sql import func
from boreal.app.db.session import Base
from boreal.app.models.policy_enums import PolicyStatus


class Policy(Base):
    """
    Policy model.

    One policy per application. premium_amount is the annual premium;
    billing happens through the premium schedule.
    """
    __tablename__ = "policies"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    application_id = Column(Integer, ForeignKey('applications.id'), nullable=False, unique=True, index=True)
    policy_number = Column(String(50), unique=True, nullable=False)

    premium_amount = Column(Numeric(12, 2), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    status = Column(Enum(PolicyStatus), default=PolicyStatus.ACTIVE, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Policy(id={self.id}, number='{self.policy_number}', status='{self.status.value}')>"
