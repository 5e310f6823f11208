"""
Commission Payable database model.

Commission owed to a referrer for one collected premium schedule line.
"""

from sqlalchemy import Column, Integer, Numeric, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from boreal.app.db.session import Base
from boreal.app.models.billing_enums import PayableStatus


class CommissionPayable(Base):
    """
    Commission Payable model.

    Exactly one row per premium schedule line, created by the accrual job
    even when no commission is due (rate 0).
    Follows a strict workflow: EARNED -> BATCHED -> PAID.
    """
    __tablename__ = "commission_payables"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Source
    policy_id = Column(Integer, ForeignKey('policies.id'), nullable=False, index=True)
    premium_schedule_id = Column(Integer, ForeignKey('premium_schedule.id'), nullable=False, unique=True, index=True)
    referrer_id = Column(Integer, ForeignKey('referrers.id'), nullable=True, index=True)  # Payee

    # Financials
    gross_premium = Column(Numeric(12, 2), nullable=False)
    commission_rate = Column(Numeric(6, 4), nullable=False, default=0)
    commission_amount = Column(Numeric(12, 2), nullable=False, default=0)

    # Payout Flow
    status = Column(Enum(PayableStatus), default=PayableStatus.EARNED, nullable=False, index=True)
    payout_batch_id = Column(Integer, ForeignKey('payout_batches.id'), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<CommissionPayable(id={self.id}, status='{self.status.value}', amount={self.commission_amount})>"
