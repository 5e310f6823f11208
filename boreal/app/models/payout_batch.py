"""
Payout Batch database model.

Aggregates earned commission payables into a single payment run.
"""

from sqlalchemy import Column, Integer, Numeric, DateTime, Enum
from sqlalchemy.sql import func
from boreal.app.db.session import Base
from boreal.app.models.billing_enums import BatchStatus


class PayoutBatch(Base):
    """
    Payout Batch model.

    Payables point back at the batch through payout_batch_id.
    Workflow: OPEN -> CLOSED -> PAID. paid_at is set once, on settlement.
    """
    __tablename__ = "payout_batches"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    status = Column(Enum(BatchStatus), default=BatchStatus.OPEN, nullable=False, index=True)
    total_amount = Column(Numeric(12, 2), default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<PayoutBatch(id={self.id}, status='{self.status.value}', total={self.total_amount})>"
