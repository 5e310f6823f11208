"""
Premium Schedule database model.

One row per billing period of a policy.
"""

from sqlalchemy import Column, Integer, Numeric, Boolean, ForeignKey, Date, DateTime, CheckConstraint
from sqlalchemy.sql import func
from boreal.app.db.session import Base


class PremiumScheduleLine(Base):
    """
    Premium Schedule Line model.

    Amount owed on a due date. `paid` flips false -> true exactly once,
    by the premium accrual job. Rows are never deleted.
    """
    __tablename__ = "premium_schedule"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    policy_id = Column(Integer, ForeignKey('policies.id'), nullable=False, index=True)

    due_date = Column(Date, nullable=False, index=True)
    premium_amount = Column(Numeric(12, 2), nullable=False)
    paid = Column(Boolean, default=False, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint('premium_amount > 0', name='ck_premium_schedule_amount_positive'),
    )

    def __repr__(self):
        return f"<PremiumScheduleLine(id={self.id}, due={self.due_date}, amount={self.premium_amount}, paid={self.paid})>"
