"""
Referrer database model.

Referrers introduce leads and earn commission on the premium collected.
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime
from sqlalchemy.sql import func
from boreal.app.db.session import Base


class Referrer(Base):
    """
    Referrer model.

    commission_rate is a fraction of gross premium (0.1 = 10%).
    NULL is treated as no commission.
    """
    __tablename__ = "referrers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=True)
    commission_rate = Column(Numeric(6, 4), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Referrer(id={self.id}, email='{self.email}', rate={self.commission_rate})>"
