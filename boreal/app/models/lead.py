"""
Lead database model.

A lead is the first contact captured by intake; it carries the referrer
attribution that commission is later computed from.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.sql import func
from boreal.app.db.session import Base


class Lead(Base):
    """Lead model."""
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    source = Column(String(100), nullable=False)
    channel = Column(String(50), default="direct", nullable=False)
    email = Column(String(255), nullable=True)

    # Attribution (nullable for direct leads)
    referrer_id = Column(Integer, ForeignKey('referrers.id'), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Lead(id={self.id}, source='{self.source}', referrer_id={self.referrer_id})>"
