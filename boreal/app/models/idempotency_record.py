"""
Idempotency Record database model.

Remembers client-supplied keys of externally retried requests.
"""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from boreal.app.db.session import Base


class IdempotencyRecord(Base):
    """
    Idempotency Record model.

    Row existence = request already processed. No response payload is kept.
    """
    __tablename__ = "idempotency_records"

    key = Column(String(255), primary_key=True)
    endpoint = Column(String(255), nullable=True)  # First endpoint that used the key

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<IdempotencyRecord(key='{self.key}', endpoint='{self.endpoint}')>"
