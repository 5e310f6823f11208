"""
Audit Log database model.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from boreal.app.db.session import Base


class AuditLog(Base):
    """
    One recorded action (see services.audit.AuditAction).

    actor_* come from the access token and are empty for partner
    callbacks; meta_data holds the ids and amounts involved.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    action = Column(String(100), nullable=False, index=True)
    actor_id = Column(Integer, nullable=True, index=True)
    actor_username = Column(String(255), nullable=True)

    meta_data = Column(JSON, nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor_id={self.actor_id})>"
