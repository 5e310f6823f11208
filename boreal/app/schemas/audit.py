"""
Audit trail read-out schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional


class AuditLogResponse(BaseModel):
    """One audit event as returned to admins."""
    id: int
    actor_id: Optional[int]
    actor_username: Optional[str]
    action: str
    meta_data: Optional[dict]
    timestamp: datetime

    class Config:
        from_attributes = True


class AuditTrailResponse(BaseModel):
    """Audit events, newest first, with their count."""
    logs: List[AuditLogResponse]
    total: int
