"""
Background job schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from boreal.app.models.job_enums import JobStatus


class JobRunResponse(BaseModel):
    """Schema for displaying job runs."""
    id: int
    job_type: str
    status: JobStatus
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    error: Optional[str]

    class Config:
        from_attributes = True


class AccrualTriggerResponse(BaseModel):
    """Response for a manually triggered accrual run."""
    started: bool
    job_run: Optional[JobRunResponse]
