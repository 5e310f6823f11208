"""
Job Run database model.

One row per execution of a background job, for observability.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Enum
from sqlalchemy.sql import func
from boreal.app.db.session import Base
from boreal.app.models.job_enums import JobStatus
from boreal.app.core.exceptions import InvalidStateTransitionError


# Allowed status moves; everything else is rejected
JOB_STATUS_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.RUNNING},
    JobStatus.RUNNING: {JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


class JobRun(Base):
    """
    Job Run model.

    Status is monotonic: PENDING -> RUNNING -> COMPLETED | FAILED.
    """
    __tablename__ = "job_runs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    job_type = Column(String(100), nullable=False, index=True)
    status = Column(Enum(JobStatus), default=JobStatus.PENDING, nullable=False, index=True)

    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    error = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def transition_to(self, new_status: JobStatus) -> None:
        """
        Move to `new_status`.

        Raises:
            InvalidStateTransitionError: If the move is not allowed
        """
        current = self.status or JobStatus.PENDING
        if new_status not in JOB_STATUS_TRANSITIONS[current]:
            raise InvalidStateTransitionError("JobRun", current.value, new_status.value)
        self.status = new_status

    def __repr__(self):
        status = self.status.value if self.status else None
        return f"<JobRun(id={self.id}, type='{self.job_type}', status='{status}')>"
