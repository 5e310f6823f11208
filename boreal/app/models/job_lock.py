"""
Job Lock database model.

Ensures only one run of a background job at a time through the primary key.
"""

from sqlalchemy import Column, String, DateTime
from boreal.app.db.session import Base


class JobLock(Base):
    """
    Job Lock model.

    A row existing for job_name means the lock is held.
    Acquired by insert (conflict = already held), released by delete.
    Not reentrant.
    """
    __tablename__ = "job_locks"

    job_name = Column(String(100), primary_key=True)
    locked_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<JobLock(job_name='{self.job_name}', locked_at={self.locked_at})>"
