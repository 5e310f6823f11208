"""
Job locking service.

Advisory locks keeping a background job to one run at a time,
across processes sharing the database.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

from boreal.app.models.job_lock import JobLock
from boreal.app.db.upsert import insert_or_ignore
from boreal.app.core.clock import utcnow

logger = logging.getLogger("boreal.jobs")


async def acquire_job_lock(
    db: AsyncSession,
    job_name: str,
    stale_after: Optional[timedelta] = None,
    now: Optional[datetime] = None
) -> bool:
    """
    Try to take the lock for a job.

    A lock older than `stale_after` is treated as abandoned by a crashed
    run and reclaimed first.

    Args:
        db: Database session (caller commits)
        job_name: Lock name
        stale_after: Age after which an existing lock may be stolen (None = never)
        now: Current time (defaults to the clock)

    Returns:
        True if this caller now holds the lock, False if someone else does
    """
    now = now or utcnow()

    if stale_after is not None:
        reclaimed = await db.execute(
            delete(JobLock).where(
                JobLock.job_name == job_name,
                JobLock.locked_at < now - stale_after
            )
        )
        if reclaimed.rowcount:
            logger.warning("Reclaimed stale job lock '%s' (older than %s)", job_name, stale_after)

    stmt = insert_or_ignore(
        db, JobLock, ["job_name"], job_name=job_name, locked_at=now
    ).returning(JobLock.job_name)

    result = await db.execute(stmt)
    return result.scalar_one_or_none() is not None


async def release_job_lock(db: AsyncSession, job_name: str) -> bool:
    """
    Release a job lock.

    Args:
        db: Database session (caller commits)
        job_name: Lock name

    Returns:
        True if a lock row was removed, False if none was held
    """
    result = await db.execute(delete(JobLock).where(JobLock.job_name == job_name))
    return bool(result.rowcount)


async def get_job_lock(db: AsyncSession, job_name: str) -> Optional[JobLock]:
    """Return the held lock for a job, if any."""
    result = await db.execute(select(JobLock).where(JobLock.job_name == job_name))
    return result.scalar_one_or_none()
