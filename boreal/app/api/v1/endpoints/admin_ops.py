"""
Admin Operations API Endpoints.

Manual control and inspection of background jobs, plus the audit trail.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy import select, desc
from typing import List, Optional

from boreal.app.db.session import get_db, get_session_factory
from boreal.app.models.job_run import JobRun
from boreal.app.models.enums import UserRole
from boreal.app.schemas.jobs import JobRunResponse, AccrualTriggerResponse
from boreal.app.schemas.audit import AuditLogResponse, AuditTrailResponse
from boreal.app.core.guards import require_role
from boreal.app.domain.accrual.accrual_service import AccrualService
from boreal.app.services.audit import log_event, AuditAction, get_audit_trail

router = APIRouter(prefix="/admin/ops", tags=["Admin - Ops"])


@router.post("/premium-accrual/run", response_model=AccrualTriggerResponse)
async def trigger_premium_accrual(
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    db: AsyncSession = Depends(get_db)
):
    """
    Run the premium accrual now.

    started=False means another run holds the job lock.
    A failed run is reported through the job run's status and error.
    """
    job_id = await AccrualService.run_accrual(session_factory)

    await log_event(
        db=db,
        action=AuditAction.PREMIUM_ACCRUAL_TRIGGERED,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        metadata={"job_run_id": job_id}
    )

    if job_id is None:
        return AccrualTriggerResponse(started=False, job_run=None)

    job = await db.get(JobRun, job_id)
    return AccrualTriggerResponse(started=True, job_run=JobRunResponse.model_validate(job))


@router.get("/job-runs", response_model=List[JobRunResponse])
async def list_job_runs(
    job_type: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """List job runs, newest first."""
    query = select(JobRun).order_by(desc(JobRun.id))
    if job_type:
        query = query.where(JobRun.job_type == job_type)

    result = await db.execute(query.limit(limit))
    return result.scalars().all()


@router.get("/audit-logs", response_model=AuditTrailResponse)
async def get_audit_logs(
    action: Optional[str] = Query(None, description="Filter by action type"),
    limit: int = Query(100, ge=1, le=500, description="Maximum records to return"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Get the audit trail of payouts, accrual triggers and policy changes.
    """
    logs = await get_audit_trail(db=db, action=action, limit=limit)

    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    )
