"""
Audit trail of money-moving and policy-changing actions.

Admin endpoints and the underwriting webhook record one event per
effective change; replays and no-ops are not recorded.
"""

from typing import Optional, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from boreal.app.models.audit_log import AuditLog


class AuditAction:
    """Action names stored in audit_logs.action."""
    PAYOUT_BATCH_CREATED = "PAYOUT_BATCH_CREATED"
    PAYOUT_BATCH_PAID = "PAYOUT_BATCH_PAID"

    PREMIUM_ACCRUAL_TRIGGERED = "PREMIUM_ACCRUAL_TRIGGERED"

    POLICY_ACTIVATED = "POLICY_ACTIVATED"
    POLICY_RENEWED = "POLICY_RENEWED"
    UNDERWRITING_STATUS_CHANGED = "UNDERWRITING_STATUS_CHANGED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_username: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Record an event and commit it.

    Called after the audited change has committed, so a failure here never
    undoes the change itself.

    Args:
        db: Database session
        action: One of the AuditAction names
        actor_id: User id from the token (None for partner callbacks)
        actor_username: Token subject
        metadata: JSON-serializable context (ids, amounts as strings)
    """
    entry = AuditLog(
        action=action,
        actor_id=actor_id,
        actor_username=actor_username,
        meta_data=metadata
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


async def get_audit_trail(
    db: AsyncSession,
    action: Optional[str] = None,
    limit: int = 100
) -> List[AuditLog]:
    """Most recent events first, optionally for a single action."""
    query = select(AuditLog)
    if action:
        query = query.where(AuditLog.action == action)

    result = await db.execute(
        query.order_by(desc(AuditLog.timestamp), desc(AuditLog.id)).limit(limit)
    )
    return list(result.scalars().all())
