"""
Policy API Endpoints.

Activation and renewal of policies.
"""

from fastapi import APIRouter, Depends, Header, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from boreal.app.db.session import get_db
from boreal.app.models.enums import UserRole
from boreal.app.schemas.policy import PolicyActivateRequest, PolicyActivationResponse, PolicyResponse
from boreal.app.core.guards import require_role
from boreal.app.domain.policy.policy_service import PolicyService
from boreal.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/policies", tags=["Policies"])


@router.post("/activate", response_model=PolicyActivationResponse)
async def activate_policy(
    request: PolicyActivateRequest,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Activate the policy of an approved application.

    Safe to retry: a repeated Idempotency-Key (or a second activation of
    the same application) returns the original policy with replayed=True.
    """
    try:
        result = await PolicyService.activate_policy(
            db,
            application_id=request.application_id,
            annual_premium=request.annual_premium,
            idempotency_key=idempotency_key,
            start_date=request.start_date
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    response = PolicyActivationResponse(
        policy=PolicyResponse.model_validate(result.policy),
        replayed=result.replayed
    )

    if not result.replayed:
        await log_event(
            db=db,
            action=AuditAction.POLICY_ACTIVATED,
            actor_id=current_user["user_id"],
            actor_username=current_user.get("sub"),
            metadata={
                "policy_id": response.policy.id,
                "application_id": request.application_id,
                "policy_number": response.policy.policy_number
            }
        )

    return response


@router.post("/{policy_id}/renew", response_model=PolicyResponse)
async def renew_policy(
    policy_id: int = Path(..., description="Policy ID"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """Renew an active policy for another year of premium."""
    policy = await PolicyService.renew_policy(db, policy_id)
    response = PolicyResponse.model_validate(policy)

    await log_event(
        db=db,
        action=AuditAction.POLICY_RENEWED,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        metadata={"policy_id": policy_id, "end_date": response.end_date.isoformat()}
    )

    return response
