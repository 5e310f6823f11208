"""
Webhook API Endpoints.

Inbound callbacks from the underwriting partner.
"""

import hmac
from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from boreal.app.core.config import settings
from boreal.app.core.exceptions import AuthenticationError
from boreal.app.db.session import get_db
from boreal.app.schemas.policy import UnderwritingWebhookPayload, UnderwritingWebhookResponse
from boreal.app.domain.policy.underwriting_service import apply_underwriting_update
from boreal.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("/underwriting", response_model=UnderwritingWebhookResponse)
async def underwriting_webhook(
    payload: UnderwritingWebhookPayload,
    idempotency_key: str = Header(..., alias="Idempotency-Key"),
    webhook_secret: str = Header(..., alias="X-Webhook-Secret"),
    db: AsyncSession = Depends(get_db)
):
    """
    Receive an underwriting decision.

    Redeliveries with the same Idempotency-Key are acknowledged with
    duplicate=True and the application's current status.
    """
    if not hmac.compare_digest(webhook_secret, settings.webhook_secret):
        raise AuthenticationError("Invalid webhook secret")

    result = await apply_underwriting_update(
        db, payload.application_id, payload.status, idempotency_key
    )

    if not result.duplicate:
        await log_event(
            db=db,
            action=AuditAction.UNDERWRITING_STATUS_CHANGED,
            metadata={
                "application_id": result.application_id,
                "status": result.status.value,
                "idempotency_key": idempotency_key
            }
        )

    return UnderwritingWebhookResponse(
        application_id=result.application_id,
        status=result.status,
        duplicate=result.duplicate
    )
