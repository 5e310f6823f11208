"""
Policy and underwriting schemas.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from boreal.app.models.policy_enums import ApplicationStatus, PolicyStatus


class PolicyActivateRequest(BaseModel):
    """Schema for activating a policy."""
    application_id: int = Field(..., gt=0)
    annual_premium: Optional[Decimal] = Field(None, gt=0)
    start_date: Optional[date] = None


class PolicyResponse(BaseModel):
    """Schema for displaying a policy."""
    id: int
    application_id: int
    policy_number: str
    premium_amount: Decimal
    start_date: date
    end_date: date
    status: PolicyStatus
    created_at: datetime

    class Config:
        from_attributes = True


class PolicyActivationResponse(BaseModel):
    """Activation result; replayed is True for a repeated idempotency key."""
    policy: PolicyResponse
    replayed: bool


class UnderwritingWebhookPayload(BaseModel):
    """Underwriting partner callback body."""
    application_id: int = Field(..., gt=0)
    status: ApplicationStatus


class UnderwritingWebhookResponse(BaseModel):
    """Acknowledgement returned to the underwriting partner."""
    received: bool = True
    application_id: int
    status: ApplicationStatus
    duplicate: bool
