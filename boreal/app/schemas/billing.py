"""
Billing Schemas for payouts, commission payables and the ledger.
"""

from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional
from boreal.app.models.billing_enums import BatchStatus, PayableStatus, LedgerAccount


class PayoutBatchCreatedResponse(BaseModel):
    """Response for batch creation."""
    batch_id: int
    total: Decimal
    payable_count: int


class BatchSettlementResponse(BaseModel):
    """Response for marking a batch paid."""
    batch_id: int
    total: Decimal
    paid: bool = True
    already_paid: bool
    payables_paid: int
    tx_id: Optional[str]


class PayoutBatchResponse(BaseModel):
    """Schema for displaying payout batches."""
    id: int
    status: BatchStatus
    total_amount: Decimal
    created_at: datetime
    paid_at: Optional[datetime]

    class Config:
        from_attributes = True


class CommissionPayableResponse(BaseModel):
    """Schema for displaying commission payables."""
    id: int
    policy_id: int
    premium_schedule_id: int
    referrer_id: Optional[int]
    gross_premium: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    status: PayableStatus
    payout_batch_id: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


class LedgerEntryResponse(BaseModel):
    """Schema for displaying ledger entries."""
    id: int
    tx_id: str
    account: LedgerAccount
    debit: Decimal
    credit: Decimal
    description: Optional[str]
    reference_id: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class LedgerConsistencyResponse(BaseModel):
    """Result of the double-entry balance check."""
    balanced: bool
    unbalanced_tx_ids: list[str]
