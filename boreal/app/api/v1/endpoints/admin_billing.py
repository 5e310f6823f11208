"""
Admin Billing API Endpoints.

Payout batching, settlement, and ledger read-outs.
"""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from boreal.app.db.session import get_db
from boreal.app.models.enums import UserRole
from boreal.app.models.billing_enums import PayableStatus, LedgerAccount
from boreal.app.schemas.billing import (
    PayoutBatchCreatedResponse, BatchSettlementResponse, PayoutBatchResponse,
    CommissionPayableResponse, LedgerEntryResponse, LedgerConsistencyResponse
)
from boreal.app.core.guards import require_role
from boreal.app.domain.payout.payout_service import PayoutService
from boreal.app.domain.ledger.ledger_service import LedgerService
from boreal.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/admin", tags=["Admin - Billing"])


@router.post("/payout-batches", response_model=PayoutBatchCreatedResponse)
async def create_payout_batch(
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Batch every earned commission payable for payout.
    """
    result = await PayoutService.create_payout_batch(db)

    await log_event(
        db=db,
        action=AuditAction.PAYOUT_BATCH_CREATED,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        metadata={
            "batch_id": result.batch_id,
            "total": str(result.total),
            "payables": result.payable_count
        }
    )

    return PayoutBatchCreatedResponse(
        batch_id=result.batch_id,
        total=result.total,
        payable_count=result.payable_count
    )


@router.post("/payout-batches/{batch_id}/mark-paid", response_model=BatchSettlementResponse)
async def mark_batch_paid(
    batch_id: int = Path(..., description="Payout batch ID"),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Mark a payout batch PAID and post the cash movement.

    Repeating the call on a paid batch changes nothing.
    """
    result = await PayoutService.mark_batch_paid(db, batch_id)

    if not result.already_paid:
        await log_event(
            db=db,
            action=AuditAction.PAYOUT_BATCH_PAID,
            actor_id=current_user["user_id"],
            actor_username=current_user.get("sub"),
            metadata={
                "batch_id": batch_id,
                "total": str(result.total),
                "tx_id": result.tx_id
            }
        )

    return BatchSettlementResponse(
        batch_id=result.batch_id,
        total=result.total,
        already_paid=result.already_paid,
        payables_paid=result.payables_paid,
        tx_id=result.tx_id
    )


@router.get("/payout-batches", response_model=List[PayoutBatchResponse])
async def list_payout_batches(
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """List payout batches, newest first."""
    return await PayoutService.list_batches(db, limit=limit)


@router.get("/commission-payables", response_model=List[CommissionPayableResponse])
async def list_commission_payables(
    status: Optional[PayableStatus] = None,
    payout_batch_id: Optional[int] = None,
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """List commission payables, optionally by status or batch."""
    return await PayoutService.list_payables(
        db, status=status, payout_batch_id=payout_batch_id, limit=limit
    )


@router.get("/ledger", response_model=List[LedgerEntryResponse])
async def list_ledger_entries(
    reference_id: Optional[str] = None,
    tx_id: Optional[str] = None,
    account: Optional[LedgerAccount] = None,
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """List ledger entries, oldest first."""
    return await LedgerService.list_entries(
        db, reference_id=reference_id, tx_id=tx_id, account=account, limit=limit
    )


@router.get("/ledger/unbalanced", response_model=LedgerConsistencyResponse)
async def check_ledger_balance(
    current_user: dict = Depends(require_role([UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """Report transactions whose debits and credits differ (expected: none)."""
    unbalanced = await LedgerService.find_unbalanced_transactions(db)
    return LedgerConsistencyResponse(balanced=not unbalanced, unbalanced_tx_ids=unbalanced)
