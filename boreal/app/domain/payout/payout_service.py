"""
Payout Service (Domain Logic).

Batches earned commission payables and settles batches.
Each operation is one transaction: it commits on success and rolls back
and re-raises on failure, so the admin caller sees the error.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, desc

from boreal.app.core.clock import utcnow
from boreal.app.core.exceptions import ResourceNotFoundError
from boreal.app.models.payout_batch import PayoutBatch
from boreal.app.models.commission_payable import CommissionPayable
from boreal.app.models.billing_enums import BatchStatus, PayableStatus, LedgerAccount
from boreal.app.domain.ledger.ledger_service import LedgerService, to_money, ZERO

logger = logging.getLogger("boreal.payouts")


@dataclass(frozen=True)
class PayoutBatchResult:
    batch_id: int
    total: Decimal
    payable_count: int


@dataclass(frozen=True)
class BatchSettlementResult:
    batch_id: int
    total: Decimal
    already_paid: bool
    payables_paid: int = 0
    tx_id: Optional[str] = None


class PayoutService:

    @staticmethod
    async def create_payout_batch(db: AsyncSession) -> PayoutBatchResult:
        """
        Claim every EARNED payable into a new payout batch.

        The claim is a single UPDATE ... WHERE status = EARNED, so two
        concurrent batch creations can never claim the same payable.

        Args:
            db: Database session

        Returns:
            PayoutBatchResult with the new batch id and its total
        """
        try:
            batch = PayoutBatch(status=BatchStatus.OPEN, total_amount=ZERO)
            db.add(batch)
            await db.flush()  # To get batch.id

            claimed = await db.execute(
                update(CommissionPayable)
                .where(CommissionPayable.status == PayableStatus.EARNED)
                .values(status=PayableStatus.BATCHED, payout_batch_id=batch.id)
                .returning(CommissionPayable.commission_amount)
                .execution_options(synchronize_session=False)
            )
            amounts = [to_money(amount) for amount in claimed.scalars().all()]
            total = sum(amounts, ZERO)

            batch.total_amount = total
            batch.status = BatchStatus.CLOSED
            batch_id = batch.id

            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception("Payout batch creation failed")
            raise

        logger.info("Payout batch %s created: payables=%d total=%s", batch_id, len(amounts), total)

        return PayoutBatchResult(batch_id=batch_id, total=total, payable_count=len(amounts))

    @staticmethod
    async def mark_batch_paid(db: AsyncSession, batch_id: int) -> BatchSettlementResult:
        """
        Settle a payout batch.

        Flow:
        1. Flip the batch to PAID, guarded by status != PAID
        2. Flip its payables BATCHED -> PAID
        3. Post Commission Payable (debit) / Cash (credit) for the total

        A batch that is already PAID is left untouched and nothing is posted.

        Args:
            db: Database session
            batch_id: Batch to settle

        Returns:
            BatchSettlementResult (already_paid=True on a repeat call)

        Raises:
            ResourceNotFoundError: If the batch does not exist
        """
        try:
            settled = await db.execute(
                update(PayoutBatch)
                .where(
                    PayoutBatch.id == batch_id,
                    PayoutBatch.status != BatchStatus.PAID
                )
                .values(status=BatchStatus.PAID, paid_at=utcnow())
                .returning(PayoutBatch.total_amount)
                .execution_options(synchronize_session=False)
            )
            total = settled.scalar_one_or_none()

            if total is None:
                existing = await db.get(PayoutBatch, batch_id)
                existing_total = existing.total_amount if existing is not None else None
                await db.rollback()
                if existing is None:
                    raise ResourceNotFoundError("Payout batch", batch_id)

                logger.warning("Payout batch %s is already paid; nothing posted", batch_id)
                return BatchSettlementResult(
                    batch_id=batch_id,
                    total=to_money(existing_total),
                    already_paid=True
                )

            total = to_money(total)

            payables = await db.execute(
                update(CommissionPayable)
                .where(
                    CommissionPayable.payout_batch_id == batch_id,
                    CommissionPayable.status == PayableStatus.BATCHED
                )
                .values(status=PayableStatus.PAID)
                .execution_options(synchronize_session=False)
            )
            payables_paid = payables.rowcount

            tx_id = None
            if total > ZERO:
                tx_id = await LedgerService.post_transaction(
                    db,
                    debit_account=LedgerAccount.COMMISSION_PAYABLE,
                    credit_account=LedgerAccount.CASH,
                    amount=total,
                    description=f"Commission payout (Batch {batch_id})",
                    reference_id=f"payout_batch:{batch_id}"
                )

            await db.commit()
        except ResourceNotFoundError:
            raise
        except Exception:
            await db.rollback()
            logger.exception("Settlement of payout batch %s failed", batch_id)
            raise

        logger.info("Payout batch %s paid: payables=%d total=%s", batch_id, payables_paid, total)

        return BatchSettlementResult(
            batch_id=batch_id,
            total=total,
            already_paid=False,
            payables_paid=payables_paid,
            tx_id=tx_id
        )

    @staticmethod
    async def list_batches(db: AsyncSession, limit: int = 100) -> List[PayoutBatch]:
        """List payout batches, newest first."""
        result = await db.execute(
            select(PayoutBatch).order_by(desc(PayoutBatch.id)).limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_payables(
        db: AsyncSession,
        status: Optional[PayableStatus] = None,
        payout_batch_id: Optional[int] = None,
        limit: int = 100
    ) -> List[CommissionPayable]:
        """List commission payables with optional filters."""
        query = select(CommissionPayable).order_by(CommissionPayable.id)

        if status is not None:
            query = query.where(CommissionPayable.status == status)
        if payout_batch_id is not None:
            query = query.where(CommissionPayable.payout_batch_id == payout_batch_id)

        result = await db.execute(query.limit(limit))
        return list(result.scalars().all())
