"""
Ledger Service (Domain Logic).

Posts balanced double-entry transactions to the append-only ledger.
Callers own the transaction: this module only adds and flushes.
"""

import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from boreal.app.models.ledger_entry import LedgerEntry
from boreal.app.models.billing_enums import LedgerAccount
from boreal.app.core.exceptions import LedgerImbalanceError

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Round an amount to cents, half up."""
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


class LedgerService:

    @staticmethod
    async def post_transaction(
        db: AsyncSession,
        debit_account: LedgerAccount,
        credit_account: LedgerAccount,
        amount: Decimal,
        description: Optional[str] = None,
        reference_id: Optional[str] = None
    ) -> str:
        """
        Post one balanced debit/credit pair.

        Args:
            db: Database session (transaction managed by caller)
            debit_account: Account receiving the debit
            credit_account: Account receiving the credit
            amount: Positive amount for both sides
            description: Free text stored on both entries
            reference_id: Business object the posting belongs to

        Returns:
            The tx_id shared by both entries

        Raises:
            LedgerImbalanceError: If amount is missing or not positive
        """
        amount = to_money(amount)
        if amount <= ZERO:
            raise LedgerImbalanceError(
                f"Ledger postings require a positive amount, got {amount}",
                details={"debit_account": debit_account.value, "credit_account": credit_account.value}
            )

        tx_id = str(uuid.uuid4())
        reference = str(reference_id) if reference_id is not None else None

        ledger_debit = LedgerEntry(
            tx_id=tx_id,
            account=debit_account,
            debit=amount,
            credit=ZERO,
            description=description,
            reference_id=reference
        )

        ledger_credit = LedgerEntry(
            tx_id=tx_id,
            account=credit_account,
            debit=ZERO,
            credit=amount,
            description=description,
            reference_id=reference
        )

        db.add(ledger_debit)
        db.add(ledger_credit)
        await db.flush()

        return tx_id

    @staticmethod
    async def find_unbalanced_transactions(db: AsyncSession) -> List[str]:
        """
        List tx_ids whose debits and credits differ.

        An empty list means the ledger is consistent.
        """
        result = await db.execute(
            select(LedgerEntry.tx_id)
            .group_by(LedgerEntry.tx_id)
            .having(func.sum(LedgerEntry.debit) != func.sum(LedgerEntry.credit))
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_entries(
        db: AsyncSession,
        reference_id: Optional[str] = None,
        tx_id: Optional[str] = None,
        account: Optional[LedgerAccount] = None,
        limit: int = 100
    ) -> List[LedgerEntry]:
        """List ledger entries, oldest first, with optional filters."""
        query = select(LedgerEntry).order_by(LedgerEntry.id)

        if reference_id is not None:
            query = query.where(LedgerEntry.reference_id == str(reference_id))
        if tx_id is not None:
            query = query.where(LedgerEntry.tx_id == tx_id)
        if account is not None:
            query = query.where(LedgerEntry.account == account)

        result = await db.execute(query.limit(limit))
        return list(result.scalars().all())

    @staticmethod
    async def account_balance(db: AsyncSession, account: LedgerAccount) -> Decimal:
        """Net debit balance of an account (debits minus credits)."""
        result = await db.execute(
            select(
                func.coalesce(func.sum(LedgerEntry.debit), 0),
                func.coalesce(func.sum(LedgerEntry.credit), 0)
            ).where(LedgerEntry.account == account)
        )
        debits, credits = result.one()
        return to_money(debits) - to_money(credits)
