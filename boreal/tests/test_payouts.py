"""
Payout Tests.

Validates payout batching and settlement of commission payables.
"""

import pytest
from datetime import date
from decimal import Decimal
from sqlalchemy import select

from boreal.app.models.commission_payable import CommissionPayable
from boreal.app.models.payout_batch import PayoutBatch
from boreal.app.models.premium_schedule import PremiumScheduleLine
from boreal.app.models.billing_enums import LedgerAccount, PayableStatus, BatchStatus
from boreal.app.domain.payout.payout_service import PayoutService
from boreal.app.domain.ledger.ledger_service import LedgerService
from boreal.app.core.exceptions import ResourceNotFoundError


@pytest.fixture
def make_payables(session_factory, make_policy):
    """Create one payable per amount, each on its own schedule line."""

    async def _make(amounts, status=PayableStatus.EARNED):
        lines = [(date(2024, month, 1), "500.00") for month in range(1, len(amounts) + 1)]
        policy = await make_policy(lines, commission_rate=Decimal("0.1000"))

        async with session_factory() as db:
            result = await db.execute(
                select(PremiumScheduleLine)
                .where(PremiumScheduleLine.policy_id == policy.id)
                .order_by(PremiumScheduleLine.id)
            )
            schedule = result.scalars().all()

            payables = [
                CommissionPayable(
                    policy_id=policy.id,
                    premium_schedule_id=line.id,
                    gross_premium=Decimal("500.00"),
                    commission_rate=Decimal("0.1000"),
                    commission_amount=Decimal(amount),
                    status=status
                )
                for line, amount in zip(schedule, amounts)
            ]
            db.add_all(payables)
            await db.commit()
            return [p.id for p in payables]

    return _make


async def _payables_by_id(session_factory, ids):
    async with session_factory() as db:
        result = await db.execute(select(CommissionPayable).where(CommissionPayable.id.in_(ids)))
        return {p.id: p for p in result.scalars().all()}


@pytest.mark.asyncio
async def test_create_payout_batch_claims_earned(session_factory, make_payables):
    ids = await make_payables(["50.00", "75.00", "25.00"])

    async with session_factory() as db:
        result = await PayoutService.create_payout_batch(db)

    assert result.total == Decimal("150.00")
    assert result.payable_count == 3

    async with session_factory() as db:
        batch = await db.get(PayoutBatch, result.batch_id)
        assert batch.status == BatchStatus.CLOSED
        assert batch.total_amount == Decimal("150.00")
        assert batch.paid_at is None

    payables = await _payables_by_id(session_factory, ids)
    assert all(p.status == PayableStatus.BATCHED for p in payables.values())
    assert all(p.payout_batch_id == result.batch_id for p in payables.values())


@pytest.mark.asyncio
async def test_batch_excludes_already_batched(session_factory, make_payables):
    """A payable claimed by one batch is never claimed by the next."""
    await make_payables(["50.00", "75.00"])

    async with session_factory() as db:
        first = await PayoutService.create_payout_batch(db)

    late_ids = await make_payables(["20.00"])

    async with session_factory() as db:
        second = await PayoutService.create_payout_batch(db)

    assert first.total == Decimal("125.00")
    assert second.total == Decimal("20.00")
    assert second.payable_count == 1

    payables = await _payables_by_id(session_factory, late_ids)
    assert payables[late_ids[0]].payout_batch_id == second.batch_id


@pytest.mark.asyncio
async def test_empty_batch(session_factory):
    async with session_factory() as db:
        result = await PayoutService.create_payout_batch(db)

    assert result.total == Decimal("0.00")
    assert result.payable_count == 0


@pytest.mark.asyncio
async def test_mark_batch_paid_posts_cash(session_factory, make_payables):
    ids = await make_payables(["50.00", "75.00", "25.00"])

    async with session_factory() as db:
        created = await PayoutService.create_payout_batch(db)

    async with session_factory() as db:
        settled = await PayoutService.mark_batch_paid(db, created.batch_id)

    assert settled.already_paid is False
    assert settled.total == Decimal("150.00")
    assert settled.payables_paid == 3
    assert settled.tx_id is not None

    async with session_factory() as db:
        batch = await db.get(PayoutBatch, created.batch_id)
        assert batch.status == BatchStatus.PAID
        assert batch.paid_at is not None

        entries = await LedgerService.list_entries(db, reference_id=f"payout_batch:{created.batch_id}")
        assert len(entries) == 2
        debit = next(e for e in entries if e.debit > 0)
        credit = next(e for e in entries if e.credit > 0)
        assert debit.account == LedgerAccount.COMMISSION_PAYABLE
        assert debit.debit == Decimal("150.00")
        assert credit.account == LedgerAccount.CASH
        assert credit.credit == Decimal("150.00")

    payables = await _payables_by_id(session_factory, ids)
    assert all(p.status == PayableStatus.PAID for p in payables.values())


@pytest.mark.asyncio
async def test_mark_batch_paid_twice_posts_once(session_factory, make_payables):
    """Settling a paid batch again changes nothing."""
    await make_payables(["50.00", "75.00", "25.00"])

    async with session_factory() as db:
        created = await PayoutService.create_payout_batch(db)

    async with session_factory() as db:
        first = await PayoutService.mark_batch_paid(db, created.batch_id)
        paid_at = (await db.get(PayoutBatch, created.batch_id)).paid_at

    async with session_factory() as db:
        second = await PayoutService.mark_batch_paid(db, created.batch_id)

    assert first.already_paid is False
    assert second.already_paid is True
    assert second.total == Decimal("150.00")
    assert second.tx_id is None

    async with session_factory() as db:
        entries = await LedgerService.list_entries(db, account=LedgerAccount.CASH)
        assert len(entries) == 1
        assert (await db.get(PayoutBatch, created.batch_id)).paid_at == paid_at


@pytest.mark.asyncio
async def test_mark_unknown_batch_paid(session_factory):
    async with session_factory() as db:
        with pytest.raises(ResourceNotFoundError):
            await PayoutService.mark_batch_paid(db, 9999)


@pytest.mark.asyncio
async def test_empty_batch_paid_posts_nothing(session_factory):
    async with session_factory() as db:
        created = await PayoutService.create_payout_batch(db)

    async with session_factory() as db:
        settled = await PayoutService.mark_batch_paid(db, created.batch_id)

    assert settled.already_paid is False
    assert settled.tx_id is None

    async with session_factory() as db:
        assert await LedgerService.list_entries(db) == []
        assert (await db.get(PayoutBatch, created.batch_id)).status == BatchStatus.PAID


@pytest.mark.asyncio
async def test_list_payables_filters(session_factory, make_payables):
    await make_payables(["50.00", "75.00"])

    async with session_factory() as db:
        created = await PayoutService.create_payout_batch(db)

    await make_payables(["10.00"])

    async with session_factory() as db:
        earned = await PayoutService.list_payables(db, status=PayableStatus.EARNED)
        batched = await PayoutService.list_payables(db, payout_batch_id=created.batch_id)

    assert [p.commission_amount for p in earned] == [Decimal("10.00")]
    assert len(batched) == 2
