"""
Premium Accrual Tests.

Validates the accrual job: ledger postings, commission payables,
job locking and failure handling.
"""

import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from sqlalchemy import select

from boreal.app.models.premium_schedule import PremiumScheduleLine
from boreal.app.models.commission_payable import CommissionPayable
from boreal.app.models.job_run import JobRun
from boreal.app.models.job_lock import JobLock
from boreal.app.models.job_enums import JobStatus, JobType
from boreal.app.models.billing_enums import LedgerAccount, PayableStatus
from boreal.app.domain.accrual.accrual_service import AccrualService
from boreal.app.domain.accrual.premium_schedule import fetch_due_lines
from boreal.app.domain.ledger.ledger_service import LedgerService
from boreal.app.services.job_locking import get_job_lock

NOW = datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc)


async def _job_run(session_factory, job_id):
    async with session_factory() as db:
        return await db.get(JobRun, job_id)


async def _payables(session_factory):
    async with session_factory() as db:
        result = await db.execute(select(CommissionPayable).order_by(CommissionPayable.id))
        return result.scalars().all()


async def _lines(session_factory):
    async with session_factory() as db:
        result = await db.execute(select(PremiumScheduleLine).order_by(PremiumScheduleLine.id))
        return result.scalars().all()


@pytest.mark.asyncio
async def test_accrual_with_referrer(session_factory, make_policy):
    """A due line with a 10% referrer posts premium and commission."""
    await make_policy([(date(2024, 3, 1), "1000.00")], commission_rate=Decimal("0.1000"))

    job_id = await AccrualService.run_accrual(session_factory, now=NOW)

    job = await _job_run(session_factory, job_id)
    assert job.status == JobStatus.COMPLETED
    assert job.job_type == JobType.PREMIUM_ACCRUAL.value
    assert job.completed_at is not None
    assert job.error is None

    lines = await _lines(session_factory)
    assert lines[0].paid is True

    payables = await _payables(session_factory)
    assert len(payables) == 1
    assert payables[0].gross_premium == Decimal("1000.00")
    assert payables[0].commission_amount == Decimal("100.00")
    assert payables[0].status == PayableStatus.EARNED
    assert payables[0].premium_schedule_id == lines[0].id

    async with session_factory() as db:
        entries = await LedgerService.list_entries(db, reference_id=f"premium_schedule:{lines[0].id}")
        assert len(entries) == 4
        assert await LedgerService.account_balance(db, LedgerAccount.PREMIUM_RECEIVABLE) == Decimal("1000.00")
        assert await LedgerService.account_balance(db, LedgerAccount.COMMISSION_EXPENSE) == Decimal("100.00")
        assert await LedgerService.account_balance(db, LedgerAccount.COMMISSION_PAYABLE) == Decimal("-100.00")
        assert await LedgerService.find_unbalanced_transactions(db) == []

        # Lock released once the run completed
        assert await get_job_lock(db, JobType.PREMIUM_ACCRUAL.value) is None


@pytest.mark.asyncio
async def test_accrual_without_referrer(session_factory, make_policy):
    """Direct business still records a zero payable but posts no commission."""
    await make_policy([(date(2024, 3, 1), "500.00")])

    job_id = await AccrualService.run_accrual(session_factory, now=NOW)

    assert (await _job_run(session_factory, job_id)).status == JobStatus.COMPLETED

    payables = await _payables(session_factory)
    assert len(payables) == 1
    assert payables[0].referrer_id is None
    assert payables[0].commission_amount == Decimal("0.00")

    async with session_factory() as db:
        entries = await LedgerService.list_entries(db)
        assert len(entries) == 2
        assert {e.account for e in entries} == {LedgerAccount.PREMIUM_RECEIVABLE, LedgerAccount.PREMIUM_REVENUE}


@pytest.mark.asyncio
async def test_referrer_without_rate_earns_nothing(session_factory, make_policy):
    await make_policy([(date(2024, 3, 1), "500.00")], with_referrer=True)

    await AccrualService.run_accrual(session_factory, now=NOW)

    payables = await _payables(session_factory)
    assert payables[0].referrer_id is not None
    assert payables[0].commission_amount == Decimal("0.00")


@pytest.mark.asyncio
async def test_commission_rounds_half_up(session_factory, make_policy):
    await make_policy([(date(2024, 3, 1), "333.33")], commission_rate=Decimal("0.0750"))

    await AccrualService.run_accrual(session_factory, now=NOW)

    payables = await _payables(session_factory)
    # 333.33 * 0.075 = 24.99975
    assert payables[0].commission_amount == Decimal("25.00")


@pytest.mark.asyncio
async def test_accrual_with_nothing_due(session_factory):
    """A run with no due lines still completes and is recorded."""
    job_id = await AccrualService.run_accrual(session_factory, now=NOW)

    job = await _job_run(session_factory, job_id)
    assert job.status == JobStatus.COMPLETED

    async with session_factory() as db:
        assert await LedgerService.list_entries(db) == []


@pytest.mark.asyncio
async def test_future_lines_not_accrued(session_factory, make_policy):
    await make_policy(
        [(date(2024, 3, 15), "100.00"), (date(2024, 4, 15), "100.00")],
        commission_rate=Decimal("0.1000")
    )

    await AccrualService.run_accrual(session_factory, now=NOW)

    lines = await _lines(session_factory)
    assert [line.paid for line in lines] == [True, False]
    assert len(await _payables(session_factory)) == 1


@pytest.mark.asyncio
async def test_second_run_accrues_nothing(session_factory, make_policy):
    """Re-running over the same period never posts a line twice."""
    await make_policy([(date(2024, 3, 1), "1000.00")], commission_rate=Decimal("0.1000"))

    first = await AccrualService.run_accrual(session_factory, now=NOW)
    second = await AccrualService.run_accrual(session_factory, now=NOW + timedelta(minutes=5))

    assert first != second
    assert (await _job_run(session_factory, second)).status == JobStatus.COMPLETED
    assert len(await _payables(session_factory)) == 1

    async with session_factory() as db:
        assert len(await LedgerService.list_entries(db)) == 4


@pytest.mark.asyncio
async def test_held_lock_skips_run(session_factory, make_policy):
    """While another run holds the lock, nothing is accrued and no JobRun is created."""
    await make_policy([(date(2024, 3, 1), "1000.00")], commission_rate=Decimal("0.1000"))

    async with session_factory() as db:
        db.add(JobLock(job_name=JobType.PREMIUM_ACCRUAL.value, locked_at=NOW - timedelta(minutes=1)))
        await db.commit()

    job_id = await AccrualService.run_accrual(session_factory, now=NOW)

    assert job_id is None
    assert await _payables(session_factory) == []
    assert all(not line.paid for line in await _lines(session_factory))

    async with session_factory() as db:
        runs = await db.execute(select(JobRun))
        assert runs.scalars().all() == []
        # The other run's lock is left alone
        assert await get_job_lock(db, JobType.PREMIUM_ACCRUAL.value) is not None


@pytest.mark.asyncio
async def test_stale_lock_is_reclaimed(session_factory, make_policy):
    """A lock left behind by a crashed run is taken over once it is old enough."""
    await make_policy([(date(2024, 3, 1), "1000.00")], commission_rate=Decimal("0.1000"))

    async with session_factory() as db:
        db.add(JobLock(job_name=JobType.PREMIUM_ACCRUAL.value, locked_at=NOW - timedelta(hours=2)))
        await db.commit()

    job_id = await AccrualService.run_accrual(session_factory, now=NOW, lock_stale_after=timedelta(hours=1))

    assert job_id is not None
    assert (await _job_run(session_factory, job_id)).status == JobStatus.COMPLETED
    assert len(await _payables(session_factory)) == 1


@pytest.mark.asyncio
async def test_failure_rolls_back_all_lines(session_factory, make_policy, mocker):
    """A failure part-way through leaves no partial postings and records the error."""
    await make_policy(
        [(date(2024, 2, 1), "1000.00"), (date(2024, 3, 1), "1000.00")],
        commission_rate=Decimal("0.1000")
    )

    original_post = LedgerService.post_transaction
    calls = {"count": 0}

    async def flaky_post(*args, **kwargs):
        calls["count"] += 1
        # Line 1 posts premium + commission; fail on line 2's premium
        if calls["count"] == 3:
            raise RuntimeError("ledger unavailable")
        return await original_post(*args, **kwargs)

    flaky = mocker.patch.object(LedgerService, "post_transaction", side_effect=flaky_post)

    job_id = await AccrualService.run_accrual(session_factory, now=NOW)

    job = await _job_run(session_factory, job_id)
    assert job.status == JobStatus.FAILED
    assert job.error == "ledger unavailable"

    assert await _payables(session_factory) == []
    assert all(not line.paid for line in await _lines(session_factory))

    async with session_factory() as db:
        assert await LedgerService.list_entries(db) == []
        assert await get_job_lock(db, JobType.PREMIUM_ACCRUAL.value) is None

    # The next run picks the lines up again
    flaky.side_effect = original_post
    retry_id = await AccrualService.run_accrual(session_factory, now=NOW)

    assert (await _job_run(session_factory, retry_id)).status == JobStatus.COMPLETED
    assert len(await _payables(session_factory)) == 2


@pytest.mark.asyncio
async def test_fetch_due_lines_carries_referrer_terms(db_session, make_policy):
    policy = await make_policy([(date(2024, 3, 1), "400.00")], commission_rate=Decimal("0.1250"))

    lines = await fetch_due_lines(db_session, date(2024, 3, 1))

    assert len(lines) == 1
    assert lines[0].policy_id == policy.id
    assert lines[0].premium_amount == Decimal("400.00")
    assert lines[0].commission_rate == Decimal("0.1250")
    assert lines[0].referrer_id is not None


def test_job_run_rejects_backwards_transition():
    from boreal.app.core.exceptions import InvalidStateTransitionError

    job = JobRun(job_type=JobType.PREMIUM_ACCRUAL.value, status=JobStatus.PENDING)
    job.transition_to(JobStatus.RUNNING)
    job.transition_to(JobStatus.COMPLETED)

    with pytest.raises(InvalidStateTransitionError):
        job.transition_to(JobStatus.RUNNING)
