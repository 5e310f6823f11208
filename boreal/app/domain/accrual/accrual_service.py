"""
Premium Accrual Service (Domain Logic).

Recognizes due premium, posts it to the ledger and accrues referrer
commission. Runs as a background job guarded by a job lock and recorded
as a JobRun.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from boreal.app.core.config import settings
from boreal.app.core.clock import utcnow
from boreal.app.models.job_run import JobRun
from boreal.app.models.job_enums import JobStatus, JobType
from boreal.app.models.commission_payable import CommissionPayable
from boreal.app.models.billing_enums import LedgerAccount, PayableStatus
from boreal.app.domain.accrual.premium_schedule import DueScheduleLine, fetch_due_lines, mark_line_paid
from boreal.app.domain.ledger.ledger_service import LedgerService, to_money, ZERO
from boreal.app.services.job_locking import acquire_job_lock, release_job_lock

logger = logging.getLogger("boreal.accrual")

ACCRUAL_JOB = JobType.PREMIUM_ACCRUAL.value


class AccrualService:

    @staticmethod
    async def run_accrual(
        session_factory: async_sessionmaker,
        now: Optional[datetime] = None,
        lock_stale_after: Optional[timedelta] = None
    ) -> Optional[int]:
        """
        Run one premium accrual pass.

        Flow:
        1. Take the job lock and record a RUNNING JobRun (committed on its own)
        2. Accrue every due line in ONE transaction
        3. Complete the JobRun and release the lock in that same transaction
        On failure the line work is rolled back, the JobRun is marked FAILED
        and the lock released. Errors are logged, never raised: the next
        scheduled tick is the retry.

        Args:
            session_factory: Factory for database sessions
            now: Accrual time (defaults to the clock)
            lock_stale_after: Lock age after which it is reclaimed
                (defaults to settings.job_lock_stale_after_seconds)

        Returns:
            ID of the JobRun, or None if another run holds the lock
            or the run could not be started
        """
        now = now or utcnow()
        if lock_stale_after is None:
            lock_stale_after = timedelta(seconds=settings.job_lock_stale_after_seconds)

        async with session_factory() as db:
            # 1. Lock + JobRun
            try:
                acquired = await acquire_job_lock(db, ACCRUAL_JOB, stale_after=lock_stale_after, now=now)
                if not acquired:
                    await db.rollback()
                    logger.info("Premium accrual skipped: another run holds the '%s' lock", ACCRUAL_JOB)
                    return None

                job = JobRun(job_type=ACCRUAL_JOB, status=JobStatus.PENDING)
                job.transition_to(JobStatus.RUNNING)
                job.started_at = now
                db.add(job)
                await db.commit()
                job_id = job.id
            except Exception:
                await db.rollback()
                logger.exception("Premium accrual could not start")
                return None

            logger.info("Premium accrual started (job_run=%s, as_of=%s)", job_id, now.date())

            # 2. Accrue
            try:
                due_lines = await fetch_due_lines(db, now.date())

                accrued = 0
                commission_total = ZERO
                for line in due_lines:
                    payable = await AccrualService.accrue_line(db, line)
                    if payable is not None:
                        accrued += 1
                        commission_total += payable.commission_amount

                # 3. Complete
                job = await db.get(JobRun, job_id)
                job.transition_to(JobStatus.COMPLETED)
                job.completed_at = utcnow()
                await release_job_lock(db, ACCRUAL_JOB)
                await db.commit()

                logger.info(
                    "Premium accrual completed (job_run=%s): due=%d accrued=%d commission=%s",
                    job_id, len(due_lines), accrued, commission_total
                )
            except Exception as exc:
                await db.rollback()
                logger.exception("Premium accrual failed (job_run=%s)", job_id)
                await AccrualService._record_failure(db, job_id, exc)

        return job_id

    @staticmethod
    async def accrue_line(db: AsyncSession, line: DueScheduleLine) -> Optional[CommissionPayable]:
        """
        Accrue one due schedule line.

        Flips the line to paid, posts the premium, and records the commission
        payable (always, even at rate 0). The commission is posted to the
        ledger only when it is positive.

        Args:
            db: Database session (transaction managed by caller)
            line: Due line projection

        Returns:
            Created CommissionPayable, or None if the line was already paid
        """
        if not await mark_line_paid(db, line.id):
            logger.warning("Premium schedule line %s already paid; skipping", line.id)
            return None

        reference = f"premium_schedule:{line.id}"
        premium = to_money(line.premium_amount)

        await LedgerService.post_transaction(
            db,
            debit_account=LedgerAccount.PREMIUM_RECEIVABLE,
            credit_account=LedgerAccount.PREMIUM_REVENUE,
            amount=premium,
            description=f"Premium due {line.due_date} (Policy {line.policy_id})",
            reference_id=reference
        )

        rate = line.commission_rate if line.referrer_id is not None else Decimal("0")
        commission_amount = to_money(premium * rate)

        payable = CommissionPayable(
            policy_id=line.policy_id,
            premium_schedule_id=line.id,
            referrer_id=line.referrer_id,
            gross_premium=premium,
            commission_rate=rate,
            commission_amount=commission_amount,
            status=PayableStatus.EARNED
        )
        db.add(payable)
        await db.flush()

        if commission_amount > ZERO:
            await LedgerService.post_transaction(
                db,
                debit_account=LedgerAccount.COMMISSION_EXPENSE,
                credit_account=LedgerAccount.COMMISSION_PAYABLE,
                amount=commission_amount,
                description=f"Commission on premium due {line.due_date} (Referrer {line.referrer_id})",
                reference_id=reference
            )

        return payable

    @staticmethod
    async def _record_failure(db: AsyncSession, job_id: int, exc: Exception) -> None:
        """Mark the JobRun failed and release the lock in a fresh transaction."""
        try:
            job = await db.get(JobRun, job_id)
            if job is not None:
                job.transition_to(JobStatus.FAILED)
                job.completed_at = utcnow()
                job.error = str(exc) or type(exc).__name__
            await release_job_lock(db, ACCRUAL_JOB)
            await db.commit()
        except Exception:
            await db.rollback()
            # The lock stays until it goes stale and is reclaimed
            logger.exception("Could not record failure of premium accrual (job_run=%s)", job_id)
