"""
Policy Service (Domain Logic).

Activates and renews policies and lays out their premium schedule.
Activation is retry-safe through an idempotency key.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_DOWN
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from boreal.app.core.config import settings
from boreal.app.core.clock import utcnow
from boreal.app.core.exceptions import ResourceNotFoundError, InvalidStateTransitionError
from boreal.app.models.application import Application
from boreal.app.models.policy import Policy
from boreal.app.models.premium_schedule import PremiumScheduleLine
from boreal.app.models.policy_enums import ApplicationStatus, PolicyStatus
from boreal.app.domain.ledger.ledger_service import to_money, ZERO
from boreal.app.services.idempotency import check_idempotency

logger = logging.getLogger("boreal.policies")

ACTIVATION_ENDPOINT = "policy_activation"


@dataclass(frozen=True)
class PolicyActivationResult:
    policy: Policy
    replayed: bool  # True when the key was seen before and the earlier policy is returned


def add_months(start: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def build_schedule(
    policy_id: int,
    start_date: date,
    annual_premium: Decimal,
    periods: int
) -> List[PremiumScheduleLine]:
    """
    Split an annual premium into evenly spaced schedule lines.

    Each period gets the premium divided evenly, rounded down to cents;
    the last period absorbs the remainder so the lines add up exactly.

    Args:
        policy_id: Owning policy
        start_date: Due date of the first line
        annual_premium: Premium for the whole year
        periods: Number of billing periods (12 = monthly)

    Returns:
        Unsaved PremiumScheduleLine objects
    """
    if periods < 1 or 12 % periods != 0:
        raise ValueError(f"billing periods must divide the year evenly, got {periods}")

    annual_premium = to_money(annual_premium)
    step_months = 12 // periods
    installment = (annual_premium / periods).quantize(Decimal("0.01"), rounding=ROUND_DOWN)

    lines = []
    for index in range(periods):
        amount = installment
        if index == periods - 1:
            amount = annual_premium - installment * (periods - 1)
        lines.append(
            PremiumScheduleLine(
                policy_id=policy_id,
                due_date=add_months(start_date, index * step_months),
                premium_amount=amount,
                paid=False
            )
        )
    return lines


class PolicyService:

    @staticmethod
    async def activate_policy(
        db: AsyncSession,
        application_id: int,
        annual_premium: Optional[Decimal] = None,
        idempotency_key: Optional[str] = None,
        start_date: Optional[date] = None
    ) -> PolicyActivationResult:
        """
        Activate the policy for an approved application.

        Flow:
        1. Idempotency check (key defaults to one per application)
        2. Validate the application is APPROVED
        3. Create the policy and its first year of schedule lines
        4. Mark the application ACTIVE

        A repeated key, or a new key for an application that already has a
        policy, returns the policy created by the first call.

        Args:
            db: Database session (committed here)
            application_id: Approved application
            annual_premium: Premium to bill (defaults to the application's quote)
            idempotency_key: Client-supplied key for retries
            start_date: Cover start (defaults to today)

        Returns:
            PolicyActivationResult

        Raises:
            ResourceNotFoundError: Unknown application, or a replay whose
                original policy cannot be found
            InvalidStateTransitionError: Application is not APPROVED
        """
        key = idempotency_key or f"{ACTIVATION_ENDPOINT}:{application_id}"

        try:
            if not await check_idempotency(db, key, ACTIVATION_ENDPOINT):
                await db.rollback()
                existing = await PolicyService.get_policy_for_application(db, application_id)
                if existing is None:
                    raise ResourceNotFoundError("Policy for application", application_id)
                return PolicyActivationResult(policy=existing, replayed=True)

            application = await db.get(Application, application_id)
            if application is None:
                raise ResourceNotFoundError("Application", application_id)

            # New key, but the application was already activated under another one
            existing = await PolicyService.get_policy_for_application(db, application_id)
            if existing is not None:
                await db.commit()
                return PolicyActivationResult(policy=existing, replayed=True)

            if application.status != ApplicationStatus.APPROVED:
                raise InvalidStateTransitionError(
                    "Application", application.status.value, ApplicationStatus.ACTIVE.value
                )

            premium = to_money(annual_premium if annual_premium is not None else application.annual_premium)
            if premium <= ZERO:
                raise ValueError(f"Application {application_id} has no premium to bill")

            start = start_date or utcnow().date()

            policy = Policy(
                application_id=application.id,
                policy_number=f"BI-{int(utcnow().timestamp() * 1000)}-{application.id}",
                premium_amount=premium,
                start_date=start,
                end_date=add_months(start, 12) - timedelta(days=1),
                status=PolicyStatus.ACTIVE
            )
            db.add(policy)
            await db.flush()  # To get policy.id

            db.add_all(build_schedule(policy.id, start, premium, settings.billing_periods_per_year))

            application.status = ApplicationStatus.ACTIVE

            await db.commit()
            await db.refresh(policy)
        except Exception:
            await db.rollback()
            raise

        logger.info("Policy %s activated for application %s", policy.policy_number, application_id)

        return PolicyActivationResult(policy=policy, replayed=False)

    @staticmethod
    async def renew_policy(db: AsyncSession, policy_id: int) -> Policy:
        """
        Renew an active policy for another year.

        Extends end_date by twelve months and schedules the next year's
        premium at the current annual premium.

        Raises:
            ResourceNotFoundError: Unknown policy
            InvalidStateTransitionError: Policy is not ACTIVE
        """
        try:
            policy = await db.get(Policy, policy_id)
            if policy is None:
                raise ResourceNotFoundError("Policy", policy_id)

            if policy.status != PolicyStatus.ACTIVE:
                raise InvalidStateTransitionError("Policy", policy.status.value, "renewed")

            renewal_start = policy.end_date + timedelta(days=1)
            policy.end_date = add_months(renewal_start, 12) - timedelta(days=1)

            db.add_all(
                build_schedule(policy.id, renewal_start, policy.premium_amount, settings.billing_periods_per_year)
            )

            await db.commit()
            await db.refresh(policy)
        except Exception:
            await db.rollback()
            raise

        logger.info("Policy %s renewed until %s", policy.policy_number, policy.end_date)

        return policy

    @staticmethod
    async def get_policy_for_application(db: AsyncSession, application_id: int) -> Optional[Policy]:
        result = await db.execute(select(Policy).where(Policy.application_id == application_id))
        return result.scalar_one_or_none()
