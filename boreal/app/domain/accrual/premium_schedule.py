"""
Premium schedule data access for the accrual job.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from boreal.app.models.premium_schedule import PremiumScheduleLine
from boreal.app.models.policy import Policy
from boreal.app.models.application import Application
from boreal.app.models.lead import Lead
from boreal.app.models.referrer import Referrer


@dataclass(frozen=True)
class DueScheduleLine:
    """Read-only projection of a due line with its referrer's commission terms."""
    id: int
    policy_id: int
    due_date: date
    premium_amount: Decimal
    referrer_id: Optional[int]
    commission_rate: Decimal


async def fetch_due_lines(db: AsyncSession, as_of: date) -> List[DueScheduleLine]:
    """
    Fetch unpaid schedule lines due on or before `as_of`.

    Follows policy -> application -> lead -> referrer with outer joins;
    a line without a referrer (or a referrer without a rate) gets rate 0.

    Args:
        db: Database session
        as_of: Cut-off date (inclusive)

    Returns:
        Due lines ordered by id
    """
    stmt = (
        select(
            PremiumScheduleLine.id,
            PremiumScheduleLine.policy_id,
            PremiumScheduleLine.due_date,
            PremiumScheduleLine.premium_amount,
            Referrer.id.label("referrer_id"),
            Referrer.commission_rate,
        )
        .join(Policy, Policy.id == PremiumScheduleLine.policy_id)
        .outerjoin(Application, Application.id == Policy.application_id)
        .outerjoin(Lead, Lead.id == Application.lead_id)
        .outerjoin(Referrer, Referrer.id == Lead.referrer_id)
        .where(
            PremiumScheduleLine.due_date <= as_of,
            PremiumScheduleLine.paid.is_(False)
        )
        .order_by(PremiumScheduleLine.id)
    )

    result = await db.execute(stmt)

    return [
        DueScheduleLine(
            id=row.id,
            policy_id=row.policy_id,
            due_date=row.due_date,
            premium_amount=Decimal(str(row.premium_amount)),
            referrer_id=row.referrer_id,
            commission_rate=Decimal(str(row.commission_rate)) if row.commission_rate is not None else Decimal("0"),
        )
        for row in result.all()
    ]


async def mark_line_paid(db: AsyncSession, line_id: int) -> bool:
    """
    Flip a schedule line to paid.

    One-way: the update only matches unpaid lines.

    Returns:
        True if the line was flipped now, False if it was already paid
    """
    result = await db.execute(
        update(PremiumScheduleLine)
        .where(
            PremiumScheduleLine.id == line_id,
            PremiumScheduleLine.paid.is_(False)
        )
        .values(paid=True)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def list_schedule(db: AsyncSession, policy_id: int) -> List[PremiumScheduleLine]:
    """Return all schedule lines of a policy by due date."""
    result = await db.execute(
        select(PremiumScheduleLine)
        .where(PremiumScheduleLine.policy_id == policy_id)
        .order_by(PremiumScheduleLine.due_date, PremiumScheduleLine.id)
    )
    return list(result.scalars().all())
