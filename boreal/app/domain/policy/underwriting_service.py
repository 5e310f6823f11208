"""
Underwriting webhook handling.

The underwriting partner calls back with application decisions and
retries deliveries; every delivery carries an idempotency key.
"""

import logging
from dataclasses import dataclass
from sqlalchemy.ext.asyncio import AsyncSession

from boreal.app.core.exceptions import ResourceNotFoundError
from boreal.app.models.application import Application
from boreal.app.models.policy_enums import ApplicationStatus
from boreal.app.services.idempotency import check_idempotency

logger = logging.getLogger("boreal.underwriting")

WEBHOOK_ENDPOINT = "underwriting_webhook"


@dataclass(frozen=True)
class UnderwritingUpdateResult:
    application_id: int
    status: ApplicationStatus
    duplicate: bool


async def apply_underwriting_update(
    db: AsyncSession,
    application_id: int,
    status: ApplicationStatus,
    idempotency_key: str
) -> UnderwritingUpdateResult:
    """
    Apply an underwriting decision to an application once per delivery key.

    A redelivery returns the application's current status without
    writing anything.

    Raises:
        ResourceNotFoundError: Unknown application
    """
    try:
        if not await check_idempotency(db, idempotency_key, WEBHOOK_ENDPOINT):
            await db.rollback()
            application = await db.get(Application, application_id)
            if application is None:
                raise ResourceNotFoundError("Application", application_id)
            return UnderwritingUpdateResult(
                application_id=application.id, status=application.status, duplicate=True
            )

        application = await db.get(Application, application_id)
        if application is None:
            raise ResourceNotFoundError("Application", application_id)

        previous = application.status
        application.status = status
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Underwriting update for application %s: %s -> %s", application_id, previous.value, status.value
    )

    return UnderwritingUpdateResult(application_id=application_id, status=status, duplicate=False)
