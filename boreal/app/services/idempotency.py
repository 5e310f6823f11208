"""
Idempotency guard for externally retried requests.

Webhook deliveries and client retries of policy activation carry a
client-supplied key. The first request with a key proceeds; repeats are
told so and must answer with the result of the first one.
"""

import logging
from sqlalchemy.ext.asyncio import AsyncSession

from boreal.app.models.idempotency_record import IdempotencyRecord
from boreal.app.db.upsert import insert_or_ignore

logger = logging.getLogger("boreal.idempotency")


async def check_idempotency(db: AsyncSession, key: str, endpoint: str) -> bool:
    """
    Record `key` as seen.

    The insert joins the caller's transaction: if the caller rolls back,
    the key is forgotten and a retry may proceed.

    Args:
        db: Database session (caller commits)
        key: Client-supplied idempotency key
        endpoint: Name of the operation using the key (informational)

    Returns:
        True the first time a key is seen, False for any repeat,
        whatever the endpoint
    """
    stmt = insert_or_ignore(
        db, IdempotencyRecord, ["key"], key=key, endpoint=endpoint
    ).returning(IdempotencyRecord.key)

    result = await db.execute(stmt)
    allowed = result.scalar_one_or_none() is not None

    if not allowed:
        logger.info("Duplicate request for idempotency key '%s' on %s", key, endpoint)

    return allowed
