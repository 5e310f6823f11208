"""Worker loop for the scheduled premium accrual job.

Runs inside the API process (started from the lifespan when
`accrual_scheduler_enabled` is set) or standalone:

    python -m boreal.app.workers.accrual_worker [--once]
"""

import argparse
import asyncio
import logging

from boreal.app.core.config import settings
from boreal.app.core.observability import configure_logging
from boreal.app.db.session import create_db_engine, build_session_factory
from boreal.app.domain.accrual.accrual_service import AccrualService

logger = logging.getLogger("boreal.worker")


async def run_accrual_loop(session_factory, interval_seconds: int) -> None:
    """Run the premium accrual every `interval_seconds` until cancelled."""
    logger.info("Accrual worker started (interval=%ss)", interval_seconds)

    while True:
        # run_accrual records its own failures; this only guards the loop
        try:
            await AccrualService.run_accrual(session_factory)
        except Exception:
            logger.exception("Accrual tick crashed")

        await asyncio.sleep(interval_seconds)


async def _run(once: bool) -> None:
    engine = create_db_engine(settings)
    session_factory = build_session_factory(engine)
    try:
        if once:
            job_id = await AccrualService.run_accrual(session_factory)
            logger.info("One-shot accrual finished (job_run=%s)", job_id)
        else:
            await run_accrual_loop(session_factory, settings.accrual_interval_seconds)
    finally:
        await engine.dispose()


def main() -> None:
    """Entry point for the worker process."""
    parser = argparse.ArgumentParser(description="Boreal premium accrual worker")
    parser.add_argument("--once", action="store_true", help="run a single accrual pass and exit")
    args = parser.parse_args()

    configure_logging(settings.log_level)
    asyncio.run(_run(args.once))


if __name__ == "__main__":
    main()
