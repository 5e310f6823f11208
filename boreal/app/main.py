"""
Boreal Insurance backend: FastAPI application.

    uvicorn boreal.app.main:app
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from boreal.app.core.config import settings
from boreal.app.core.observability import ObservabilityMiddleware, configure_logging
from boreal.app.api.v1.router import router as api_v1_router
from boreal.app.db.session import Base, create_db_engine, build_session_factory
from boreal.app.workers.accrual_worker import run_accrual_loop
from boreal.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Every table must be on Base.metadata before create_all runs
from boreal.app.models.referrer import Referrer
from boreal.app.models.lead import Lead
from boreal.app.models.application import Application
from boreal.app.models.policy import Policy
from boreal.app.models.premium_schedule import PremiumScheduleLine
from boreal.app.models.ledger_entry import LedgerEntry
from boreal.app.models.payout_batch import PayoutBatch
from boreal.app.models.commission_payable import CommissionPayable
from boreal.app.models.job_run import JobRun
from boreal.app.models.job_lock import JobLock
from boreal.app.models.idempotency_record import IdempotencyRecord
from boreal.app.models.audit_log import AuditLog

logger = logging.getLogger("boreal")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Own the database engine for the life of the process.

    1. Builds the database engine and session factory for this process.
    2. Creates database tables on startup.
    3. Starts the premium accrual loop if enabled.
    4. Stops the loop and disposes the engine on shutdown.
    """
    configure_logging(settings.log_level)

    engine = create_db_engine(settings)
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    accrual_task = None
    if settings.accrual_scheduler_enabled:
        accrual_task = asyncio.create_task(
            run_accrual_loop(app.state.session_factory, settings.accrual_interval_seconds)
        )

    yield

    if accrual_task is not None:
        accrual_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await accrual_task
        logger.info("Accrual worker stopped")

    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Premium accrual, commission and payout backend for Boreal Insurance",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Uniform error bodies
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness probe; does not touch the database."""
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


app.include_router(api_v1_router, prefix=f"/{settings.api_version}")
