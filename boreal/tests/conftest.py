"""
Centralized Test Configuration.
"""

import itertools
import pytest
from datetime import date
from decimal import Decimal
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from boreal.app.main import app
from boreal.app.db.session import get_db, get_session_factory, Base
from boreal.app.core.jwt import create_access_token
from boreal.app.models.enums import UserRole
from boreal.app.models.referrer import Referrer
from boreal.app.models.lead import Lead
from boreal.app.models.application import Application
from boreal.app.models.policy import Policy
from boreal.app.models.premium_schedule import PremiumScheduleLine
from boreal.app.models.policy_enums import ApplicationStatus, PolicyStatus

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

_referrer_seq = itertools.count(1)


def _set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
async def engine():
    """Fresh in-memory database per test, tables (and ledger triggers) created."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(test_engine.sync_engine, "connect", _set_sqlite_pragma)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """Async client for testing, wired to the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    def override_get_session_factory():
        return session_factory

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = override_get_session_factory

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": "ops@boreal.test", "user_id": 1, "role": UserRole.ADMIN.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def referrer_headers():
    token = create_access_token({"sub": "ref@boreal.test", "user_id": 2, "role": UserRole.REFERRER.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_application(db_session):
    """Create a lead + application, optionally attributed to a referrer."""

    async def _make(
        commission_rate=None,
        status=ApplicationStatus.APPROVED,
        annual_premium=Decimal("1200.00"),
        with_referrer=None
    ) -> Application:
        referrer_id = None
        if with_referrer is None:
            with_referrer = commission_rate is not None
        if with_referrer:
            referrer = Referrer(
                name="Northern Lending Partners",
                email=f"referrer{next(_referrer_seq)}@boreal.test",
                commission_rate=commission_rate
            )
            db_session.add(referrer)
            await db_session.flush()
            referrer_id = referrer.id

        lead = Lead(source="intake", channel="referrer" if referrer_id else "direct", referrer_id=referrer_id)
        db_session.add(lead)
        await db_session.flush()

        application = Application(
            lead_id=lead.id,
            business_name="Aurora Fabrication Ltd",
            loan_amount=Decimal("250000.00"),
            annual_premium=annual_premium,
            status=status
        )
        db_session.add(application)
        await db_session.commit()
        return application

    return _make


@pytest.fixture
def make_policy(db_session, make_application):
    """
    Create an active policy with explicit schedule lines.

    lines: list of (due_date, amount) tuples.
    """

    async def _make(lines, commission_rate=None, with_referrer=None) -> Policy:
        application = await make_application(
            commission_rate=commission_rate,
            status=ApplicationStatus.ACTIVE,
            with_referrer=with_referrer
        )

        policy = Policy(
            application_id=application.id,
            policy_number=f"BI-TEST-{application.id}",
            premium_amount=sum((Decimal(str(amount)) for _, amount in lines), Decimal("0")),
            start_date=lines[0][0],
            end_date=date(lines[0][0].year + 1, lines[0][0].month, 1),
            status=PolicyStatus.ACTIVE
        )
        db_session.add(policy)
        await db_session.flush()

        for due_date, amount in lines:
            db_session.add(
                PremiumScheduleLine(policy_id=policy.id, due_date=due_date, premium_amount=Decimal(str(amount)))
            )
        await db_session.commit()
        return policy

    return _make
