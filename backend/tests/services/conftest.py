"""Service test fixtures — async DB + FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database with foreign keys enforced
    - get_db dependency overridden to use test DB session
    - db_manager patched so readiness checks see the test engine
    - Forecast noise forced to zero so route tests can assert exact probabilities

Design Decisions:
    - SQLite in-memory with StaticPool: one shared connection, so every session
      sees the tables created by the fixture
    - seed_deal is a factory fixture: tests state only the fields they care about
"""

import random
from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from httpx import ASGITransport, AsyncClient

from app.db.base import Base
from app.api.routes.forecasting import get_forecast_rng
from app.infrastructure.database import get_db, DatabaseSessionManager
from app.models.deal import Deal
from app.models.lead import Lead
from app.models.user import User
import app.infrastructure.database as db_module
from app.main import app


class ZeroNoise(random.Random):
    """Random source whose uniform() draws are always 0."""

    def uniform(self, a, b):
        return 0.0


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency and forecast rng overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_forecast_rng] = lambda: ZeroNoise()

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def seed_deal(test_db):
    """Factory: insert a deal with sensible defaults, overridable per field."""
    async def _seed(**fields) -> Deal:
        data = {
            "name": "Acme rollout",
            "value": 25_000.0,
            "stage": "Proposal",
            "probability": 50,
            "expected_close_date": None,
            "created_at": datetime.now(timezone.utc),
        }
        data.update(fields)
        deal = Deal(**data)
        test_db.add(deal)
        await test_db.commit()
        await test_db.refresh(deal)
        return deal
    return _seed


@pytest.fixture
async def seed_user(test_db):
    user = User(username="jdoe", full_name="Jordan Doe", role="Account Executive")
    test_db.add(user)
    await test_db.commit()
    await test_db.refresh(user)
    return user


@pytest.fixture
def seed_lead(test_db):
    """Factory: insert a lead with sensible defaults, overridable per field."""
    async def _seed(**fields) -> Lead:
        data = {
            "name": "Dana Scully",
            "company": "Vandelay Industries",
            "email": "dana@vandelay.example",
            "status": "new",
            "source": "Website",
            "created_at": datetime.now(timezone.utc),
        }
        data.update(fields)
        lead = Lead(**data)
        test_db.add(lead)
        await test_db.commit()
        await test_db.refresh(lead)
        return lead
    return _seed
