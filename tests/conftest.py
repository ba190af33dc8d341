"""
Shared pytest fixtures for testing the investment ledger.

Uses an in-memory SQLite database for fast, isolated tests.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ledger.database import Base, enable_sqlite_foreign_keys, get_session
from ledger.main import app
from ledger.models import User
from ledger.schemas.holding import HoldingCreate
from ledger.services import holdings as holdings_service
from ledger.services.admin import hash_api_key


# Use in-memory SQLite for tests (fast, isolated)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ALICE_KEY = "lk_test_alice"
BOB_KEY = "lk_test_bob"


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio backend for pytest-asyncio."""
    return "asyncio"


@pytest_asyncio.fixture
async def test_engine():
    """Create a test database engine.

    Creates tables at the start, drops them at the end.
    Each test gets a fresh database.
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine):
    """Provide a database session for a test.

    Rolls back the session after each test for isolation.
    """
    async_session = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_client(test_engine):
    """Provide a FastAPI test client with test database.

    Overrides the get_session dependency to use our test database.
    """
    async_session = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_session():
        async with async_session() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


# --- Helper fixtures for creating test data ---

@pytest_asyncio.fixture
async def user(test_session):
    """Create the primary test user (bearer key ALICE_KEY)."""
    u = User(id="alice", api_key_hash=hash_api_key(ALICE_KEY))
    test_session.add(u)
    await test_session.commit()
    return u


@pytest_asyncio.fixture
async def other_user(test_session):
    """Create a second user for ownership checks (bearer key BOB_KEY)."""
    u = User(id="bob", api_key_hash=hash_api_key(BOB_KEY))
    test_session.add(u)
    await test_session.commit()
    return u


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {ALICE_KEY}"}


@pytest.fixture
def other_auth_headers():
    return {"Authorization": f"Bearer {BOB_KEY}"}


def holding_payload(**overrides) -> dict:
    """Valid holding creation fields; override any of them per test."""
    data = {
        "name": "Apple Inc.",
        "ticker": "AAPL",
        "asset_class": "stocks",
        "type": "individual_stock",
        "shares": "10",
        "purchase_price": "150.00",
        "current_price": "170.00",
        "purchase_date": "2024-01-15",
        "account_id": "brokerage-1",
        "currency": "USD",
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_holding(test_session):
    """Factory creating holdings through the holding service."""

    async def _make(user_id: str = "alice", **overrides):
        data = HoldingCreate(**holding_payload(**overrides))
        return await holdings_service.create_holding(test_session, user_id, data)

    return _make


@pytest_asyncio.fixture
async def empty_holding(user, make_holding):
    """A holding that starts with no shares, built up through the ledger."""
    return await make_holding(shares="0", purchase_price="0", current_price="100.00")


@pytest.fixture
def payload():
    """The holding_payload builder, for tests posting holdings over HTTP."""
    return holding_payload
