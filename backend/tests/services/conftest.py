"""Service test fixtures — async DB, FastAPI test client, tokens and fake providers.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - Payment gateway and object storage overridden with in-memory fakes
    - Tokens are signed with the same settings the app verifies against

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (row locks and CHECK constraints are PostgreSQL-only and not exercised here)
    - Storage fake replaces the boto3 client, not ObjectStorage, so key/URL logic is tested
    - Seed helpers write rows directly; the API under test never seeds itself
"""

import uuid
from dataclasses import dataclass
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

from marketplace.db.base import Base
from marketplace.infrastructure.database import get_db, DatabaseSessionManager
from marketplace.infrastructure.object_storage import ObjectStorage, get_object_storage
from marketplace.infrastructure.payment_gateway import (
    FakePaymentGateway, get_payment_gateway,
)
from marketplace.models.listing import Listing
from marketplace.models.profile import Profile
from marketplace.models.wallet import WalletAccount
import marketplace.infrastructure.database as db_module
from marketplace.main import app
from tests.services.fakes import FakeS3Client, auth_headers


@dataclass
class ApiUser:
    id: uuid.UUID
    headers: dict


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
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
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
async def client(test_engine, test_session_factory, gateway, s3_client):
    """FastAPI test client with DB, payment and storage dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    storage = ObjectStorage(s3_client, "http://storage.test")
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_object_storage] = lambda: storage

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


# ─── Seed helpers ───────────────────────────────────────────────

@pytest.fixture
def make_user(test_db):
    """Create a profile row and return an ApiUser with a matching bearer token."""
    async def _make(
        *,
        admin: bool = False,
        payout_account_id: str | None = None,
        payouts_enabled: bool = False,
        membership_tier: str = "free",
        balance: Decimal | None = None,
    ) -> ApiUser:
        user_id = uuid.uuid4()
        test_db.add(Profile(
            id=user_id,
            email=f"{user_id.hex[:8]}@example.com",
            membership_tier=membership_tier,
            payout_account_id=payout_account_id,
            payouts_enabled=payouts_enabled,
        ))
        if balance is not None:
            test_db.add(WalletAccount(
                user_id=user_id, balance=balance, pending_balance=Decimal("0.00"),
            ))
        await test_db.commit()
        return ApiUser(id=user_id, headers=auth_headers(user_id, admin=admin))
    return _make


@pytest.fixture
async def seller(make_user):
    return await make_user(payout_account_id="acct_seller", payouts_enabled=True)


@pytest.fixture
async def buyer(make_user):
    return await make_user()


@pytest.fixture
async def admin(make_user):
    return await make_user(admin=True)


@pytest.fixture
def make_listing(test_db):
    async def _make(seller_id: uuid.UUID, **overrides) -> Listing:
        values = {
            "seller_id": seller_id,
            "title": "Charizard Base Set",
            "card_name": "Charizard",
            "set_name": "Base Set",
            "condition": "near_mint",
            "seller_price": Decimal("50.00"),
            "currency": "GBP",
            "status": "active",
            "shipping_cost_uk": Decimal("3.00"),
            "shipping_cost_europe": Decimal("8.00"),
            "shipping_cost_international": Decimal("12.00"),
        }
        values.update(overrides)
        listing = Listing(**values)
        test_db.add(listing)
        await test_db.commit()
        return listing
    return _make
