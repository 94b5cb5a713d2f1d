"""
Centralized Test Configuration.
"""

import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient, ASGITransport
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.core.exceptions import ServiceUnavailableError
from backend.app.core.jwt import create_access_token
from backend.app.models.enums import UserRole
from backend.app.models.investment_plan import InvestmentPlan
from backend.app.models.profile import Profile
from backend.app.schemas.auth import Principal
from backend.app.services.auth_provider import get_auth_provider
import backend.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("Redis is down")

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self._check()
        self.store[key] = value
        return True

    async def delete(self, key):
        self._check()
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        self._check()
        return 1 if key in self.store else 0

    async def flushdb(self):
        self.store = {}


class FakeAuthProvider:
    """Stands in for AuthProviderClient; records calls, can be told to fail."""

    def __init__(self):
        self.metadata = {}
        self.deleted = []
        self.fail = False

    async def update_user_metadata(self, user_id, metadata):
        if self.fail:
            raise ServiceUnavailableError("auth_provider")
        self.metadata.setdefault(user_id, {}).update(metadata)

    async def delete_user(self, user_id):
        if self.fail:
            raise ServiceUnavailableError("auth_provider")
        self.deleted.append(user_id)


@pytest.fixture
def mock_redis(monkeypatch):
    client = MockRedis()
    monkeypatch.setattr(redis_client_module, "redis_client", client)
    return client


@pytest.fixture
def auth_provider():
    provider = FakeAuthProvider()
    app.dependency_overrides[get_auth_provider] = lambda: provider
    yield provider
    app.dependency_overrides.pop(get_auth_provider, None)


@pytest.fixture(autouse=True)
async def setup_database(mock_redis, auth_provider):
    """Create tables before each test function and drop after."""
    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def session_factory():
    """Independent sessions, e.g. to simulate two admins acting at once."""
    return TestingSessionLocal


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def make_profile(db_session):
    """Factory inserting a committed profile."""
    async def _make(email, role=UserRole.USER, balance="0", profile_id=None, **fields):
        profile = Profile(
            id=profile_id or str(uuid.uuid4()),
            email=email,
            role=role,
            account_balance=Decimal(balance),
            referral_code=f"NXC{uuid.uuid4().hex[:10].upper()}",
            **fields
        )
        db_session.add(profile)
        await db_session.commit()
        return profile

    return _make


def token_for(profile_id, email=None):
    return create_access_token({"sub": profile_id, "email": email})


def headers_for(profile_id, email=None):
    return {"Authorization": f"Bearer {token_for(profile_id, email)}"}


def principal_for(profile):
    return Principal(
        id=profile.id,
        email=profile.email,
        role=profile.role,
        token="test-token",
    )


@pytest.fixture
def auth_headers():
    return headers_for


@pytest.fixture
def as_principal():
    return principal_for


@pytest.fixture
async def admin(make_profile):
    return await make_profile("admin@nexachain.io", role=UserRole.ADMIN, profile_id="a1")


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin.id, admin.email)


@pytest.fixture
def admin_principal(admin):
    return principal_for(admin)


@pytest.fixture
async def user(make_profile):
    return await make_profile("u1@nexachain.io", profile_id="u1", balance="150")


@pytest.fixture
def user_headers(user):
    return headers_for(user.id, user.email)


@pytest.fixture
async def plan(db_session):
    plan = InvestmentPlan(
        name="Starter",
        emoji="🌱",
        daily_roi=Decimal("1.50"),
        total_roi=Decimal("45.00"),
        duration_days=30,
        min_amount=Decimal("50"),
        max_amount=Decimal("1000"),
        referral_bonus_percent=Decimal("5.00"),
        is_active=True,
    )
    db_session.add(plan)
    await db_session.commit()
    return plan
