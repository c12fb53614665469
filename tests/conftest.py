"""
Test infrastructure for the chat API.

Strategy
--------
- SQLite in-memory via aiosqlite keeps the suite free of a running Postgres.
- StaticPool makes every session share the one in-memory connection;
  a second connection would see an empty database.
- A ``Storage`` built on the test session factory replaces the production
  one through the ``get_storage`` dependency, so HTTP tests and direct
  service tests hit the same database.
- All tables are created before each test and dropped after it.
- Services built in fixtures get a pinned clock so timestamps are
  predictable.
"""
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.pool import StaticPool

from app.database import Base, build_engine, build_session_factory
from app.dependencies import get_identity_service, get_storage
from app.main import app
from app.services.authentication_service import AuthenticationService
from app.services.comment_service import CommentService
from app.services.identity import UserFactory
from app.services.thread_service import ThreadService
from app.services.uniqueness import (
    CommentUniqueness,
    SessionUniqueness,
    ThreadUniqueness,
    UserUniqueness,
)
from app.storage import Storage

# ---------------------------------------------------------------------------
# Test database engine — SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = build_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
async_session_test = build_session_factory(engine_test)

storage_test = Storage(async_session_test)

app.dependency_overrides[get_storage] = lambda: storage_test

FIXED_NOW = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def storage() -> Storage:
    return storage_test


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def auth_service(storage: Storage, clock) -> AuthenticationService:
    identity = get_identity_service()
    return AuthenticationService(
        storage,
        identity,
        UserFactory(identity, clock=clock),
        UserUniqueness(storage.users),
        SessionUniqueness(storage.sessions),
        clock=clock,
    )


@pytest.fixture
def thread_service(storage: Storage, clock) -> ThreadService:
    return ThreadService(storage, ThreadUniqueness(storage.threads), clock=clock)


@pytest.fixture
def comment_service(storage: Storage, clock) -> CommentService:
    return CommentService(storage, CommentUniqueness(storage.comments), clock=clock)


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

