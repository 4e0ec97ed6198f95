"""Shared test fixtures for LeaseDesk API tests.

Uses an in-memory SQLite async engine so tests run without PostgreSQL.
External collaborators (notifications, blob storage, document fetches, the
clock) are replaced through FastAPI dependency overrides.
"""

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker

from leasedesk.core import deps
from leasedesk.core.database import Base, get_db
from leasedesk.main import app
from tests.factories import MemoryObjectStore, RecordingNotifier, fixed_clock

# Import all models to ensure they're registered with Base.metadata
from leasedesk.models.availability import ProviderAvailability  # noqa: F401
from leasedesk.models.appointment import Appointment  # noqa: F401
from leasedesk.models.lease_template import LeaseTemplate, PropertyLeaseTemplate  # noqa: F401
from leasedesk.models.signing import LeaseDocument, SigningRecord  # noqa: F401


# Use aiosqlite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(TEST_DATABASE_URL, echo=False)
TestSession = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db():
    async with TestSession() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def store():
    return MemoryObjectStore()


@pytest_asyncio.fixture
async def http_client(store):
    async with httpx.AsyncClient(transport=store.transport()) as client:
        yield client


@pytest_asyncio.fixture
async def client(notifier, store, http_client):
    """Async HTTP test client with fake collaborators."""
    app.dependency_overrides[deps.get_notifier] = lambda: notifier
    app.dependency_overrides[deps.get_object_store] = lambda: store
    app.dependency_overrides[deps.get_http_client] = lambda: http_client
    app.dependency_overrides[deps.get_clock] = lambda: fixed_clock
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    for dependency in (deps.get_notifier, deps.get_object_store, deps.get_http_client, deps.get_clock):
        app.dependency_overrides.pop(dependency, None)


@pytest_asyncio.fixture
async def db():
    """Direct DB session for test setup/assertions."""
    async with TestSession() as session:
        yield session
