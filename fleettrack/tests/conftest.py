"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from fleettrack.app.db.session import Base, create_session_factory
from fleettrack.app.main import app
from fleettrack.app.services.ingestion import TrackingIngestor
from fleettrack.app.services.notification_service import VehicleUpdateRegistry
from fleettrack.app.storage.database import DatabaseStorage
from fleettrack.app.storage.memory import MemoryStorage, sample_fleet

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    """Fresh in-memory SQLite database per test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Event handler to enable foreign keys for SQLite
    @event.listens_for(test_engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
async def db_storage(engine):
    return DatabaseStorage(create_session_factory(engine))


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture(params=["memory", "database"])
def storage(request, memory_storage, db_storage):
    """Runs a test against both storage backends."""
    return memory_storage if request.param == "memory" else db_storage


@pytest.fixture
def registry():
    return VehicleUpdateRegistry(default_maxsize=4)


@pytest.fixture
def ingestor(storage, registry):
    """Ingestion pipeline over each storage backend."""
    return TrackingIngestor(storage, registry)


@pytest.fixture
def app_storage():
    """Seeded in-memory backend installed on the app for API tests."""
    return MemoryStorage(sample_fleet())


@pytest.fixture
async def client(app_storage):
    """Async client for testing."""
    registry = VehicleUpdateRegistry()
    app.state.storage = app_storage
    app.state.registry = registry
    app.state.ingestor = TrackingIngestor(app_storage, registry)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
