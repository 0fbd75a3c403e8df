import os

# Set dummy env vars for testing
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["COST_PER_MINUTE"] = "0.83"
os.environ["REPORT_UTC_OFFSET_MINUTES"] = "0"

from decimal import Decimal

import pytest
import pytest_asyncio
from fastapi import Depends
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from qrpark.config import Settings
from qrpark.database import Base, get_db
from qrpark.dependencies import get_purchase_service, get_report_service, get_session_service, get_store
from qrpark.main import app
# Import models to ensure they are registered with Base.metadata
from qrpark.models.user import User  # noqa: F401
from qrpark.models.session import ParkingSession  # noqa: F401
from qrpark.models.transaction import Transaction  # noqa: F401
from qrpark.services.locks import UserLocks
from qrpark.services.purchase_service import PurchaseService
from qrpark.services.report_service import ReportService
from qrpark.services.session_service import SessionService
from qrpark.services.store import InMemoryRecordStore, RecordStore
from helpers import T0, FakeClock

# In-memory SQLite shared by every connection of one test
SQLALCHEMY_DATABASE_URL = "sqlite+aiosqlite://"

@pytest.fixture
def clock():
    return FakeClock(T0)

@pytest.fixture
def settings():
    return Settings(COST_PER_MINUTE=Decimal("0.83"), DEFAULT_LOCATION="Main Lot", HISTORY_LIMIT=10)

@pytest.fixture
def locks():
    return UserLocks()

@pytest.fixture
def store():
    return InMemoryRecordStore()

@pytest.fixture
def sessions(store, locks, settings, clock):
    return SessionService(store, locks, settings, clock)

@pytest.fixture
def ledger(store, locks, settings, clock):
    return PurchaseService(store, locks, settings, clock)

@pytest.fixture
def reports(store, ledger, settings, clock):
    return ReportService(store, ledger, settings, clock)

@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(
        SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()

@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine):
    TestingSessionLocal = sessionmaker(
        class_=AsyncSession, expire_on_commit=False, bind=db_engine
    )
    async with TestingSessionLocal() as session:
        yield session

@pytest_asyncio.fixture(scope="function")
async def client(db_engine, clock, settings):
    TestingSessionLocal = sessionmaker(
        class_=AsyncSession, expire_on_commit=False, bind=db_engine
    )
    api_locks = UserLocks()

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    def override_session_service(store: RecordStore = Depends(get_store)):
        return SessionService(store, api_locks, settings, clock)

    def override_purchase_service(store: RecordStore = Depends(get_store)):
        return PurchaseService(store, api_locks, settings, clock)

    def override_report_service(
        store: RecordStore = Depends(get_store), ledger: PurchaseService = Depends(get_purchase_service)
    ):
        return ReportService(store, ledger, settings, clock)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_service] = override_session_service
    app.dependency_overrides[get_purchase_service] = override_purchase_service
    app.dependency_overrides[get_report_service] = override_report_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
