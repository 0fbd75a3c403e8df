import asyncio

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from qrpark.database import Base
from qrpark.errors import UserAlreadyExists, UserNotFound
from qrpark.services.locks import UserLocks
from qrpark.services.store import SqlRecordStore
from qrpark.services.user_service import UserService
from helpers import DEMO_PHONE, T0

@pytest_asyncio.fixture
async def file_engine(tmp_path):
    # One connection per session, like separate requests against a real database
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'users.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()

@pytest.mark.asyncio
async def test_create_and_get_user(store, locks, clock):
    users = UserService(store, locks, clock)

    created = await users.create_user(DEMO_PHONE, "Demo User", 150)

    assert created.created_at == T0
    assert await users.get_user(DEMO_PHONE) == created

@pytest.mark.asyncio
async def test_get_unknown_user(store, locks):
    with pytest.raises(UserNotFound):
        await UserService(store, locks).get_user(DEMO_PHONE)

@pytest.mark.asyncio
async def test_create_existing_user_keeps_first_record(store, locks):
    users = UserService(store, locks)
    await users.create_user(DEMO_PHONE, "Ana", 500)

    with pytest.raises(UserAlreadyExists):
        await users.create_user(DEMO_PHONE, "Bea", 0)

    kept = await users.get_user(DEMO_PHONE)
    assert (kept.full_name, kept.minutes_balance) == ("Ana", 500)

@pytest.mark.asyncio
async def test_concurrent_creates_in_memory(store, locks):
    users = UserService(store, locks)

    results = await asyncio.gather(
        users.create_user(DEMO_PHONE, "Ana", 500),
        users.create_user(DEMO_PHONE, "Bea", 0),
        return_exceptions=True,
    )

    assert sum(isinstance(r, UserAlreadyExists) for r in results) == 1
    winner = next(r for r in results if not isinstance(r, Exception))
    assert await store.get_user(DEMO_PHONE) == winner

@pytest.mark.asyncio
async def test_concurrent_creates_on_sql_store(file_engine):
    SessionLocal = sessionmaker(class_=AsyncSession, expire_on_commit=False, bind=file_engine)
    locks = UserLocks()

    async def create(full_name, balance):
        async with SessionLocal() as db:
            return await UserService(SqlRecordStore(db), locks).create_user(DEMO_PHONE, full_name, balance)

    results = await asyncio.gather(create("Ana", 500), create("Bea", 0), return_exceptions=True)

    assert sum(isinstance(r, UserAlreadyExists) for r in results) == 1
    winner = next(r for r in results if not isinstance(r, Exception))
    async with SessionLocal() as db:
        stored = await SqlRecordStore(db).get_user(DEMO_PHONE)
    assert (stored.full_name, stored.minutes_balance) == (winner.full_name, winner.minutes_balance)

@pytest.mark.asyncio
async def test_insert_race_on_sql_store_is_reported_as_existing_user(file_engine, monkeypatch):
    SessionLocal = sessionmaker(class_=AsyncSession, expire_on_commit=False, bind=file_engine)
    async with SessionLocal() as db:
        await UserService(SqlRecordStore(db), UserLocks()).create_user(DEMO_PHONE, "Ana", 500)

    async with SessionLocal() as db:
        # Another worker inserted the phone between this worker's check and its insert
        async def nothing_yet(*args, **kwargs):
            return None
        monkeypatch.setattr(db, "get", nothing_yet)

        with pytest.raises(UserAlreadyExists):
            await UserService(SqlRecordStore(db), UserLocks()).create_user(DEMO_PHONE, "Bea", 0)

    async with SessionLocal() as db:
        stored = await SqlRecordStore(db).get_user(DEMO_PHONE)
    assert (stored.full_name, stored.minutes_balance) == ("Ana", 500)
