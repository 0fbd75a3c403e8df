import asyncio
import sys
import os

# Ensure qrpark is in path
sys.path.append(os.getcwd())

from qrpark.database import AsyncSessionLocal, engine, init_db
from qrpark.services.locks import UserLocks
from qrpark.services.store import SqlRecordStore
from qrpark.services.user_service import UserService

DEMO_USERS = [
    ("50488889999", "Demo User", 150),
    ("50477771234", "Maria Garcia", 300),
]

async def seed_demo():
    await init_db()

    async with AsyncSessionLocal() as db:
        store = SqlRecordStore(db)
        users = UserService(store, UserLocks())
        for phone, full_name, balance in DEMO_USERS:
            existing = await store.get_user(phone)
            if existing:
                print(f"User {phone} already exists ({existing.minutes_balance} min).")
                continue
            print(f"Creating user {phone} with {balance} min...")
            await users.create_user(phone, full_name, balance)

    await engine.dispose()

if __name__ == "__main__":
    asyncio.run(seed_demo())
