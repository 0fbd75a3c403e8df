import asyncio
from contextlib import asynccontextmanager
from typing import Dict

class UserLocks:
    """
    One asyncio.Lock per phone number, so balance writes for a user never interleave.

    Locks are created on first use and dropped once nobody holds or waits on them.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, phone: str):
        lock = self._locks.setdefault(phone, asyncio.Lock())
        self._users[phone] = self._users.get(phone, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[phone] -= 1
            if not self._users[phone]:
                del self._users[phone]
                del self._locks[phone]

    def is_locked(self, phone: str) -> bool:
        lock = self._locks.get(phone)
        return lock is not None and lock.locked()

    def __len__(self):
        return len(self._locks)
