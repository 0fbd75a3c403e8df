import logging
from datetime import datetime
from typing import Callable, Optional
from qrpark.errors import UserAlreadyExists, UserNotFound
from qrpark.schemas.user import UserRecord
from qrpark.services.locks import UserLocks
from qrpark.services.store import RecordStore
from qrpark.utils.timeframes import utcnow

logger = logging.getLogger(__name__)

class UserService:
    def __init__(self, store: RecordStore, locks: UserLocks, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.locks = locks
        self.clock = clock

    async def get_user(self, phone: str) -> UserRecord:
        user = await self.store.get_user(phone)
        if user is None:
            raise UserNotFound(phone)
        return user

    async def create_user(self, phone: str, full_name: Optional[str] = None, minutes_balance: int = 0) -> UserRecord:
        user = UserRecord(
            phone=phone,
            full_name=full_name,
            minutes_balance=minutes_balance,
            created_at=self.clock(),
        )
        try:
            async with self.locks.hold(phone):
                async with self.store.transaction():
                    await self.store.create_user(user)
        except UserAlreadyExists:
            logger.warning(f"User {phone} already registered")
            raise
        logger.info(f"User {phone} created with {minutes_balance} min")
        return user
