from datetime import datetime, timedelta
from decimal import Decimal
from qrpark.schemas.user import UserRecord
from qrpark.services.store import RecordStore

T0 = datetime(2024, 1, 20, 14, 0)

DEMO_PHONE = "50488889999"
OTHER_PHONE = "50477771234"

class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now

async def add_user(store: RecordStore, phone: str = DEMO_PHONE, balance: int = 150, total_spent: str = "80"):
    user = UserRecord(phone=phone, full_name="Demo User", minutes_balance=balance, total_spent=Decimal(total_spent))
    await store.put_user(user)
    return user
