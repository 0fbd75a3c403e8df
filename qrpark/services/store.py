"""
Record store for users, parking sessions and purchase transactions.

The session engine and the purchase ledger only ever talk to a
``RecordStore``. Records go in and come out as pydantic models; a record
handed out is a copy, so nothing changes in the store until it is written
back with ``put_*``. Writes grouped under ``transaction()`` either all
apply or none do.
"""
import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from qrpark.errors import UserAlreadyExists
from qrpark.models.session import ParkingSession, SessionStatus
from qrpark.models.transaction import Transaction, TransactionStatus
from qrpark.models.user import User
from qrpark.schemas.session import SessionRecord
from qrpark.schemas.transaction import TransactionRecord
from qrpark.schemas.user import UserRecord
from qrpark.utils.timeframes import in_window

class RecordStore(ABC):

    @abstractmethod
    async def get_user(self, phone: str, for_update: bool = False) -> Optional[UserRecord]:
        """Return the user, or None. ``for_update`` locks the row until the transaction ends."""

    @abstractmethod
    async def create_user(self, user: UserRecord) -> None:
        """Insert a new user. Raises ``UserAlreadyExists`` if the phone is taken."""

    @abstractmethod
    async def put_user(self, user: UserRecord) -> None:
        ...

    @abstractmethod
    async def count_users(self) -> int:
        ...

    @abstractmethod
    async def get_session(self, session_id: str) -> Optional[SessionRecord]:
        ...

    @abstractmethod
    async def put_session(self, session: SessionRecord) -> None:
        ...

    @abstractmethod
    async def list_sessions(
        self,
        user_phone: Optional[str] = None,
        statuses: Optional[Iterable[SessionStatus]] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[SessionRecord]:
        """Sessions matching every given criterion, newest entry first. The window applies to entry_time."""

    @abstractmethod
    async def list_transactions(
        self,
        user_phone: Optional[str] = None,
        status: Optional[TransactionStatus] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[TransactionRecord]:
        """Transactions matching every given criterion, newest first."""

    @abstractmethod
    async def create_transaction(self, transaction: TransactionRecord) -> str:
        ...

    @abstractmethod
    def transaction(self):
        """Async context manager grouping writes into one unit of work."""


USER_FIELDS = ("full_name", "minutes_balance", "total_spent")
SESSION_FIELDS = (
    "user_phone", "location", "entry_time", "exit_time", "minutes_used",
    "cost_per_minute", "total_cost", "status", "overstay_minutes",
    "last_update", "created_at",
)

def _fill_user(row: User, user: UserRecord) -> User:
    for field in USER_FIELDS:
        setattr(row, field, getattr(user, field))
    if user.created_at is not None:
        row.created_at = user.created_at
    row.current_session = user.current_session.model_dump(mode="json") if user.current_session else None
    return row

class SqlRecordStore(RecordStore):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, phone: str, for_update: bool = False) -> Optional[UserRecord]:
        query = select(User).filter(User.phone == phone)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        row = result.scalars().first()
        return UserRecord.model_validate(row) if row else None

    async def create_user(self, user: UserRecord) -> None:
        if await self.db.get(User, user.phone) is not None:
            raise UserAlreadyExists(user.phone)
        self.db.add(_fill_user(User(phone=user.phone), user))
        # Another connection may have inserted the same phone since the check
        try:
            await self.db.flush()
        except IntegrityError as e:
            raise UserAlreadyExists(user.phone) from e

    async def put_user(self, user: UserRecord) -> None:
        row = await self.db.get(User, user.phone)
        if row is None:
            row = User(phone=user.phone)
            self.db.add(row)
        _fill_user(row, user)

    async def count_users(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(User))
        return result.scalar_one()

    async def get_session(self, session_id: str) -> Optional[SessionRecord]:
        result = await self.db.execute(select(ParkingSession).filter(ParkingSession.id == session_id))
        row = result.scalars().first()
        return SessionRecord.model_validate(row) if row else None

    async def put_session(self, session: SessionRecord) -> None:
        row = await self.db.get(ParkingSession, session.id)
        if row is None:
            row = ParkingSession(id=session.id)
            self.db.add(row)
        for field in SESSION_FIELDS:
            setattr(row, field, getattr(session, field))

    async def list_sessions(self, user_phone=None, statuses=None, since=None, until=None, limit=None):
        query = select(ParkingSession)
        if user_phone is not None:
            query = query.filter(ParkingSession.user_phone == user_phone)
        if statuses is not None:
            query = query.filter(ParkingSession.status.in_(list(statuses)))
        if since is not None:
            query = query.filter(ParkingSession.entry_time >= since)
        if until is not None:
            query = query.filter(ParkingSession.entry_time <= until)
        query = query.order_by(ParkingSession.entry_time.desc())
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return [SessionRecord.model_validate(row) for row in result.scalars().all()]

    async def list_transactions(self, user_phone=None, status=None, since=None, until=None, limit=None):
        query = select(Transaction)
        if user_phone is not None:
            query = query.filter(Transaction.user_phone == user_phone)
        if status is not None:
            query = query.filter(Transaction.status == status)
        if since is not None:
            query = query.filter(Transaction.timestamp >= since)
        if until is not None:
            query = query.filter(Transaction.timestamp <= until)
        query = query.order_by(Transaction.timestamp.desc())
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return [TransactionRecord.model_validate(row) for row in result.scalars().all()]

    async def create_transaction(self, transaction: TransactionRecord) -> str:
        self.db.add(Transaction(**transaction.model_dump()))
        return transaction.id

    @asynccontextmanager
    async def transaction(self):
        try:
            yield self
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise


class _Staged:
    def __init__(self, store: "InMemoryRecordStore"):
        self.store = store
        self.users: Dict[str, UserRecord] = {}
        self.sessions: Dict[str, SessionRecord] = {}
        self.transactions: Dict[str, TransactionRecord] = {}

# Pending writes of the transaction running in the current task
_staging: ContextVar[Optional[_Staged]] = ContextVar("qrpark_store_staging", default=None)

class InMemoryRecordStore(RecordStore):
    """Dictionary-backed store for demo mode and tests."""

    def __init__(self):
        self._users: Dict[str, UserRecord] = {}
        self._sessions: Dict[str, SessionRecord] = {}
        self._transactions: Dict[str, TransactionRecord] = {}
        self._lock = asyncio.Lock()

    def _staged(self) -> Optional[_Staged]:
        staged = _staging.get()
        return staged if staged is not None and staged.store is self else None

    def _view(self, name: str) -> dict:
        committed = getattr(self, f"_{name}")
        staged = self._staged()
        if staged is None:
            return committed
        return {**committed, **getattr(staged, name)}

    def _write(self, name: str, key: str, record) -> None:
        staged = self._staged()
        target = getattr(staged, name) if staged is not None else getattr(self, f"_{name}")
        target[key] = record.model_copy(deep=True)

    async def get_user(self, phone, for_update=False):
        user = self._view("users").get(phone)
        return user.model_copy(deep=True) if user else None

    async def create_user(self, user):
        if user.phone in self._view("users"):
            raise UserAlreadyExists(user.phone)
        self._write("users", user.phone, user)

    async def put_user(self, user):
        self._write("users", user.phone, user)

    async def count_users(self):
        return len(self._view("users"))

    async def get_session(self, session_id):
        session = self._view("sessions").get(session_id)
        return session.model_copy(deep=True) if session else None

    async def put_session(self, session):
        self._write("sessions", session.id, session)

    async def list_sessions(self, user_phone=None, statuses=None, since=None, until=None, limit=None):
        statuses = set(statuses) if statuses is not None else None
        matches = [
            session for session in self._view("sessions").values()
            if (user_phone is None or session.user_phone == user_phone)
            and (statuses is None or session.status in statuses)
            and in_window(session.entry_time, since, until)
        ]
        matches.sort(key=lambda session: session.entry_time, reverse=True)
        return [session.model_copy(deep=True) for session in matches[:limit]]

    async def list_transactions(self, user_phone=None, status=None, since=None, until=None, limit=None):
        matches = [
            transaction for transaction in self._view("transactions").values()
            if (user_phone is None or transaction.user_phone == user_phone)
            and (status is None or transaction.status == status)
            and in_window(transaction.timestamp, since, until)
        ]
        matches.sort(key=lambda transaction: transaction.timestamp, reverse=True)
        return matches[:limit]

    async def create_transaction(self, transaction):
        self._write("transactions", transaction.id, transaction)
        return transaction.id

    @asynccontextmanager
    async def transaction(self):
        async with self._lock:
            staged = _Staged(self)
            token = _staging.set(staged)
            try:
                yield self
                self._users.update(staged.users)
                self._sessions.update(staged.sessions)
                self._transactions.update(staged.transactions)
            finally:
                _staging.reset(token)
