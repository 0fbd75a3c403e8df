import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional

from qrpark.config import Settings, get_settings
from qrpark.errors import (
    InsufficientBalance,
    NoActiveSession,
    SessionAlreadyActive,
    SessionNotFound,
    UserNotFound,
)
from qrpark.models.session import SessionStatus, OPEN_STATUSES
from qrpark.schemas.session import ActiveSession, ScanResult, SessionClosure, SessionRecord
from qrpark.schemas.user import CurrentSession, UserRecord
from qrpark.services import billing
from qrpark.services.locks import UserLocks
from qrpark.services.store import RecordStore
from qrpark.utils.timeframes import utcnow

logger = logging.getLogger(__name__)

class SessionService:
    """Opens, closes and monitors parking sessions. A user has at most one open session."""

    def __init__(
        self,
        store: RecordStore,
        locks: UserLocks,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        settings = settings or get_settings()
        self.store = store
        self.locks = locks
        self.clock = clock
        self.cost_per_minute = settings.COST_PER_MINUTE
        self.default_location = settings.DEFAULT_LOCATION
        self.history_limit = settings.HISTORY_LIMIT

    async def open_session(self, phone: str, location: Optional[str] = None) -> SessionRecord:
        async with self.locks.hold(phone):
            async with self.store.transaction():
                user = await self._get_user(phone)
                return await self._open(user, location)

    async def close_session(self, phone: str) -> SessionClosure:
        async with self.locks.hold(phone):
            async with self.store.transaction():
                user = await self._get_user(phone)
                return await self._close(user)

    async def process_scan(self, phone: str, location: Optional[str] = None) -> ScanResult:
        """Guard scan: exit if the user is parked, entry otherwise."""
        async with self.locks.hold(phone):
            async with self.store.transaction():
                user = await self._get_user(phone)
                if user.current_session is not None:
                    return ScanResult(action="exit", closure=await self._close(user))
                return ScanResult(action="entry", session=await self._open(user, location))

    async def refresh_active_sessions(self) -> List[ActiveSession]:
        """
        Recompute elapsed time on every open session and flag the ones that
        have run past the user's balance as overstay.

        Nothing is closed or charged here. Running it twice at the same
        instant gives the same result.
        """
        now = self.clock()
        refreshed = []
        for session in await self.store.list_sessions(statuses=OPEN_STATUSES):
            async with self.locks.hold(session.user_phone):
                async with self.store.transaction():
                    view = await self._refresh(session.id, now)
            if view is not None:
                refreshed.append(view)
        return refreshed

    async def list_active_sessions(self) -> List[ActiveSession]:
        now = self.clock()
        active = []
        for session in await self.store.list_sessions(statuses=OPEN_STATUSES):
            user = await self.store.get_user(session.user_phone)
            active.append(self._live_view(session, user, now))
        return active

    async def get_user_sessions(self, phone: str, limit: Optional[int] = None) -> List[SessionRecord]:
        if await self.store.get_user(phone) is None:
            raise UserNotFound(phone)
        return await self.store.list_sessions(user_phone=phone, limit=limit or self.history_limit)

    async def _get_user(self, phone: str) -> UserRecord:
        user = await self.store.get_user(phone, for_update=True)
        if user is None:
            logger.warning(f"Session request for unknown user {phone}")
            raise UserNotFound(phone)
        return user

    async def _open(self, user: UserRecord, location: Optional[str]) -> SessionRecord:
        if user.minutes_balance <= 0:
            logger.warning(f"Entry refused for {user.phone}: balance {user.minutes_balance}")
            raise InsufficientBalance(user.phone, user.minutes_balance)
        if user.current_session is not None:
            logger.warning(f"Entry refused for {user.phone}: session {user.current_session.session_id} still open")
            raise SessionAlreadyActive(user.phone, user.current_session.session_id)

        now = self.clock()
        session = SessionRecord(
            id=str(uuid.uuid4()),
            user_phone=user.phone,
            location=location or self.default_location,
            entry_time=now,
            cost_per_minute=self.cost_per_minute,
            status=SessionStatus.ACTIVE,
            created_at=now,
        )
        await self.store.put_session(session)
        await self.store.put_user(user.model_copy(update={
            "current_session": CurrentSession(
                session_id=session.id, entry_time=session.entry_time, location=session.location
            ),
        }))
        logger.info(f"Session {session.id} opened for {user.phone} at {session.location}")
        return session

    async def _close(self, user: UserRecord) -> SessionClosure:
        if user.current_session is None:
            logger.warning(f"Exit refused for {user.phone}: no active session")
            raise NoActiveSession(user.phone)

        session = await self.store.get_session(user.current_session.session_id)
        if session is None:
            logger.error(f"User {user.phone} points at missing session {user.current_session.session_id}")
            raise SessionNotFound(user.current_session.session_id)

        now = self.clock()
        settlement = billing.settle(session.entry_time, now, user.minutes_balance, session.cost_per_minute)
        if settlement.insufficient_balance:
            status = SessionStatus.COMPLETED_INSUFFICIENT_BALANCE
        else:
            status = SessionStatus.COMPLETED

        await self.store.put_session(session.model_copy(update={
            "exit_time": settlement.exit_time,
            "minutes_used": settlement.billed_minutes,
            "total_cost": settlement.total_cost,
            "status": status,
            "overstay_minutes": settlement.overstay_minutes,
            "last_update": now,
        }))
        await self.store.put_user(user.model_copy(update={
            "current_session": None,
            "minutes_balance": settlement.new_balance,
            "total_spent": user.total_spent + settlement.total_cost,
        }))

        if settlement.insufficient_balance:
            logger.warning(
                f"Session {session.id} closed for {user.phone} with insufficient balance: "
                f"billed {settlement.billed_minutes} min, {settlement.overstay_minutes} min unpaid"
            )
        else:
            logger.info(f"Session {session.id} closed for {user.phone}: {settlement.billed_minutes} min, cost {settlement.total_cost}")

        return SessionClosure(
            session_id=session.id,
            exit_time=settlement.exit_time,
            minutes_used=settlement.billed_minutes,
            total_cost=settlement.total_cost,
            new_balance=settlement.new_balance,
            insufficient_balance=settlement.insufficient_balance,
            overstay_minutes=settlement.overstay_minutes,
        )

    async def _refresh(self, session_id: str, now: datetime) -> Optional[ActiveSession]:
        # Re-read under the user's lock: the session may have been closed since it was listed
        session = await self.store.get_session(session_id)
        if session is None or not session.is_open:
            return None

        user = await self.store.get_user(session.user_phone)
        if user is None:
            logger.warning(f"Session {session.id} belongs to missing user {session.user_phone}, skipping overstay check")
            return self._live_view(session, None, now)

        elapsed = billing.elapsed_minutes(session.entry_time, now)
        overstay = billing.overstay_minutes(elapsed, user.minutes_balance)
        if session.status == SessionStatus.ACTIVE and overstay > 0:
            session = session.model_copy(update={
                "status": SessionStatus.OVERSTAY,
                "overstay_minutes": overstay,
                "last_update": now,
            })
            await self.store.put_session(session)
            logger.warning(f"Session {session.id} for {user.phone} is in overstay by {overstay} min")
        elif session.status == SessionStatus.OVERSTAY and session.overstay_minutes != overstay:
            session = session.model_copy(update={"overstay_minutes": overstay, "last_update": now})
            await self.store.put_session(session)

        return self._live_view(session, user, now)

    def _live_view(self, session: SessionRecord, user: Optional[UserRecord], now: datetime) -> ActiveSession:
        return ActiveSession(
            **session.model_dump(),
            minutes_elapsed=billing.elapsed_minutes(session.entry_time, now),
            user=user,
        )
