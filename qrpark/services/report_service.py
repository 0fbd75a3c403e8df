from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from qrpark.config import Settings, get_settings
from qrpark.models.session import SessionStatus, OPEN_STATUSES
from qrpark.schemas.report import DashboardOverview, SessionStatistics
from qrpark.services.purchase_service import PurchaseService
from qrpark.services.store import RecordStore
from qrpark.utils.timeframes import as_naive_utc, time_range_window, to_local, utcnow

class ReportService:
    """Read-only statistics over session and transaction history."""

    def __init__(
        self,
        store: RecordStore,
        ledger: PurchaseService,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        settings = settings or get_settings()
        self.store = store
        self.ledger = ledger
        self.clock = clock
        self.offset = settings.REPORT_UTC_OFFSET_MINUTES

    async def session_statistics(
        self,
        time_range: str = "today",
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> SessionStatistics:
        now = self.clock()
        start, end = as_naive_utc(start), as_naive_utc(end)
        if start is not None:
            time_range, end = "custom", end or now
        else:
            start, window_end = time_range_window(time_range, now, self.offset)
            end = end or window_end

        sessions = await self.store.list_sessions(since=start, until=end)

        def count(status):
            return sum(1 for s in sessions if s.status == status)

        durations = [s.minutes_used for s in sessions if s.minutes_used]
        peak_hours = {}
        for session in sessions:
            hour = to_local(session.entry_time, self.offset).hour
            peak_hours[hour] = peak_hours.get(hour, 0) + 1

        return SessionStatistics(
            time_range=time_range,
            start=start,
            end=end,
            total_sessions=len(sessions),
            active_sessions=count(SessionStatus.ACTIVE),
            overstay_sessions=count(SessionStatus.OVERSTAY),
            completed_sessions=count(SessionStatus.COMPLETED),
            insufficient_balance_sessions=count(SessionStatus.COMPLETED_INSUFFICIENT_BALANCE),
            total_revenue=sum((s.total_cost for s in sessions), Decimal("0")),
            average_duration=round(sum(durations) / len(durations), 2) if durations else 0.0,
            peak_hours=dict(sorted(peak_hours.items())),
        )

    async def overview(self) -> DashboardOverview:
        open_sessions = await self.store.list_sessions(statuses=OPEN_STATUSES)
        return DashboardOverview(
            generated_at=self.clock(),
            total_users=await self.store.count_users(),
            open_sessions=len(open_sessions),
            overstay_sessions=sum(1 for s in open_sessions if s.status == SessionStatus.OVERSTAY),
            sessions_today=await self.session_statistics("today"),
            sales_today=await self.ledger.get_sales_stats(),
        )
