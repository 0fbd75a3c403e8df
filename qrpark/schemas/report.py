from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

class SalesStats(BaseModel):
    start: datetime
    end: Optional[datetime] = None
    total_transactions: int
    total_revenue: Decimal
    total_minutes_sold: int
    payment_methods: Dict[str, int]
    package_breakdown: Dict[str, int]

class SessionStatistics(BaseModel):
    time_range: str
    start: datetime
    end: datetime
    total_sessions: int
    active_sessions: int
    overstay_sessions: int
    completed_sessions: int
    insufficient_balance_sessions: int
    total_revenue: Decimal
    average_duration: float
    # Sessions per local hour of entry, 0-23
    peak_hours: Dict[int, int]

class DashboardOverview(BaseModel):
    generated_at: datetime
    total_users: int
    open_sessions: int
    overstay_sessions: int
    sessions_today: SessionStatistics
    sales_today: SalesStats
