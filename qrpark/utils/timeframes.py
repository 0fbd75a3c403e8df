from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

TIME_RANGES = ("today", "week", "month", "day")

def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)

def to_local(moment: datetime, offset_minutes: int) -> datetime:
    return moment + timedelta(minutes=offset_minutes)

def to_utc(local_moment: datetime, offset_minutes: int) -> datetime:
    return local_moment - timedelta(minutes=offset_minutes)

def local_day_start(now: datetime, offset_minutes: int) -> datetime:
    """UTC instant at which the report day containing ``now`` began."""
    local = to_local(now, offset_minutes)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return to_utc(midnight, offset_minutes)

def local_month_start(now: datetime, offset_minutes: int) -> datetime:
    local = to_local(now, offset_minutes)
    first = local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return to_utc(first, offset_minutes)

def time_range_window(time_range: str, now: datetime, offset_minutes: int) -> Tuple[datetime, datetime]:
    if time_range == "today":
        start = local_day_start(now, offset_minutes)
    elif time_range == "week":
        start = now - timedelta(days=7)
    elif time_range == "month":
        start = local_month_start(now, offset_minutes)
    elif time_range == "day":
        start = now - timedelta(hours=24)
    else:
        raise ValueError(f"Unknown time range '{time_range}'. Use one of: {', '.join(TIME_RANGES)}.")
    return start, now

def in_window(moment: datetime, start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is not None and moment < start:
        return False
    if end is not None and moment > end:
        return False
    return True

def as_naive_utc(moment: Optional[datetime]) -> Optional[datetime]:
    if moment is None or moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)
