"""
Time-based billing for parking sessions.

Every function here is pure: callers pass in the timestamps, balances and
rates and get numbers back. Timestamps are naive UTC datetimes.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

ONE_MINUTE = timedelta(minutes=1)
CENTS = Decimal("0.01")

def elapsed_minutes(entry: datetime, exit: datetime) -> int:
    """Whole minutes between entry and exit, any started minute counts as a full one."""
    if exit < entry:
        raise ValueError(f"Exit time {exit.isoformat()} is before entry time {entry.isoformat()}")
    minutes, remainder = divmod(exit - entry, ONE_MINUTE)
    return minutes + (1 if remainder else 0)

def cost(minutes: int, rate: Union[Decimal, str, int]) -> Decimal:
    return (Decimal(minutes) * Decimal(str(rate))).quantize(CENTS, rounding=ROUND_HALF_UP)

def overstay_minutes(minutes: int, balance: int) -> int:
    return max(0, minutes - balance)

@dataclass(frozen=True)
class Settlement:
    billed_minutes: int
    total_cost: Decimal
    new_balance: int
    exit_time: datetime
    overstay_minutes: Optional[int] = None

    @property
    def insufficient_balance(self) -> bool:
        return self.overstay_minutes is not None

def settle(entry: datetime, exit: datetime, balance: int, rate: Union[Decimal, str, int]) -> Settlement:
    """
    Bill a session that ends at ``exit``.

    When the balance covers the elapsed minutes they are all charged. Otherwise
    only the minutes the user could pay for are charged, the balance drops to
    zero and the billed exit time becomes ``entry + balance`` minutes so the
    recorded stay matches the money taken. The unpaid remainder is reported
    as ``overstay_minutes``.
    """
    used = elapsed_minutes(entry, exit)
    if balance >= used:
        return Settlement(
            billed_minutes=used,
            total_cost=cost(used, rate),
            new_balance=balance - used,
            exit_time=exit,
        )

    available = max(0, balance)
    return Settlement(
        billed_minutes=available,
        total_cost=cost(available, rate),
        new_balance=0,
        exit_time=entry + timedelta(minutes=available),
        overstay_minutes=used - available,
    )
