from pydantic import BaseModel, ConfigDict, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from qrpark.models.session import SessionStatus, OPEN_STATUSES
from qrpark.schemas.user import UserRecord
from qrpark.utils.validators import validate_phone

class SessionRecord(BaseModel):
    id: str
    user_phone: str
    location: Optional[str] = None
    entry_time: datetime
    exit_time: Optional[datetime] = None
    minutes_used: int = 0
    cost_per_minute: Decimal
    total_cost: Decimal = Decimal("0")
    status: SessionStatus = SessionStatus.ACTIVE
    overstay_minutes: Optional[int] = None
    last_update: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

class ActiveSession(SessionRecord):
    """An open session as the guard sees it, with live elapsed time."""
    minutes_elapsed: int
    user: Optional[UserRecord] = None

class SessionClosure(BaseModel):
    session_id: str
    exit_time: datetime
    minutes_used: int
    total_cost: Decimal
    new_balance: int
    insufficient_balance: bool
    overstay_minutes: Optional[int] = None

class ScanResult(BaseModel):
    action: Literal["entry", "exit"]
    session: Optional[SessionRecord] = None
    closure: Optional[SessionClosure] = None

class SessionRequest(BaseModel):
    phone: str
    location: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        return validate_phone(value)
