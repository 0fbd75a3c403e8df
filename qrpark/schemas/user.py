from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional
from qrpark.utils.validators import validate_phone

class CurrentSession(BaseModel):
    session_id: str
    entry_time: datetime
    location: Optional[str] = None

class UserBase(BaseModel):
    full_name: Optional[str] = None
    phone: str

class UserCreate(UserBase):
    minutes_balance: int = Field(default=0, ge=0)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        return validate_phone(value)

class UserRecord(UserBase):
    minutes_balance: int = Field(default=0, ge=0)
    total_spent: Decimal = Decimal("0")
    current_session: Optional[CurrentSession] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
