from sqlalchemy import Column, Integer, String, DateTime, Enum, Numeric, ForeignKey
from qrpark.utils.timeframes import utcnow
from qrpark.database import Base
import enum

class SessionStatus(str, enum.Enum):
    ACTIVE = "active"
    OVERSTAY = "overstay"
    COMPLETED = "completed"
    COMPLETED_INSUFFICIENT_BALANCE = "completed_insufficient_balance"

OPEN_STATUSES = (SessionStatus.ACTIVE, SessionStatus.OVERSTAY)

class ParkingSession(Base):
    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True)
    user_phone = Column(String(15), ForeignKey("users.phone"), nullable=False, index=True)
    location = Column(String, nullable=True)
    entry_time = Column(DateTime, nullable=False, index=True)
    exit_time = Column(DateTime, nullable=True)
    minutes_used = Column(Integer, nullable=False, default=0)
    cost_per_minute = Column(Numeric(10, 2), nullable=False)
    total_cost = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(Enum(SessionStatus), nullable=False, default=SessionStatus.ACTIVE, index=True)

    # Written only when a refresh flags the session
    overstay_minutes = Column(Integer, nullable=True)
    last_update = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)
