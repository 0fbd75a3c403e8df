from sqlalchemy import Column, Integer, String, DateTime, JSON, Numeric
from qrpark.utils.timeframes import utcnow
from qrpark.database import Base

class User(Base):
    __tablename__ = "users"

    phone = Column(String(15), primary_key=True, index=True)
    full_name = Column(String, nullable=True)
    minutes_balance = Column(Integer, nullable=False, default=0)
    total_spent = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)

    # {"session_id", "entry_time", "location"} while the user is parked
    current_session = Column(JSON, nullable=True)
