from sqlalchemy import Column, Integer, String, DateTime, Enum, Numeric, ForeignKey
from qrpark.database import Base
import enum

class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    TRANSFER = "transfer"
    CARD = "card"

class TransactionStatus(str, enum.Enum):
    COMPLETED = "completed"

class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True)
    user_phone = Column(String(15), ForeignKey("users.phone"), nullable=False, index=True)
    package_id = Column(String, nullable=False)
    minutes_purchased = Column(Integer, nullable=False)
    amount_paid = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    payment_method = Column(Enum(PaymentMethod), nullable=False)
    admin_id = Column(String, nullable=False)
    timestamp = Column(DateTime, nullable=False, index=True)
    status = Column(Enum(TransactionStatus), nullable=False, default=TransactionStatus.COMPLETED)
