from pydantic import BaseModel, ConfigDict, field_validator
from datetime import datetime
from decimal import Decimal
from qrpark.models.transaction import PaymentMethod, TransactionStatus
from qrpark.utils.validators import validate_phone

class MinutePackage(BaseModel):
    id: str
    minutes: int
    price: Decimal
    currency: str = "HNL"
    discount_percent: int = 0
    label: str
    description: str
    popular: bool = False

    model_config = ConfigDict(frozen=True)

class TransactionRecord(BaseModel):
    id: str
    user_phone: str
    package_id: str
    minutes_purchased: int
    amount_paid: Decimal
    currency: str
    payment_method: PaymentMethod
    admin_id: str
    timestamp: datetime
    status: TransactionStatus = TransactionStatus.COMPLETED

    model_config = ConfigDict(from_attributes=True, frozen=True)

class PurchaseRequest(BaseModel):
    phone: str
    package_id: str
    payment_method: PaymentMethod = PaymentMethod.CASH
    admin_id: str = "admin"

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        return validate_phone(value)

class PurchaseResult(BaseModel):
    transaction: TransactionRecord
    new_balance: int
