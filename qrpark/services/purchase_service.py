import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional, Union

from qrpark.config import Settings, get_settings
from qrpark.errors import UserNotFound
from qrpark.models.transaction import PaymentMethod, TransactionStatus
from qrpark.schemas.report import SalesStats
from qrpark.schemas.transaction import MinutePackage, PurchaseResult, TransactionRecord
from qrpark.services.locks import UserLocks
from qrpark.services.packages import MINUTE_PACKAGES, get_package, list_packages
from qrpark.services.store import RecordStore
from qrpark.utils.timeframes import as_naive_utc, local_day_start, utcnow

logger = logging.getLogger(__name__)

class PurchaseService:
    def __init__(
        self,
        store: RecordStore,
        locks: UserLocks,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        settings = settings or get_settings()
        self.store = store
        self.locks = locks
        self.clock = clock
        self.history_limit = settings.HISTORY_LIMIT
        self.report_offset = settings.REPORT_UTC_OFFSET_MINUTES
        self.currency = settings.CURRENCY

    def list_packages(self) -> List[MinutePackage]:
        return list_packages(self.currency)

    async def add_minutes(
        self,
        phone: str,
        package_id: str,
        payment_method: Union[PaymentMethod, str] = PaymentMethod.CASH,
        admin_id: str = "admin",
    ) -> PurchaseResult:
        """
        Record a package sale made at the counter and credit its minutes.

        The transaction record and the balance change are written together:
        if either write fails neither is kept.
        """
        package = get_package(package_id, self.currency)
        method = PaymentMethod(payment_method)

        async with self.locks.hold(phone):
            async with self.store.transaction():
                user = await self.store.get_user(phone, for_update=True)
                if user is None:
                    logger.warning(f"Purchase of {package_id} refused: user {phone} not found")
                    raise UserNotFound(phone)

                transaction = TransactionRecord(
                    id=str(uuid.uuid4()),
                    user_phone=phone,
                    package_id=package.id,
                    minutes_purchased=package.minutes,
                    amount_paid=package.price,
                    currency=package.currency,
                    payment_method=method,
                    admin_id=admin_id,
                    timestamp=self.clock(),
                    status=TransactionStatus.COMPLETED,
                )
                await self.store.create_transaction(transaction)

                user = user.model_copy(update={
                    "minutes_balance": user.minutes_balance + package.minutes,
                    "total_spent": user.total_spent + package.price,
                })
                await self.store.put_user(user)

        logger.info(
            f"Transaction {transaction.id}: {package.minutes} min sold to {phone} "
            f"for {package.price} {package.currency} ({method.value}) by {admin_id}"
        )
        return PurchaseResult(transaction=transaction, new_balance=user.minutes_balance)

    async def get_user_transactions(self, phone: str, limit: Optional[int] = None) -> List[TransactionRecord]:
        if await self.store.get_user(phone) is None:
            raise UserNotFound(phone)
        return await self.store.list_transactions(user_phone=phone, limit=limit or self.history_limit)

    async def get_sales_stats(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> SalesStats:
        start, end = as_naive_utc(start), as_naive_utc(end)
        # Without a start, report the current day only
        if start is None:
            start = local_day_start(self.clock(), self.report_offset)

        transactions = await self.store.list_transactions(
            status=TransactionStatus.COMPLETED, since=start, until=end
        )

        payment_methods = {method.value: 0 for method in PaymentMethod}
        package_breakdown = {package.id: 0 for package in MINUTE_PACKAGES}
        for transaction in transactions:
            method = transaction.payment_method.value
            payment_methods[method] = payment_methods.get(method, 0) + 1
            package_breakdown[transaction.package_id] = package_breakdown.get(transaction.package_id, 0) + 1

        return SalesStats(
            start=start,
            end=end,
            total_transactions=len(transactions),
            total_revenue=sum((t.amount_paid for t in transactions), Decimal("0")),
            total_minutes_sold=sum(t.minutes_purchased for t in transactions),
            payment_methods=payment_methods,
            package_breakdown=package_breakdown,
        )
