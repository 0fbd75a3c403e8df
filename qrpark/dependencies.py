from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from qrpark.database import get_db
from qrpark.services.locks import UserLocks
from qrpark.services.purchase_service import PurchaseService
from qrpark.services.report_service import ReportService
from qrpark.services.session_service import SessionService
from qrpark.services.store import RecordStore, SqlRecordStore
from qrpark.services.user_service import UserService
from qrpark.utils.validators import validate_phone

def get_store(db: AsyncSession = Depends(get_db)) -> RecordStore:
    return SqlRecordStore(db)

def get_user_locks(request: Request) -> UserLocks:
    return request.app.state.user_locks

def phone_path(phone: str) -> str:
    try:
        return validate_phone(phone)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

def get_user_service(
    store: RecordStore = Depends(get_store), locks: UserLocks = Depends(get_user_locks)
) -> UserService:
    return UserService(store, locks)

def get_session_service(
    store: RecordStore = Depends(get_store), locks: UserLocks = Depends(get_user_locks)
) -> SessionService:
    return SessionService(store, locks)

def get_purchase_service(
    store: RecordStore = Depends(get_store), locks: UserLocks = Depends(get_user_locks)
) -> PurchaseService:
    return PurchaseService(store, locks)

def get_report_service(
    store: RecordStore = Depends(get_store),
    ledger: PurchaseService = Depends(get_purchase_service),
) -> ReportService:
    return ReportService(store, ledger)
