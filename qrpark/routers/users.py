from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from qrpark.dependencies import get_purchase_service, get_session_service, get_user_service, phone_path
from qrpark.schemas.session import SessionRecord
from qrpark.schemas.transaction import TransactionRecord
from qrpark.schemas.user import UserCreate, UserRecord
from qrpark.services.purchase_service import PurchaseService
from qrpark.services.session_service import SessionService
from qrpark.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])

@router.post("", response_model=UserRecord, status_code=status.HTTP_201_CREATED)
async def create_user(request: UserCreate, users: UserService = Depends(get_user_service)):
    return await users.create_user(request.phone, request.full_name, request.minutes_balance)

@router.get("/{phone}", response_model=UserRecord)
async def get_user(phone: str = Depends(phone_path), users: UserService = Depends(get_user_service)):
    return await users.get_user(phone)

@router.get("/{phone}/sessions", response_model=List[SessionRecord])
async def get_user_sessions(
    phone: str = Depends(phone_path),
    limit: Optional[int] = Query(None, ge=1, le=100),
    sessions: SessionService = Depends(get_session_service),
):
    return await sessions.get_user_sessions(phone, limit)

@router.get("/{phone}/transactions", response_model=List[TransactionRecord])
async def get_user_transactions(
    phone: str = Depends(phone_path),
    limit: Optional[int] = Query(None, ge=1, le=100),
    ledger: PurchaseService = Depends(get_purchase_service),
):
    return await ledger.get_user_transactions(phone, limit)
