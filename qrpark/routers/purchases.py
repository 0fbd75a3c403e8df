from typing import List
from fastapi import APIRouter, Depends, status
from qrpark.dependencies import get_purchase_service
from qrpark.schemas.transaction import MinutePackage, PurchaseRequest, PurchaseResult
from qrpark.services.purchase_service import PurchaseService

router = APIRouter(tags=["purchases"])

@router.get("/packages", response_model=List[MinutePackage])
async def packages(ledger: PurchaseService = Depends(get_purchase_service)):
    return ledger.list_packages()

@router.post("/purchases", response_model=PurchaseResult, status_code=status.HTTP_201_CREATED)
async def purchase(request: PurchaseRequest, ledger: PurchaseService = Depends(get_purchase_service)):
    return await ledger.add_minutes(request.phone, request.package_id, request.payment_method, request.admin_id)
