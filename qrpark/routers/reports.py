from datetime import datetime
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query
from qrpark.dependencies import get_purchase_service, get_report_service
from qrpark.schemas.report import DashboardOverview, SalesStats, SessionStatistics
from qrpark.services.purchase_service import PurchaseService
from qrpark.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])

@router.get("/sales", response_model=SalesStats)
async def sales(
    start: Optional[datetime] = Query(None, description="UTC start of the window; defaults to the start of today."),
    end: Optional[datetime] = None,
    ledger: PurchaseService = Depends(get_purchase_service),
):
    return await ledger.get_sales_stats(start, end)

@router.get("/sessions", response_model=SessionStatistics)
async def session_statistics(
    time_range: Literal["today", "week", "month", "day"] = "today",
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    reports: ReportService = Depends(get_report_service),
):
    return await reports.session_statistics(time_range, start, end)

@router.get("/overview", response_model=DashboardOverview)
async def overview(reports: ReportService = Depends(get_report_service)):
    return await reports.overview()
