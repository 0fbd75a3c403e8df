from typing import List
from fastapi import APIRouter, Depends, status
from qrpark.dependencies import get_session_service
from qrpark.schemas.session import ActiveSession, ScanResult, SessionClosure, SessionRecord, SessionRequest
from qrpark.services.session_service import SessionService

router = APIRouter(prefix="/sessions", tags=["sessions"])

@router.post("/entry", response_model=SessionRecord, status_code=status.HTTP_201_CREATED)
async def enter(request: SessionRequest, sessions: SessionService = Depends(get_session_service)):
    return await sessions.open_session(request.phone, request.location)

@router.post("/exit", response_model=SessionClosure)
async def leave(request: SessionRequest, sessions: SessionService = Depends(get_session_service)):
    return await sessions.close_session(request.phone)

@router.post("/scan", response_model=ScanResult)
async def scan(request: SessionRequest, sessions: SessionService = Depends(get_session_service)):
    return await sessions.process_scan(request.phone, request.location)

@router.get("/active", response_model=List[ActiveSession])
async def active_sessions(sessions: SessionService = Depends(get_session_service)):
    return await sessions.list_active_sessions()

@router.post("/refresh", response_model=List[ActiveSession])
async def refresh_sessions(sessions: SessionService = Depends(get_session_service)):
    return await sessions.refresh_active_sessions()
