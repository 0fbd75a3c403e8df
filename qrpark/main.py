from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from qrpark.database import init_db
from qrpark.errors import (
    InsufficientBalance,
    NoActiveSession,
    ParkingError,
    SessionAlreadyActive,
    SessionNotFound,
    UnknownPackage,
    UserAlreadyExists,
    UserNotFound,
)
from qrpark.routers import purchases, reports, sessions, users
from qrpark.services.locks import UserLocks
from qrpark.utils.logging import setup_logging

logger = setup_logging()

ERROR_STATUS = {
    UserNotFound: 404,
    SessionNotFound: 404,
    UnknownPackage: 400,
    InsufficientBalance: 402,
    SessionAlreadyActive: 409,
    NoActiveSession: 409,
    UserAlreadyExists: 409,
}

@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield

app = FastAPI(title="QR Parking API", version="1.0.0", lifespan=lifespan)
app.state.user_locks = UserLocks()

app.include_router(users.router)
app.include_router(sessions.router)
app.include_router(purchases.router)
app.include_router(reports.router)

@app.exception_handler(ParkingError)
async def parking_error_handler(request: Request, exc: ParkingError):
    status_code = ERROR_STATUS.get(type(exc), 400)
    logger.warning(f"{request.method} {request.url.path} -> {status_code} {type(exc).__name__}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )

@app.get("/")
async def root():
    return {"message": "QR Parking API is running"}
