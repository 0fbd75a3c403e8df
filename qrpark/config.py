from decimal import Decimal
from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./parking.db"
    COST_PER_MINUTE: Decimal = Decimal("0.83")
    CURRENCY: str = "HNL"
    DEFAULT_LOCATION: str = "Main Lot"
    HISTORY_LIMIT: int = 10
    # Reports bucket days and hours in this offset from UTC
    REPORT_UTC_OFFSET_MINUTES: int = 0
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings():
    return Settings()
