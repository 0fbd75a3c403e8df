import logging
import sys
from typing import Optional
from qrpark.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a stdout handler to the ``qrpark`` logger; every module logs below it."""
    settings = get_settings()
    level = (level or settings.LOG_LEVEL).upper()

    logger = logging.getLogger("qrpark")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    # SQL echo only when debugging outside production
    sql_level = logging.INFO if level == "DEBUG" and settings.ENVIRONMENT != "production" else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(sql_level)

    return logger
