# storepos/config.py
import os
import logging
from decimal import Decimal
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent.parent


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name, "").strip()
    return float(value) if value else None


class Config:
    """Configuration settings for the point of sale"""

    # Database settings
    DATABASE_URL: str = os.getenv("DATABASE_URL", "memory://")
    DB_POOL_MIN_SIZE: int = int(os.getenv("DB_POOL_MIN_SIZE", "2"))
    DB_POOL_MAX_SIZE: int = int(os.getenv("DB_POOL_MAX_SIZE", "10"))

    # Sale settings
    TAX_RATE: Decimal = Decimal(os.getenv("TAX_RATE", "0.08"))
    CURRENCY_SYMBOL: str = os.getenv("CURRENCY_SYMBOL", "$")
    LOW_STOCK_THRESHOLD: int = int(os.getenv("LOW_STOCK_THRESHOLD", "5"))
    ALLOW_NEGATIVE_STOCK: bool = os.getenv("ALLOW_NEGATIVE_STOCK", "false").lower() == "true"
    COMMIT_TIMEOUT: Optional[float] = _optional_float("COMMIT_TIMEOUT")
    SEED_DEMO_DATA: bool = os.getenv("SEED_DEMO_DATA", "true").lower() == "true"

    # Other settings
    TIMEZONE: str = os.getenv("TZ", "UTC")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Paths
    LOG_DIR = BASE_DIR / "logs"


def setup_logging():
    """Configure logging settings"""
    Config.LOG_DIR.mkdir(exist_ok=True)
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    log_file = Config.LOG_DIR / "storepos.log"

    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL),
        format=log_format,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )
