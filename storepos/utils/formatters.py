# storepos/utils/formatters.py
from datetime import datetime
import pytz
from decimal import Decimal
from ..config import Config
from ..services.money import round_money

def format_price(amount: Decimal, symbol: str = None) -> str:
    """Format an amount for display, rounded half-up to cents"""
    symbol = Config.CURRENCY_SYMBOL if symbol is None else symbol
    return f"{symbol}{round_money(Decimal(amount)):,.2f}"

def format_datetime(dt: datetime) -> str:
    """Render a timestamp in the configured timezone"""
    local_tz = pytz.timezone(Config.TIMEZONE)
    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    local_time = dt.astimezone(local_tz)
    return local_time.strftime("%Y-%m-%d %H:%M:%S")
