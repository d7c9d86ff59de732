# storepos/services/stock_repository.py
import logging
from datetime import datetime, timezone
from typing import Optional
from ..config import Config
from ..exceptions import ProductMissing, StockExhausted

class StockRepository:
    """Reads and decrements product stock inside a caller's transaction"""

    def __init__(self, db, allow_negative_stock: bool = None):
        self.db = db
        self.allow_negative_stock = (
            Config.ALLOW_NEGATIVE_STOCK if allow_negative_stock is None else allow_negative_stock
        )
        self.logger = logging.getLogger(__name__)

    async def get_stock(self, product_id: str) -> Optional[int]:
        """Current committed stock, or None for an unknown product"""
        async with self.db.session() as session:
            row = await session.get_product(product_id)
        return row['stock'] if row else None

    async def decrement(self, session, product_id: str, amount: int) -> int:
        """Lock the product row, write stock - amount, return the new stock.

        Raises ProductMissing if the product is gone, which must abort the
        enclosing commit. Raises StockExhausted when the result would go
        negative unless overselling is allowed.
        """
        row = await session.get_product(product_id, for_update=True)
        if row is None:
            raise ProductMissing(product_id)

        current = row['stock']
        new_stock = current - amount
        if new_stock < 0:
            if not self.allow_negative_stock:
                raise StockExhausted(product_id, current, amount)
            self.logger.warning(
                f"Oversell on product {product_id}: stock {current}, sold {amount}"
            )

        await session.set_stock(product_id, new_stock, datetime.now(timezone.utc))
        return new_stock
