# storepos/services/lookup_service.py
import logging
from typing import Optional
from ..models.product import Product
from .product_service import ProductService

class ProductLookup:
    """Resolve scanned or typed barcodes to sellable products"""

    def __init__(self, catalog: ProductService):
        self.catalog = catalog
        self.logger = logging.getLogger(__name__)

    async def find_by_barcode(self, code: str) -> Optional[Product]:
        """Exact barcode match; None when nothing sellable matches"""
        code = (code or "").strip()
        if not code:
            return None

        product = await self.catalog.get_by_barcode(code)
        if product is None or not product.is_active:
            self.logger.debug(f"No active product for barcode {code}")
            return None
        return product
