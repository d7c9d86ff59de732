# storepos/services/product_service.py
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Dict, Optional, Any
from ..config import Config
from ..exceptions import InvalidInput
from ..models.product import Product

REQUIRED_FIELDS = ('name', 'price', 'category', 'barcode')

class ProductService:
    """Catalog access; the checkout engine only reads through it"""

    def __init__(self, db, low_stock_threshold: int = None):
        self.db = db
        self.low_stock_threshold = (
            Config.LOW_STOCK_THRESHOLD if low_stock_threshold is None else low_stock_threshold
        )
        self.logger = logging.getLogger(__name__)

    async def create_product(self, product_data: Dict[str, Any]) -> Product:
        """Add a product to the catalog"""
        self._validate(product_data)
        now = datetime.now(timezone.utc)
        doc = {
            'product_id': product_data.get('product_id') or uuid.uuid4().hex,
            'name': product_data['name'],
            'price': Decimal(str(product_data['price'])),
            'category': product_data['category'],
            'barcode': product_data['barcode'].strip(),
            'stock': product_data.get('stock', 0),
            'is_active': product_data.get('is_active', True),
            'description': product_data.get('description'),
            'image_url': product_data.get('image_url'),
            'supplier': product_data.get('supplier'),
            'cost_price': (
                Decimal(str(product_data['cost_price']))
                if product_data.get('cost_price') is not None else None
            ),
            'min_stock': product_data.get('min_stock'),
            'created_at': now,
            'updated_at': now,
        }
        product = Product(**doc)

        async with self.db.session() as session:
            await session.insert_product(doc)

        self.logger.info(f"Product {product.product_id} ({product.name}) created")
        return product

    async def update_product(self, product_id: str, updates: Dict[str, Any]) -> bool:
        """Update catalog fields; stock changes made here bypass checkout"""
        self._validate(updates, partial=True)
        updates = dict(updates)
        if 'barcode' in updates:
            updates['barcode'] = updates['barcode'].strip()
        for key in ('price', 'cost_price'):
            if updates.get(key) is not None:
                updates[key] = Decimal(str(updates[key]))
        updates['updated_at'] = datetime.now(timezone.utc)

        async with self.db.session() as session:
            return await session.update_product(product_id, updates)

    async def delete_product(self, product_id: str) -> bool:
        """Remove a product from the catalog"""
        async with self.db.session() as session:
            deleted = await session.delete_product(product_id)
        if deleted:
            self.logger.info(f"Product {product_id} deleted")
        return deleted

    async def get_product(self, product_id: str) -> Optional[Product]:
        async with self.db.session() as session:
            row = await session.get_product(product_id)
        return Product(**row) if row else None

    async def get_by_barcode(self, barcode: str) -> Optional[Product]:
        async with self.db.session() as session:
            row = await session.get_product_by_barcode(barcode)
        return Product(**row) if row else None

    async def list_active(self, category: Optional[str] = None) -> List[Product]:
        """Sellable products, optionally limited to one category"""
        async with self.db.session() as session:
            rows = await session.list_products(active_only=True, category=category)
        return [Product(**row) for row in rows]

    async def count(self) -> int:
        async with self.db.session() as session:
            return await session.count_products()

    async def list_all(self) -> List[Product]:
        async with self.db.session() as session:
            rows = await session.list_products()
        return [Product(**row) for row in rows]

    async def categories(self) -> List[str]:
        products = await self.list_active()
        return sorted({p.category for p in products})

    async def search(self, term: str) -> List[Product]:
        """Match name (case-insensitive) or barcode substring"""
        term = term.strip().lower()
        products = await self.list_all()
        if not term:
            return products
        return [
            p for p in products
            if term in p.name.lower() or term in p.barcode
        ]

    async def low_stock(self) -> List[Product]:
        products = await self.list_active()
        return [p for p in products if p.is_low_stock(self.low_stock_threshold)]

    @staticmethod
    def _validate(data: Dict[str, Any], partial: bool = False) -> None:
        for key in REQUIRED_FIELDS:
            if partial and key not in data:
                continue
            value = data.get(key)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise InvalidInput(f"Missing product field: {key}")
        for key in ('stock', 'is_active'):
            if key in data and data[key] is None:
                raise InvalidInput(f"Product field cannot be empty: {key}")

        if data.get('price') is not None and Decimal(str(data['price'])) < 0:
            raise InvalidInput("Price cannot be negative")
        if data.get('cost_price') is not None and Decimal(str(data['cost_price'])) < 0:
            raise InvalidInput("Cost price cannot be negative")
        if data.get('stock') is not None and data['stock'] < 0:
            raise InvalidInput("Stock cannot be negative")
        if data.get('min_stock') is not None and data['min_stock'] < 0:
            raise InvalidInput("Minimum stock cannot be negative")
