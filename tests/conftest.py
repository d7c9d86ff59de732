"""Shared pytest fixtures for storepos tests."""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from storepos.database.memory import MemoryDatabase
from storepos.models.product import Product
from storepos.services.cart_service import CartService
from storepos.services.product_service import ProductService


@pytest.fixture
def db():
    """An open in-memory store."""
    database = MemoryDatabase()
    asyncio.run(database.connect())
    return database


@pytest.fixture
def catalog(db):
    return ProductService(db, low_stock_threshold=5)


@pytest.fixture
def make_product():
    """Build a Product without touching the store."""

    def _make(product_id="p-1", **overrides):
        now = datetime(2026, 1, 5, 9, 30, tzinfo=timezone.utc)
        data = {
            "product_id": product_id,
            "name": f"Product {product_id}",
            "price": Decimal("2.50"),
            "category": "Pantry",
            "barcode": f"bc-{product_id}",
            "stock": 10,
            "created_at": now,
            "updated_at": now,
        }
        data.update(overrides)
        return Product(**data)

    return _make


@pytest.fixture
def stocked(catalog):
    """Two products in the store: A (stock 10) and B (stock 1), both 2.50."""

    async def _create():
        product_a = await catalog.create_product({
            "product_id": "prod-a",
            "name": "Product A",
            "price": "2.50",
            "category": "Pantry",
            "barcode": "1111111111111",
            "stock": 10,
        })
        product_b = await catalog.create_product({
            "product_id": "prod-b",
            "name": "Product B",
            "price": "2.50",
            "category": "Dairy",
            "barcode": "2222222222222",
            "stock": 1,
        })
        return product_a, product_b

    return asyncio.run(_create())


@pytest.fixture
def cart():
    return CartService(tax_rate=Decimal("0.08"))
