# storepos/database/seed.py
import logging
from decimal import Decimal
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

DEMO_PRODUCTS: List[Dict[str, Any]] = [
    {
        'name': 'Organic Bananas',
        'price': Decimal('2.99'),
        'category': 'Fruits',
        'barcode': '1234567890123',
        'stock': 50,
        'description': 'Fresh organic bananas, perfect for snacking',
        'supplier': 'Fresh Farms Co.',
        'cost_price': Decimal('1.50'),
        'min_stock': 10,
    },
    {
        'name': 'Whole Milk',
        'price': Decimal('3.49'),
        'category': 'Dairy',
        'barcode': '2345678901234',
        'stock': 25,
        'description': '1 gallon of fresh whole milk',
        'supplier': 'Dairy Fresh Ltd.',
        'cost_price': Decimal('2.20'),
        'min_stock': 5,
    },
    {
        'name': 'Sourdough Bread',
        'price': Decimal('4.99'),
        'category': 'Bakery',
        'barcode': '3456789012345',
        'stock': 15,
        'description': 'Artisan sourdough bread, freshly baked',
        'supplier': 'Artisan Bakery',
        'cost_price': Decimal('2.50'),
        'min_stock': 3,
    },
    {
        'name': 'Ground Beef',
        'price': Decimal('8.99'),
        'category': 'Meat',
        'barcode': '4567890123456',
        'stock': 20,
        'description': 'Fresh ground beef, 80/20 lean',
        'supplier': 'Premium Meats Inc.',
        'cost_price': Decimal('5.50'),
        'min_stock': 5,
    },
    {
        'name': 'Roma Tomatoes',
        'price': Decimal('1.99'),
        'category': 'Vegetables',
        'barcode': '5678901234567',
        'stock': 40,
        'description': 'Fresh Roma tomatoes, perfect for cooking',
        'supplier': 'Garden Fresh Produce',
        'cost_price': Decimal('0.99'),
        'min_stock': 10,
    },
    {
        'name': 'Greek Yogurt',
        'price': Decimal('5.99'),
        'category': 'Dairy',
        'barcode': '6789012345678',
        'stock': 30,
        'description': 'Creamy Greek yogurt, high in protein',
        'supplier': 'Dairy Fresh Ltd.',
        'cost_price': Decimal('3.50'),
        'min_stock': 8,
    },
    {
        'name': 'Olive Oil',
        'price': Decimal('12.99'),
        'category': 'Pantry',
        'barcode': '7890123456789',
        'stock': 18,
        'description': 'Extra virgin olive oil, cold pressed',
        'supplier': 'Mediterranean Imports',
        'cost_price': Decimal('8.00'),
        'min_stock': 5,
    },
    {
        'name': 'Chicken Breast',
        'price': Decimal('9.99'),
        'category': 'Meat',
        'barcode': '8901234567890',
        'stock': 12,
        'description': 'Boneless skinless chicken breast',
        'supplier': 'Premium Meats Inc.',
        'cost_price': Decimal('6.50'),
        'min_stock': 3,
    },
]


async def seed_demo_products(catalog) -> int:
    """Fill an empty catalog with demo products; returns how many were added"""
    if await catalog.count():
        return 0

    for product_data in DEMO_PRODUCTS:
        await catalog.create_product(product_data)

    logger.info(f"Seeded {len(DEMO_PRODUCTS)} demo products")
    return len(DEMO_PRODUCTS)
