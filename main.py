# main.py
import asyncio
import logging
from storepos.config import Config, setup_logging
from storepos.database import create_database
from storepos.database.seed import seed_demo_products
from storepos.services.product_service import ProductService

async def main():
    # Setup logging
    setup_logging()
    logger = logging.getLogger(__name__)

    db = create_database(Config.DATABASE_URL)
    try:
        await db.connect()
        catalog = ProductService(db)

        if Config.SEED_DEMO_DATA:
            await seed_demo_products(catalog)

        products = await catalog.list_active()
        logger.info(f"Catalog ready: {len(products)} active products")
        for product in await catalog.low_stock():
            logger.warning(f"Low stock: {product.name} ({product.stock} left)")
    except Exception as e:
        logger.error(f"Error starting point of sale: {e}", exc_info=True)
        raise
    finally:
        await db.close()

if __name__ == "__main__":
    asyncio.run(main())
