# storepos/database/database.py
import asyncio
import json
import asyncpg
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional
from ..config import Config
from ..exceptions import DuplicateCommit, InvalidInput, PersistenceUnavailable

PRODUCT_COLUMNS = (
    "product_id", "name", "price", "category", "barcode", "stock",
    "is_active", "description", "image_url", "supplier", "cost_price",
    "min_stock", "created_at", "updated_at",
)

# Errors that mean we never got a usable connection
CONNECT_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
)


def _json_default(value):
    return str(value)


def _transaction_from_row(row) -> Dict[str, Any]:
    doc = dict(row)
    if isinstance(doc["items"], str):
        doc["items"] = json.loads(doc["items"])
    doc["timestamp"] = doc.pop("created_at")
    return doc


class PostgresSession:
    """Document operations over a single asyncpg connection"""

    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn

    async def get_product(self, product_id: str, for_update: bool = False) -> Optional[Dict[str, Any]]:
        query = "SELECT * FROM products WHERE product_id = $1"
        if for_update:
            query += " FOR UPDATE"
        row = await self.conn.fetchrow(query, product_id)
        return dict(row) if row else None

    async def get_product_by_barcode(self, barcode: str) -> Optional[Dict[str, Any]]:
        row = await self.conn.fetchrow("""
            SELECT * FROM products WHERE barcode = $1
        """, barcode)
        return dict(row) if row else None

    async def list_products(self, active_only: bool = False,
                            category: Optional[str] = None) -> List[Dict[str, Any]]:
        query = "SELECT * FROM products WHERE 1=1"
        params = []

        if active_only:
            query += " AND is_active = true"

        if category is not None:
            params.append(category)
            query += f" AND category = ${len(params)}"

        query += " ORDER BY name"
        rows = await self.conn.fetch(query, *params)
        return [dict(row) for row in rows]

    async def count_products(self) -> int:
        count = await self.conn.fetchval("SELECT COUNT(*) FROM products")
        return count or 0

    async def insert_product(self, doc: Dict[str, Any]) -> None:
        columns = [c for c in PRODUCT_COLUMNS if c in doc]
        placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
        try:
            await self.conn.execute(
                f"INSERT INTO products ({', '.join(columns)}) VALUES ({placeholders})",
                *[doc[c] for c in columns]
            )
        except asyncpg.UniqueViolationError as e:
            if getattr(e, "constraint_name", None) == "products_pkey":
                raise InvalidInput(f"Product {doc['product_id']} already exists") from e
            raise InvalidInput(f"Barcode {doc.get('barcode')} already exists") from e

    async def update_product(self, product_id: str, updates: Dict[str, Any]) -> bool:
        query_parts = []
        params = []
        param_count = 1

        for key, value in updates.items():
            if key not in PRODUCT_COLUMNS or key == "product_id":
                raise InvalidInput(f"Unknown product field: {key}")
            query_parts.append(f"{key} = ${param_count}")
            params.append(value)
            param_count += 1

        if not query_parts:
            return False

        params.append(product_id)
        query = f"""
            UPDATE products
            SET {', '.join(query_parts)}
            WHERE product_id = ${param_count}
        """
        try:
            result = await self.conn.execute(query, *params)
        except asyncpg.UniqueViolationError as e:
            raise InvalidInput(f"Barcode {updates.get('barcode')} already exists") from e
        return result == "UPDATE 1"

    async def delete_product(self, product_id: str) -> bool:
        result = await self.conn.execute("""
            DELETE FROM products WHERE product_id = $1
        """, product_id)
        return result == "DELETE 1"

    async def set_stock(self, product_id: str, stock: int, updated_at: datetime) -> bool:
        result = await self.conn.execute("""
            UPDATE products
            SET stock = $1, updated_at = $2
            WHERE product_id = $3
        """, stock, updated_at, product_id)
        return result == "UPDATE 1"

    async def insert_transaction(self, doc: Dict[str, Any]) -> None:
        try:
            await self.conn.execute("""
                INSERT INTO transactions (
                    transaction_id, idempotency_key, items, subtotal, tax,
                    total, payment_method, cashier_id, customer_paid,
                    change, created_at
                ) VALUES ($1, $2, $3::jsonb, $4, $5, $6, $7, $8, $9, $10, $11)
            """,
                doc["transaction_id"],
                doc["idempotency_key"],
                json.dumps(doc["items"], default=_json_default),
                doc["subtotal"],
                doc["tax"],
                doc["total"],
                doc["payment_method"],
                doc["cashier_id"],
                doc["customer_paid"],
                doc["change"],
                doc["timestamp"]
            )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateCommit(doc["idempotency_key"]) from e

    async def get_transaction(self, transaction_id: str) -> Optional[Dict[str, Any]]:
        row = await self.conn.fetchrow("""
            SELECT * FROM transactions WHERE transaction_id = $1
        """, transaction_id)
        return _transaction_from_row(row) if row else None

    async def get_transaction_by_key(self, idempotency_key: str) -> Optional[Dict[str, Any]]:
        row = await self.conn.fetchrow("""
            SELECT * FROM transactions WHERE idempotency_key = $1
        """, idempotency_key)
        return _transaction_from_row(row) if row else None

    async def list_transactions(self, limit: Optional[int] = None,
                                since: Optional[datetime] = None) -> List[Dict[str, Any]]:
        query = "SELECT * FROM transactions WHERE 1=1"
        params = []

        if since is not None:
            params.append(since)
            query += f" AND created_at >= ${len(params)}"

        query += " ORDER BY created_at DESC"

        if limit is not None:
            params.append(limit)
            query += f" LIMIT ${len(params)}"

        rows = await self.conn.fetch(query, *params)
        return [_transaction_from_row(row) for row in rows]


class Database:
    """PostgreSQL persistence client backed by an asyncpg pool"""

    def __init__(self, dsn: str = None, min_size: int = None, max_size: int = None,
                 acquire_timeout: Optional[float] = None):
        self.dsn = dsn or Config.DATABASE_URL
        self.min_size = min_size or Config.DB_POOL_MIN_SIZE
        self.max_size = max_size or Config.DB_POOL_MAX_SIZE
        self.acquire_timeout = acquire_timeout
        self.pool: Optional[asyncpg.Pool] = None
        self.logger = logging.getLogger(__name__)

    async def connect(self):
        """Open the pool and apply pending migrations"""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=self.min_size,
                max_size=self.max_size
            )

            await self._run_migrations()

            self.logger.info("Connected to database")
        except Exception as e:
            self.logger.error(f"Database connection failed: {e}")
            raise

    async def close(self):
        """Close the pool"""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("Database connection closed")

    async def _run_migrations(self):
        """Apply SQL migrations that have not run yet"""
        try:
            migrations_path = Path(__file__).parent / "migrations"

            async with self.pool.acquire() as conn:
                await conn.execute("""
                    CREATE TABLE IF NOT EXISTS migrations (
                        id SERIAL PRIMARY KEY,
                        name VARCHAR(255) NOT NULL,
                        applied_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                for migration_file in sorted(migrations_path.glob("*.sql")):
                    migration_name = migration_file.name

                    is_applied = await conn.fetchval(
                        "SELECT COUNT(*) FROM migrations WHERE name = $1",
                        migration_name
                    )

                    if not is_applied:
                        with open(migration_file) as f:
                            await conn.execute(f.read())

                        await conn.execute(
                            "INSERT INTO migrations (name) VALUES ($1)",
                            migration_name
                        )

                        self.logger.info(f"Migration {migration_name} applied")

        except Exception as e:
            self.logger.error(f"Migration failed: {e}")
            raise

    async def _acquire(self) -> asyncpg.Connection:
        if self.pool is None:
            raise PersistenceUnavailable("Database is not connected")
        try:
            return await self.pool.acquire(timeout=self.acquire_timeout)
        except CONNECT_ERRORS as e:
            self.logger.error(f"Could not acquire a database connection: {e}")
            raise PersistenceUnavailable(str(e)) from e

    @asynccontextmanager
    async def session(self) -> AsyncIterator[PostgresSession]:
        """Connection for reads and single-statement writes"""
        pool = self.pool
        conn = await self._acquire()
        try:
            yield PostgresSession(conn)
        finally:
            await pool.release(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[PostgresSession]:
        """Atomic unit of work; rolled back if the block raises"""
        pool = self.pool
        conn = await self._acquire()
        try:
            async with conn.transaction():
                yield PostgresSession(conn)
        finally:
            await pool.release(conn)
