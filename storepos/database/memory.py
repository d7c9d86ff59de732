# storepos/database/memory.py
import asyncio
import copy
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional, Set
from ..exceptions import DuplicateCommit, InvalidInput, PersistenceUnavailable, ProductMissing
from .database import PRODUCT_COLUMNS


def _patched(doc: Dict[str, Any], fields: Optional[Dict[str, Any]] = None,
             stock_delta: int = 0) -> Dict[str, Any]:
    doc = dict(doc)
    if fields:
        doc.update(fields)
    doc["stock"] += stock_delta
    return doc


class MemorySession:
    """Document operations against MemoryDatabase.

    Outside a transaction writes land immediately. Inside one they are
    staged and only applied when the enclosing block exits cleanly;
    reads see the session's own staged writes. Updates to existing
    products are staged as field patches and stock as a delta, so they
    are applied onto whatever the product holds at commit time.
    ``for_update`` reads take a per-product lock held until the
    transaction ends.
    """

    def __init__(self, db: "MemoryDatabase", transactional: bool = False):
        self.db = db
        self.transactional = transactional
        self._inserted: Dict[str, Dict[str, Any]] = {}
        self._patches: Dict[str, Dict[str, Any]] = {}
        self._stock_deltas: Dict[str, int] = {}
        self._deleted: Set[str] = set()
        self._staged_transactions: List[Dict[str, Any]] = []
        self._held: Set[str] = set()

    def _current_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        if product_id in self._inserted:
            return self._inserted[product_id]
        if product_id in self._deleted:
            return None
        doc = self.db._products.get(product_id)
        if doc is None:
            return None
        if product_id in self._patches or product_id in self._stock_deltas:
            doc = _patched(doc, self._patches.get(product_id), self._stock_deltas.get(product_id, 0))
        return doc

    def _visible_products(self) -> List[Dict[str, Any]]:
        ids = set(self.db._products) | set(self._inserted)
        docs = (self._current_product(pid) for pid in ids)
        return [doc for doc in docs if doc is not None]

    def _key_taken(self, idempotency_key: str) -> bool:
        return (
            idempotency_key in self.db._keys
            or any(t["idempotency_key"] == idempotency_key for t in self._staged_transactions)
        )

    async def get_product(self, product_id: str, for_update: bool = False) -> Optional[Dict[str, Any]]:
        if for_update and self.transactional and product_id not in self._held:
            await self.db._locks[product_id].acquire()
            self._held.add(product_id)
        return copy.deepcopy(self._current_product(product_id))

    async def get_product_by_barcode(self, barcode: str) -> Optional[Dict[str, Any]]:
        for doc in self._visible_products():
            if doc["barcode"] == barcode:
                return copy.deepcopy(doc)
        return None

    async def list_products(self, active_only: bool = False,
                            category: Optional[str] = None) -> List[Dict[str, Any]]:
        docs = self._visible_products()
        if active_only:
            docs = [d for d in docs if d["is_active"]]
        if category is not None:
            docs = [d for d in docs if d["category"] == category]
        return copy.deepcopy(sorted(docs, key=lambda d: d["name"]))

    async def count_products(self) -> int:
        return len(self._visible_products())

    async def insert_product(self, doc: Dict[str, Any]) -> None:
        if self._current_product(doc["product_id"]) is not None:
            raise InvalidInput(f"Product {doc['product_id']} already exists")
        if await self.get_product_by_barcode(doc["barcode"]) is not None:
            raise InvalidInput(f"Barcode {doc['barcode']} already exists")
        stored = {column: None for column in PRODUCT_COLUMNS}
        stored.update(copy.deepcopy(doc))
        if self.transactional:
            self._inserted[doc["product_id"]] = stored
        else:
            self.db._products[doc["product_id"]] = stored

    async def update_product(self, product_id: str, updates: Dict[str, Any]) -> bool:
        for key in updates:
            if key not in PRODUCT_COLUMNS or key == "product_id":
                raise InvalidInput(f"Unknown product field: {key}")
        if not updates:
            return False

        current = self._current_product(product_id)
        if current is None:
            return False

        if "barcode" in updates:
            other = await self.get_product_by_barcode(updates["barcode"])
            if other is not None and other["product_id"] != product_id:
                raise InvalidInput(f"Barcode {updates['barcode']} already exists")

        updates = copy.deepcopy(updates)
        if not self.transactional:
            self.db._products[product_id] = _patched(current, updates)
        elif product_id in self._inserted:
            self._inserted[product_id].update(updates)
        else:
            if "stock" in updates:
                delta = updates.pop("stock") - current["stock"]
                self._stock_deltas[product_id] = self._stock_deltas.get(product_id, 0) + delta
            self._patches.setdefault(product_id, {}).update(updates)
        return True

    async def delete_product(self, product_id: str) -> bool:
        if self._current_product(product_id) is None:
            return False
        if not self.transactional:
            self.db._products.pop(product_id, None)
        elif product_id in self._inserted:
            del self._inserted[product_id]
        else:
            self._deleted.add(product_id)
            self._patches.pop(product_id, None)
            self._stock_deltas.pop(product_id, None)
        return True

    async def set_stock(self, product_id: str, stock: int, updated_at: datetime) -> bool:
        return await self.update_product(product_id, {"stock": stock, "updated_at": updated_at})

    async def insert_transaction(self, doc: Dict[str, Any]) -> None:
        if self._key_taken(doc["idempotency_key"]):
            raise DuplicateCommit(doc["idempotency_key"])
        if self.transactional:
            self._staged_transactions.append(copy.deepcopy(doc))
        else:
            self.db._store_transaction(copy.deepcopy(doc))

    async def get_transaction(self, transaction_id: str) -> Optional[Dict[str, Any]]:
        for doc in self._all_transactions():
            if doc["transaction_id"] == transaction_id:
                return copy.deepcopy(doc)
        return None

    async def get_transaction_by_key(self, idempotency_key: str) -> Optional[Dict[str, Any]]:
        for doc in self._all_transactions():
            if doc["idempotency_key"] == idempotency_key:
                return copy.deepcopy(doc)
        return None

    async def list_transactions(self, limit: Optional[int] = None,
                                since: Optional[datetime] = None) -> List[Dict[str, Any]]:
        docs = self._all_transactions()
        if since is not None:
            docs = [d for d in docs if d["timestamp"] >= since]
        docs = sorted(docs, key=lambda d: d["timestamp"], reverse=True)
        if limit is not None:
            docs = docs[:limit]
        return copy.deepcopy(docs)

    def _all_transactions(self) -> List[Dict[str, Any]]:
        return list(self.db._transactions.values()) + self._staged_transactions

    def _check_apply(self) -> None:
        products = self.db._products
        for doc in self._staged_transactions:
            if doc["idempotency_key"] in self.db._keys:
                raise DuplicateCommit(doc["idempotency_key"])
        for product_id in set(self._patches) | set(self._stock_deltas):
            if product_id not in products:
                raise ProductMissing(product_id)
        for product_id, doc in self._inserted.items():
            if product_id in products and product_id not in self._deleted:
                raise InvalidInput(f"Product {product_id} already exists")
            for other_id, other in products.items():
                if other_id not in self._deleted and other["barcode"] == doc["barcode"]:
                    raise InvalidInput(f"Barcode {doc['barcode']} already exists")

    async def _apply(self) -> None:
        async with self.db._apply_lock:
            # Nothing is written unless every check passes
            self._check_apply()
            products = self.db._products
            for product_id in self._deleted:
                products.pop(product_id, None)
            products.update(self._inserted)
            for product_id in set(self._patches) | set(self._stock_deltas):
                products[product_id] = _patched(
                    products[product_id],
                    self._patches.get(product_id),
                    self._stock_deltas.get(product_id, 0),
                )
            for doc in self._staged_transactions:
                self.db._store_transaction(doc)
        self._discard()

    def _discard(self) -> None:
        self._inserted = {}
        self._patches = {}
        self._stock_deltas = {}
        self._deleted = set()
        self._staged_transactions = []

    def _release(self) -> None:
        for product_id in self._held:
            self.db._locks[product_id].release()
        self._held = set()


class MemoryDatabase:
    """In-process document store with the same session API as Database"""

    def __init__(self):
        self._products: Dict[str, Dict[str, Any]] = {}
        self._transactions: Dict[str, Dict[str, Any]] = {}
        self._keys: Dict[str, str] = {}
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._apply_lock = asyncio.Lock()
        self._connected = False
        self.logger = logging.getLogger(__name__)

    async def connect(self):
        self._connected = True
        self.logger.info("Using in-memory store")

    async def close(self):
        self._connected = False
        self.logger.info("In-memory store closed")

    def _store_transaction(self, doc: Dict[str, Any]) -> None:
        self._transactions[doc["transaction_id"]] = doc
        self._keys[doc["idempotency_key"]] = doc["transaction_id"]

    def _check_connected(self) -> None:
        if not self._connected:
            raise PersistenceUnavailable("In-memory store is not open")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[MemorySession]:
        self._check_connected()
        yield MemorySession(self)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[MemorySession]:
        self._check_connected()
        session = MemorySession(self, transactional=True)
        try:
            yield session
            await session._apply()
        finally:
            session._discard()
            session._release()
