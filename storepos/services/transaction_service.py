# storepos/services/transaction_service.py
from datetime import datetime
from typing import List, Optional
from ..models.transaction import Transaction

class TransactionService:
    """Read-only access to committed sales"""

    def __init__(self, db):
        self.db = db

    async def list_transactions(self, limit: Optional[int] = None,
                                since: Optional[datetime] = None) -> List[Transaction]:
        """Committed transactions, newest first"""
        async with self.db.session() as session:
            docs = await session.list_transactions(limit=limit, since=since)
        return [Transaction.from_document(doc) for doc in docs]

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        async with self.db.session() as session:
            doc = await session.get_transaction(transaction_id)
        return Transaction.from_document(doc) if doc else None

    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[Transaction]:
        async with self.db.session() as session:
            doc = await session.get_transaction_by_key(idempotency_key)
        return Transaction.from_document(doc) if doc else None
