# storepos/models/transaction.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    DIGITAL = "digital"

class CheckoutState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    COMMITTING = "committing"
    COMPLETED = "completed"
    FAILED = "failed"

class PaymentSelection(BaseModel):
    """How the customer pays; tendered only applies to cash"""
    method: PaymentMethod
    tendered: Optional[Decimal] = Field(default=None, ge=0)

    @classmethod
    def cash(cls, tendered) -> "PaymentSelection":
        return cls(method=PaymentMethod.CASH, tendered=Decimal(str(tendered)))

    @classmethod
    def card(cls) -> "PaymentSelection":
        return cls(method=PaymentMethod.CARD)

    @classmethod
    def digital(cls) -> "PaymentSelection":
        return cls(method=PaymentMethod.DIGITAL)

class TransactionLine(BaseModel):
    """Snapshot of a cart line at commit time"""
    product_id: str
    name: str
    barcode: str
    category: str
    unit_price: Decimal
    quantity: int

    model_config = ConfigDict(frozen=True)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

class Transaction(BaseModel):
    """Completed sale; never mutated once created"""
    transaction_id: str
    idempotency_key: str
    items: Tuple[TransactionLine, ...]
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    payment_method: PaymentMethod
    cashier_id: str
    customer_paid: Decimal
    change: Decimal
    timestamp: datetime

    model_config = ConfigDict(frozen=True)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.items)

    def to_document(self) -> Dict[str, Any]:
        """Plain values as written to the store"""
        doc = self.model_dump()
        doc["items"] = [line.model_dump() for line in self.items]
        doc["payment_method"] = self.payment_method.value
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Transaction":
        return cls(**doc)
