# storepos/exceptions.py
from decimal import Decimal


class StorePosError(Exception):
    """Base class for every error raised by the checkout engine"""


class InvalidInput(StorePosError):
    """Rejected locally; never reaches persistence"""


class InvalidQuantity(InvalidInput):
    pass


class InvalidLineItem(InvalidInput):
    pass


class EmptyCart(InvalidInput):
    pass


class InvalidPayment(InvalidInput):
    pass


class InsufficientStock(InvalidInput):
    """Requested quantity exceeds the stock seen when the product was added"""

    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Product {product_id}: requested {requested}, only {available} in stock"
        )


class InsufficientPayment(StorePosError):
    """Cash tendered is below the amount due"""

    def __init__(self, amount_due: Decimal, tendered: Decimal):
        self.amount_due = amount_due
        self.tendered = tendered
        super().__init__(f"Tendered {tendered} is less than amount due {amount_due}")


class CommitFailed(StorePosError):
    """The atomic sale commit was rejected; nothing was applied"""


class ProductMissing(CommitFailed):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product {product_id} no longer exists")


class StockExhausted(CommitFailed):
    def __init__(self, product_id: str, current: int, requested: int):
        self.product_id = product_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Product {product_id}: cannot take {requested}, stock is {current}"
        )


class PersistenceUnavailable(StorePosError):
    """No connection to the store could be obtained"""


class DuplicateCommit(StorePosError):
    """A transaction with this idempotency key is already recorded"""

    def __init__(self, idempotency_key: str):
        self.idempotency_key = idempotency_key
        super().__init__(f"Checkout {idempotency_key} already committed")


class InvalidStateTransition(StorePosError):
    pass
