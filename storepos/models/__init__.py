from .product import Product
from .cart import CartLine
from .user import Cashier, CashierRole
from .transaction import (
    CheckoutState,
    PaymentMethod,
    PaymentSelection,
    Transaction,
    TransactionLine,
)

__all__ = [
    'Product',
    'CartLine',
    'Cashier',
    'CashierRole',
    'CheckoutState',
    'PaymentMethod',
    'PaymentSelection',
    'Transaction',
    'TransactionLine',
]
