# storepos/services/cart_service.py
from decimal import Decimal
from typing import Dict, List, Optional
from ..config import Config
from ..exceptions import InvalidQuantity
from ..models.cart import CartLine
from ..models.product import Product
from .money import Totals, calculate_totals


def _is_count(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class CartService:
    """Cart for one terminal session.

    Lines are kept in insertion order, at most one per product. Totals
    are recomputed on every call so they always match the latest change.
    """

    def __init__(self, tax_rate: Decimal = None):
        self.tax_rate = Config.TAX_RATE if tax_rate is None else tax_rate
        self._lines: Dict[str, CartLine] = {}

    def add_item(self, product: Product, quantity: int = 1) -> CartLine:
        """Add a product, merging into its existing line"""
        if not _is_count(quantity) or quantity <= 0:
            raise InvalidQuantity(f"Quantity must be a positive integer, got {quantity!r}")

        line = self._lines.get(product.product_id)
        if line is None:
            line = CartLine(product=product, quantity=quantity)
            self._lines[product.product_id] = line
        else:
            line.quantity += quantity
        return line

    def set_quantity(self, product_id: str, quantity: int) -> None:
        """Set a line's quantity; zero or less drops the line"""
        if not _is_count(quantity):
            raise InvalidQuantity(f"Quantity must be an integer, got {quantity!r}")

        line = self._lines.get(product_id)
        if line is None:
            return
        if quantity <= 0:
            del self._lines[product_id]
        else:
            line.quantity = quantity

    def remove_item(self, product_id: str) -> None:
        self._lines.pop(product_id, None)

    def clear(self) -> None:
        self._lines = {}

    def get_line(self, product_id: str) -> Optional[CartLine]:
        return self._lines.get(product_id)

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def is_empty(self) -> bool:
        return not self._lines

    def totals(self) -> Totals:
        return calculate_totals(
            ((line.product.price, line.quantity) for line in self._lines.values()),
            self.tax_rate,
        )

    def total(self) -> Decimal:
        return self.totals().total

    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def fingerprint(self) -> tuple:
        """Identity of the cart contents, used to tell retries from new sales"""
        return tuple(
            (line.product_id, line.quantity, line.product.price)
            for line in self._lines.values()
        )
