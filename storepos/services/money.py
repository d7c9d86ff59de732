# storepos/services/money.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, NamedTuple, Tuple, Union
from ..config import Config
from ..exceptions import InvalidLineItem

CENT = Decimal("0.01")

Number = Union[Decimal, int, str]


class Totals(NamedTuple):
    """Subtotal, tax and total at full precision"""
    subtotal: Decimal
    tax: Decimal
    total: Decimal

    def rounded(self) -> "Totals":
        return Totals(*(round_money(value) for value in self))

    @property
    def amount_due(self) -> Decimal:
        """What the customer is asked to pay"""
        return round_money(self.total)


def round_money(amount: Decimal) -> Decimal:
    """Round to cents for presentation and tender comparison"""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # Go through repr so 2.99 stays 2.99 instead of its binary expansion
        return Decimal(repr(value))
    return Decimal(value)


def calculate_totals(lines: Iterable[Tuple[Number, int]],
                     tax_rate: Decimal = None) -> Totals:
    """Compute subtotal, tax and total from (unit price, quantity) pairs"""
    rate = Config.TAX_RATE if tax_rate is None else to_decimal(tax_rate)
    subtotal = Decimal(0)
    for price, quantity in lines:
        price = to_decimal(price)
        if price < 0:
            raise InvalidLineItem(f"Negative unit price: {price}")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise InvalidLineItem(f"Invalid quantity: {quantity!r}")
        subtotal += price * quantity

    tax = subtotal * rate
    return Totals(subtotal=subtotal, tax=tax, total=subtotal + tax)


def calculate_change(tendered: Decimal, amount_due: Decimal) -> Decimal:
    return max(Decimal(0), tendered - amount_due)
