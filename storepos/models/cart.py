# storepos/models/cart.py
from decimal import Decimal
from pydantic import BaseModel, Field
from .product import Product

class CartLine(BaseModel):
    """One product and the quantity requested for it"""
    product: Product
    quantity: int = Field(ge=1)

    @property
    def product_id(self) -> str:
        return self.product.product_id

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity
