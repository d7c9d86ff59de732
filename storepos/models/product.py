# storepos/models/product.py
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

class TimeStampedModel(BaseModel):
    """Base model with timestamp fields"""
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class Product(TimeStampedModel):
    """Catalog entry as read from the store"""
    product_id: str
    name: str
    price: Decimal = Field(ge=0)
    category: str
    barcode: str
    # May read below zero when overselling is allowed
    stock: int = 0
    is_active: bool = True
    description: Optional[str] = None
    image_url: Optional[str] = None

    # Absent means "not tracked", never zero
    supplier: Optional[str] = None
    cost_price: Optional[Decimal] = Field(default=None, ge=0)
    min_stock: Optional[int] = Field(default=None, ge=0)

    def is_low_stock(self, default_threshold: int) -> bool:
        threshold = self.min_stock if self.min_stock is not None else default_threshold
        return self.stock <= threshold
