# storepos/models/user.py
from enum import Enum
from typing import Optional
from pydantic import BaseModel

class CashierRole(str, Enum):
    CASHIER = "cashier"
    MANAGER = "manager"

class Cashier(BaseModel):
    """Identity handed over by the authentication collaborator"""
    cashier_id: str
    role: CashierRole = CashierRole.CASHIER
    name: Optional[str] = None
