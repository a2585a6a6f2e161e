from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class CustomerBase(BaseModel):
    name: str
    mobile: Optional[str] = None
    address: Optional[str] = None


class CustomerCreate(CustomerBase):
    # Opening balance, only settable at creation
    balance: Decimal = Decimal("0")


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[str] = None


class Customer(CustomerBase):
    id: int
    balance: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
