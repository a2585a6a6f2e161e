from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class CompanyBase(BaseModel):
    name: str
    mobile: Optional[str] = None
    address: Optional[str] = None


class CompanyCreate(CompanyBase):
    # Opening payable, only settable at creation
    amount_due: Decimal = Decimal("0")


class CompanyUpdate(BaseModel):
    name: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[str] = None


class Company(CompanyBase):
    id: int
    amount_due: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
