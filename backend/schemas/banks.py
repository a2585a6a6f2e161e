from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class BankCreate(BaseModel):
    name: str
    label: Optional[str] = None
    balance: Decimal = Field(Decimal("0"), ge=0)


class BankUpdate(BaseModel):
    name: Optional[str] = None
    label: Optional[str] = None


class Bank(BaseModel):
    id: int
    name: str
    label: Optional[str] = None
    balance: Decimal

    class Config:
        from_attributes = True


class BankSummary(BaseModel):
    banks: List[Bank]
    total_bank_balance: Decimal
