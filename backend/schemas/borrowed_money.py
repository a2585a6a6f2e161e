from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class BorrowedMoneyCreate(BaseModel):
    borrowed_money: Decimal = Field(..., ge=0)
    borrowed_from: str
    borrowed_on: date
    details: Optional[str] = None


class BorrowedMoneyUpdate(BaseModel):
    borrowed_money: Optional[Decimal] = Field(None, ge=0)
    borrowed_from: Optional[str] = None
    borrowed_on: Optional[date] = None
    details: Optional[str] = None


class BorrowedMoney(BorrowedMoneyCreate):
    id: int
    admin_id: int

    class Config:
        from_attributes = True
