from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from models.expenses import ExpenseType


class ExpenseCreate(BaseModel):
    type: ExpenseType
    amount: Decimal = Field(..., gt=0)
    category: str
    description: Optional[str] = None
    date: Optional[datetime] = None
    bank_id: Optional[int] = None
    driver_id: Optional[int] = None

    @model_validator(mode='after')
    def bank_required_for_bank_expense(self):
        if self.type == ExpenseType.BANK and self.bank_id is None:
            raise ValueError("bank_id is required for BANK expenses")
        return self


class ExpenseUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0)
    description: Optional[str] = None


class Expense(BaseModel):
    id: int
    type: ExpenseType
    amount: Decimal
    category: str
    description: Optional[str] = None
    date: datetime
    bank_id: Optional[int] = None
    driver_id: Optional[int] = None
    created_by: Optional[str] = None

    class Config:
        from_attributes = True


class ExpenseSummary(BaseModel):
    cash_total: Decimal
    bank_total: Decimal
    total: Decimal
    count: int
