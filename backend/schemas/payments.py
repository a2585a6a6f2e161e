from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class Payment(BaseModel):
    id: int
    amount: Decimal
    description: Optional[str] = None
    date: datetime
    bank_id: Optional[int] = None
    customer_id: Optional[int] = None
    company_id: Optional[int] = None
    transaction_id: Optional[int] = None
    created_by: Optional[str] = None

    class Config:
        from_attributes = True
