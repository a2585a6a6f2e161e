from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class TotalCapitalCreate(BaseModel):
    total_cash: Decimal = Field(Decimal("0"), ge=0)


class TotalCapital(BaseModel):
    id: int
    total_cash: Decimal
    today_cash: Decimal
    cash_last_updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
