from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class CustomerSaleRow(BaseModel):
    transaction_id: int
    name: str
    quantity_kg: Decimal
    rate: Decimal
    total_amount: Decimal
    cash: Decimal
    upi: Decimal
    due_change: Decimal


class CompanyBuyRow(BaseModel):
    transaction_id: int
    company_name: str
    quantity_kg: Decimal
    rate: Decimal
    total_amount: Decimal


class FuelRow(BaseModel):
    transaction_id: int
    litres: Decimal
    total_amount: Decimal
    vehicle_id: Optional[int] = None
    location: Optional[str] = None


class PaymentTotals(BaseModel):
    total_collection: Decimal
    cash: Decimal
    upi: Decimal


class LossTotals(BaseModel):
    weight_loss_kg: Decimal
    waste_kg: Decimal
    mortality_kg: Decimal
    percentage: Decimal


class DriverDailyReport(BaseModel):
    driver_id: int
    driver_name: str
    date: date
    opening_stock: Decimal
    closing_stock: Decimal
    total_buy_kg: Decimal
    total_buy_amount: Decimal
    total_shop_buy_kg: Decimal
    total_shop_buy_amount: Decimal
    total_sell_kg: Decimal
    total_sell_amount: Decimal
    rows: List[CustomerSaleRow]
    companies: List[CompanyBuyRow]
    fuel: List[FuelRow]
    payments: PaymentTotals
    losses: LossTotals
