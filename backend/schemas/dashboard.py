from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from models.transactions import TransactionType
from schemas.banks import Bank


class TradeTotals(BaseModel):
    quantity: Decimal
    total_amount: Decimal
    avg_rate: Decimal


class CashPosition(BaseModel):
    total_cash: Decimal
    today_cash: Decimal


class AdminDashboard(BaseModel):
    start_date: date
    end_date: date
    buy: TradeTotals
    sell: TradeTotals
    shop_buy_quantity: Decimal
    fuel_count: int
    fuel_litres: Decimal
    weight_loss_quantity: Decimal
    weight_loss_percentage: Decimal
    payment_received: Decimal
    today_profit: Decimal
    active_drivers: int
    total_available_stock: Decimal
    banks: List[Bank]
    total_bank_balance: Decimal
    total_in_market: Decimal
    total_company_due: Decimal
    cash: CashPosition


class DriverDashboard(BaseModel):
    driver_id: int
    today_buy_kg: Decimal
    today_sell_kg: Decimal
    today_fuel_litres: Decimal
    stock: Decimal
    cash_in_hand: Decimal
    upi_in_hand: Decimal


class ProfitReport(BaseModel):
    start_date: date
    end_date: date
    sell_total: Decimal
    buy_total: Decimal
    expense_total: Decimal
    payment_total: Decimal
    receive_payment_total: Decimal
    profit: Decimal


class CashFlowEntry(BaseModel):
    transaction_id: int
    type: TransactionType
    amount: Decimal
    narration: str


class CashFlow(BaseModel):
    date: date
    account: str
    account_name: Optional[str] = None
    cash_in: List[CashFlowEntry]
    cash_out: List[CashFlowEntry]
    total_in: Decimal
    total_out: Decimal
    net: Decimal
