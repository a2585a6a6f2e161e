from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from crud import app_config as crud_app_config
from crud import balances
from crud.dashboard import percentage
from crud.stock import get_stock_summary
from models.transactions import Transaction, TransactionType
from schemas.reports import (
    CompanyBuyRow, CustomerSaleRow, DriverDailyReport, FuelRow, LossTotals, PaymentTotals,
)
from utils import to_decimal
from utils.timeutils import day_bounds, now

ZERO = Decimal("0")


def get_driver_daily_report(db: Session, driver_id: int, day: date) -> DriverDailyReport:
    """Everything one driver did on one day, in the shape of the paper day-sheet."""
    driver = balances.get_driver(db, driver_id)
    start, end = day_bounds(day)
    rows = db.query(Transaction).filter(
        Transaction.driver_id == driver_id,
        Transaction.date >= start,
        Transaction.date < end,
    ).order_by(Transaction.date, Transaction.id).all()

    sales = [t for t in rows if t.type == TransactionType.SELL]
    buys = [t for t in rows if t.type == TransactionType.BUY]
    shop_buys = [t for t in rows if t.type == TransactionType.SHOP_BUY]
    losses = [t for t in rows if t.type == TransactionType.WEIGHT_LOSS]

    customer_rows = []
    for t in sales:
        name = t.customer.name if t.customer else (t.company.name if t.company else "Walk-in")
        cash, upi, total = to_decimal(t.payment_cash), to_decimal(t.payment_upi), to_decimal(t.total_amount)
        customer_rows.append(CustomerSaleRow(
            transaction_id=t.id,
            name=name,
            quantity_kg=t.amount,
            rate=to_decimal(t.rate),
            total_amount=total,
            cash=cash,
            upi=upi,
            due_change=total - cash - upi,
        ))

    total_buy_kg = sum((to_decimal(t.amount) for t in buys), ZERO)
    weight_loss_kg = sum((to_decimal(t.amount) for t in losses), ZERO)
    cash_total = sum((to_decimal(t.payment_cash) for t in sales), ZERO)
    upi_total = sum((to_decimal(t.payment_upi) for t in sales), ZERO)

    return DriverDailyReport(
        driver_id=driver.id,
        driver_name=driver.name,
        date=day,
        opening_stock=get_stock_summary(db, driver_id=driver_id, end=start).available,
        closing_stock=get_stock_summary(db, driver_id=driver_id, end=end).available,
        total_buy_kg=total_buy_kg,
        total_buy_amount=sum((to_decimal(t.total_amount) for t in buys), ZERO),
        total_shop_buy_kg=sum((to_decimal(t.amount) for t in shop_buys), ZERO),
        total_shop_buy_amount=sum((to_decimal(t.total_amount) for t in shop_buys), ZERO),
        total_sell_kg=sum((to_decimal(t.amount) for t in sales), ZERO),
        total_sell_amount=sum((to_decimal(t.total_amount) for t in sales), ZERO),
        rows=customer_rows,
        companies=[
            CompanyBuyRow(
                transaction_id=t.id,
                company_name=t.company.name if t.company else "",
                quantity_kg=t.amount,
                rate=to_decimal(t.rate),
                total_amount=t.total_amount,
            )
            for t in buys
        ],
        fuel=[
            FuelRow(
                transaction_id=t.id,
                litres=t.amount,
                total_amount=t.total_amount,
                vehicle_id=t.vehicle_id,
                location=t.location,
            )
            for t in rows if t.type == TransactionType.FUEL
        ],
        payments=PaymentTotals(total_collection=cash_total + upi_total, cash=cash_total, upi=upi_total),
        losses=LossTotals(
            weight_loss_kg=weight_loss_kg,
            waste_kg=sum((to_decimal(t.amount) for t in losses if t.sub_type == "WASTE"), ZERO),
            mortality_kg=sum((to_decimal(t.amount) for t in losses if t.sub_type == "MORTALITY"), ZERO),
            percentage=percentage(weight_loss_kg, total_buy_kg),
        ),
    )


def get_history(db: Session, days: int, customer_id: int = None, company_id: int = None):
    """Transactions of one customer or company over the last `days` days, newest first.

    The window never reaches back past the `system_start_date` setting.
    """
    since = now() - timedelta(days=days)
    start_date = crud_app_config.get_date_setting(db, "system_start_date")
    if start_date is not None:
        since = max(since, day_bounds(start_date)[0])
    query = db.query(Transaction).filter(Transaction.date >= since)
    if customer_id is not None:
        query = query.filter(Transaction.customer_id == customer_id)
    if company_id is not None:
        query = query.filter(Transaction.company_id == company_id)
    return query.order_by(Transaction.date.desc(), Transaction.id.desc()).all()
