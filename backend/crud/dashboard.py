"""
Read-only rollups over the transaction log and the balance store.

Nothing here mutates state, except the capital read which persists a
todayCash rollover the same way GET /capital does.
"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from crud import balances
from crud.stock import get_stock_summary
from models.banks import Bank
from models.companies import Company
from models.customers import Customer
from models.transactions import Transaction, TransactionType
from models.users import User, UserRole, UserStatus
from schemas.banks import Bank as BankSchema
from schemas.dashboard import (
    AdminDashboard, CashFlow, CashFlowEntry, CashPosition, DriverDashboard, ProfitReport, TradeTotals,
)
from utils import to_decimal
from utils.errors import EntityNotFound, ValidationFailed
from utils.timeutils import day_bounds, range_bounds, today

ZERO = Decimal("0")
CENT = Decimal("0.01")


def _sum(db: Session, column, *conditions) -> Decimal:
    return to_decimal(db.query(func.sum(column)).filter(*conditions).scalar())


def _in_window(start, end):
    return (
        Transaction.deleted_at.is_(None),
        Transaction.date >= start,
        Transaction.date < end,
    )


def _trade_totals(db: Session, txn_type: TransactionType, start, end) -> TradeTotals:
    conditions = _in_window(start, end) + (Transaction.type == txn_type,)
    quantity = _sum(db, Transaction.amount, *conditions)
    total = _sum(db, Transaction.total_amount, *conditions)
    avg_rate = (total / quantity).quantize(CENT, rounding=ROUND_HALF_UP) if quantity else ZERO
    return TradeTotals(quantity=quantity, total_amount=total, avg_rate=avg_rate)


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    if not whole:
        return ZERO
    return (part / whole * 100).quantize(CENT, rounding=ROUND_HALF_UP)


def get_cash_position(db: Session) -> CashPosition:
    capital = balances.get_total_capital(db)
    if balances.roll_over_today_cash(capital):
        db.commit()
        db.refresh(capital)
    return CashPosition(total_cash=capital.total_cash, today_cash=capital.today_cash)


def get_admin_dashboard(db: Session, start_date: date, end_date: date) -> AdminDashboard:
    start, end = range_bounds(start_date, end_date)
    window = _in_window(start, end)

    buy = _trade_totals(db, TransactionType.BUY, start, end)
    sell = _trade_totals(db, TransactionType.SELL, start, end)
    weight_loss = _sum(db, Transaction.amount, *window, Transaction.type == TransactionType.WEIGHT_LOSS)
    fuel_conditions = window + (Transaction.type == TransactionType.FUEL,)

    banks = db.query(Bank).order_by(Bank.id).all()
    return AdminDashboard(
        start_date=start_date,
        end_date=end_date,
        buy=buy,
        sell=sell,
        shop_buy_quantity=_sum(db, Transaction.amount, *window, Transaction.type == TransactionType.SHOP_BUY),
        fuel_count=db.query(func.count(Transaction.id)).filter(*fuel_conditions).scalar() or 0,
        fuel_litres=_sum(db, Transaction.amount, *fuel_conditions),
        weight_loss_quantity=weight_loss,
        weight_loss_percentage=percentage(weight_loss, buy.quantity),
        payment_received=_sum(
            db, Transaction.payment_cash + Transaction.payment_upi,
            *window, Transaction.type == TransactionType.SELL,
        ),
        today_profit=sell.total_amount - buy.total_amount,
        active_drivers=db.query(func.count(User.id)).filter(
            User.role == UserRole.DRIVER, User.status == UserStatus.ACTIVE
        ).scalar() or 0,
        total_available_stock=get_stock_summary(db).available,
        banks=[BankSchema.model_validate(b) for b in banks],
        total_bank_balance=sum((to_decimal(b.balance) for b in banks), ZERO),
        total_in_market=_sum(db, Customer.balance, Customer.deleted_at.is_(None)),
        total_company_due=_sum(db, Company.amount_due, Company.deleted_at.is_(None)),
        cash=get_cash_position(db),
    )


def get_driver_dashboard(db: Session, driver_id: int) -> DriverDashboard:
    driver = balances.get_driver(db, driver_id)
    start, end = day_bounds(today())
    window = _in_window(start, end) + (Transaction.driver_id == driver_id,)
    return DriverDashboard(
        driver_id=driver.id,
        today_buy_kg=get_stock_summary(db, driver_id=driver_id, start=start, end=end).stock_in,
        today_sell_kg=_sum(db, Transaction.amount, *window, Transaction.type == TransactionType.SELL),
        today_fuel_litres=_sum(db, Transaction.amount, *window, Transaction.type == TransactionType.FUEL),
        stock=get_stock_summary(db, driver_id=driver_id).available,
        cash_in_hand=driver.cash_in_hand,
        upi_in_hand=driver.upi_in_hand,
    )


def get_profit(db: Session, start_date: date, end_date: date) -> ProfitReport:
    start, end = range_bounds(start_date, end_date)
    window = _in_window(start, end)

    def total(txn_type):
        return _sum(db, Transaction.total_amount, *window, Transaction.type == txn_type)

    sell_total = total(TransactionType.SELL)
    buy_total = total(TransactionType.BUY)
    expense_total = total(TransactionType.EXPENSE)
    payment_total = total(TransactionType.PAYMENT)
    receive_payment_total = total(TransactionType.RECEIVE_PAYMENT)
    return ProfitReport(
        start_date=start_date,
        end_date=end_date,
        sell_total=sell_total,
        buy_total=buy_total,
        expense_total=expense_total,
        payment_total=payment_total,
        receive_payment_total=receive_payment_total,
        profit=sell_total - buy_total - expense_total + payment_total - receive_payment_total,
    )


# ---------------------------------------------------------------------------
# Cash flow
# ---------------------------------------------------------------------------

def _party_name(txn: Transaction) -> str:
    if txn.customer is not None:
        return txn.customer.name
    if txn.company is not None:
        return txn.company.name
    if txn.driver is not None:
        return txn.driver.name
    return "unknown"


def narrate(txn: Transaction, incoming: bool, to_bank_leg: bool = False) -> str:
    """Human readable line for one cash or bank movement."""
    t = txn.type
    if t == TransactionType.SELL:
        return f"Sale to {_party_name(txn) if (txn.customer or txn.company) else 'walk-in customer'}"
    if t == TransactionType.RECEIVE_PAYMENT:
        return f"Payment received from {_party_name(txn)}"
    if t == TransactionType.PAYMENT:
        return f"Payment done to {_party_name(txn)}"
    if t == TransactionType.ADVANCE_PAYMENT:
        return f"Advance from {_party_name(txn)}"
    if t == TransactionType.EXPENSE:
        prefix = f"{txn.driver.name} " if txn.driver is not None else ""
        return f"{prefix}{txn.sub_type} expense"
    if t == TransactionType.CASH_TO_BANK:
        return f"Deposited to {txn.bank.name}" if not incoming else "Cash deposit"
    if t == TransactionType.BANK_TO_BANK:
        return f"Transfer from {txn.bank.name}" if to_bank_leg else f"Transfer to {txn.to_bank.name}"
    if t == TransactionType.UPDATE_CASH:
        return "Cash adjustment"
    if t == TransactionType.UPDATE_BANK:
        return "Bank balance adjustment"
    return t.value


def get_cash_flow(db: Session, day: date, account: str) -> CashFlow:
    """Cash-in/cash-out of one day for the cash box ("cash") or one bank id.

    Built from the deltas stored on each row, so totals always match what
    the ledger engine applied to the balance.
    """
    start, end = day_bounds(day)
    rows = db.query(Transaction).filter(*_in_window(start, end)).order_by(Transaction.date, Transaction.id).all()

    movements = []
    account_name = None
    if account == "cash":
        account_name = "Cash"
        movements = [(txn, to_decimal(txn.cash_delta), False) for txn in rows]
    else:
        try:
            bank_id = int(account)
        except ValueError:
            raise ValidationFailed("account must be 'cash' or a bank id")
        bank = db.query(Bank).filter(Bank.id == bank_id).first()
        if bank is None:
            raise EntityNotFound(f"Bank {bank_id} not found", code="BANK_NOT_FOUND")
        account_name = bank.name
        for txn in rows:
            if txn.bank_id == bank_id:
                movements.append((txn, to_decimal(txn.bank_delta), False))
            if txn.to_bank_id == bank_id:
                movements.append((txn, to_decimal(txn.to_bank_delta), True))

    cash_in, cash_out = [], []
    for txn, delta, to_bank_leg in movements:
        if delta == ZERO:
            continue
        entry = CashFlowEntry(
            transaction_id=txn.id,
            type=txn.type,
            amount=abs(delta),
            narration=narrate(txn, incoming=delta > ZERO, to_bank_leg=to_bank_leg),
        )
        (cash_in if delta > ZERO else cash_out).append(entry)

    total_in = sum((e.amount for e in cash_in), ZERO)
    total_out = sum((e.amount for e in cash_out), ZERO)
    return CashFlow(
        date=day,
        account=account,
        account_name=account_name,
        cash_in=cash_in,
        cash_out=cash_out,
        total_in=total_in,
        total_out=total_out,
        net=total_in - total_out,
    )


def get_default_range(start_date: Optional[date], end_date: Optional[date]):
    start_date = start_date or today()
    end_date = end_date or start_date
    if end_date < start_date:
        raise ValidationFailed("end_date must not be before start_date")
    return start_date, end_date
