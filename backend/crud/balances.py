"""
Balance mutations for the entity balance store.

Every function here locks the row it changes (SELECT ... FOR UPDATE), checks
the guard that applies to it and mutates it in the caller's session. Nothing
is committed: the ledger engine runs these inside one atomic unit.
"""
from decimal import Decimal
import logging
import os

from sqlalchemy.orm import Session

from models.banks import Bank
from models.companies import Company
from models.customers import Customer
from models.total_capital import TotalCapital
from models.users import User
from utils import to_decimal
from utils.errors import ConfigurationError, EntityNotFound, InsufficientFunds
from utils.timeutils import local_date, now, today

logger = logging.getLogger("balances")

ZERO = Decimal("0")


def get_total_cash_id() -> int:
    raw = os.getenv("TOTAL_CASH_ID")
    if not raw:
        raise ConfigurationError("TOTAL_CASH_ID is not configured on the server")
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"TOTAL_CASH_ID must be an integer id, got '{raw}'")


def get_total_capital(db: Session, lock: bool = False) -> TotalCapital:
    query = db.query(TotalCapital).filter(TotalCapital.id == get_total_cash_id())
    if lock:
        query = query.with_for_update()
    capital = query.first()
    if capital is None:
        raise EntityNotFound("Total capital record not found", code="TOTAL_CAPITAL_NOT_FOUND")
    return capital


def has_rolled_over(capital: TotalCapital) -> bool:
    return capital.cash_last_updated_at is None or local_date(capital.cash_last_updated_at) < today()


def apply_cash_delta(db: Session, delta: Decimal) -> TotalCapital:
    """Move totalCash by `delta` and keep todayCash in step.

    todayCash restarts from zero on the first movement of a new day and is
    floored at zero. totalCash is never allowed below zero.
    """
    delta = to_decimal(delta)
    if delta == ZERO:
        return None

    capital = get_total_capital(db, lock=True)
    total_cash = to_decimal(capital.total_cash)
    if total_cash + delta < ZERO:
        raise InsufficientFunds(
            f"Total cash is not enough: available {total_cash}, required {-delta}",
            code="TOTAL_CASH_INSUFFICIENT",
        )

    base = ZERO if has_rolled_over(capital) else to_decimal(capital.today_cash)
    capital.total_cash = total_cash + delta
    capital.today_cash = max(base + delta, ZERO)
    capital.cash_last_updated_at = now()
    logger.info(f"Cash moved by {delta}, total cash now {capital.total_cash}")
    return capital


def get_bank(db: Session, bank_id: int, lock: bool = False) -> Bank:
    query = db.query(Bank).filter(Bank.id == bank_id)
    if lock:
        query = query.with_for_update()
    bank = query.first()
    if bank is None:
        raise EntityNotFound(f"Bank {bank_id} not found", code="BANK_NOT_FOUND")
    return bank


def apply_bank_delta(db: Session, bank_id: int, delta: Decimal) -> Bank:
    bank = get_bank(db, bank_id, lock=True)
    delta = to_decimal(delta)
    if delta == ZERO:
        return bank
    balance = to_decimal(bank.balance)
    if balance + delta < ZERO:
        raise InsufficientFunds(
            f"Insufficient funds in bank '{bank.name}': available {balance}, required {-delta}",
            code="BANK_INSUFFICIENT_FUNDS",
        )
    bank.balance = balance + delta
    return bank


def get_customer(db: Session, customer_id: int, lock: bool = False) -> Customer:
    query = db.query(Customer).filter(Customer.id == customer_id)
    if lock:
        query = query.with_for_update()
    customer = query.first()
    if customer is None:
        raise EntityNotFound(f"Customer {customer_id} not found", code="CUSTOMER_NOT_FOUND")
    return customer


def apply_customer_delta(db: Session, customer_id: int, delta: Decimal) -> Customer:
    # Customer balance may go negative: that is an advance held for the customer
    customer = get_customer(db, customer_id, lock=True)
    customer.balance = to_decimal(customer.balance) + to_decimal(delta)
    return customer


def get_company(db: Session, company_id: int, lock: bool = False) -> Company:
    query = db.query(Company).filter(Company.id == company_id)
    if lock:
        query = query.with_for_update()
    company = query.first()
    if company is None:
        raise EntityNotFound(f"Company {company_id} not found", code="COMPANY_NOT_FOUND")
    return company


def apply_company_due_delta(db: Session, company_id: int, due_delta: Decimal) -> Company:
    """Change Company.amount_due (payable terms) by `due_delta`."""
    company = get_company(db, company_id, lock=True)
    company.amount_due = to_decimal(company.amount_due) + to_decimal(due_delta)
    return company


def get_driver(db: Session, driver_id: int, lock: bool = False) -> User:
    query = db.query(User).filter(User.id == driver_id)
    if lock:
        query = query.with_for_update()
    driver = query.first()
    if driver is None:
        raise EntityNotFound(f"Driver {driver_id} not found", code="DRIVER_NOT_FOUND")
    return driver


def apply_driver_wallet_delta(db: Session, driver_id: int, cash_delta: Decimal, upi_delta: Decimal) -> User:
    driver = get_driver(db, driver_id, lock=True)
    driver.cash_in_hand = to_decimal(driver.cash_in_hand) + to_decimal(cash_delta)
    driver.upi_in_hand = to_decimal(driver.upi_in_hand) + to_decimal(upi_delta)
    return driver


def roll_over_today_cash(capital: TotalCapital) -> bool:
    """Zero todayCash when its last movement was on an earlier day.

    Returns True when the row changed; the caller commits.
    """
    if capital.cash_last_updated_at is None or not has_rolled_over(capital):
        return False
    if to_decimal(capital.today_cash) == ZERO:
        return False
    capital.today_cash = ZERO
    return True
