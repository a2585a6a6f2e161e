"""
Stock projection.

A driver's stock is never stored. It is derived from the transaction log as
stock_in - stock_out - weight_loss over every live (not deleted) row of that
driver. The same all-time window feeds the pre-sale check and every
displayed stock figure.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
import logging
from typing import Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from crud import app_config as crud_app_config
from models.transactions import Transaction, TransactionType
from utils import to_decimal
from utils.errors import InsufficientStock

logger = logging.getLogger("stock")

DEFAULT_STOCK_TOLERANCE = Decimal("0.1")

STOCK_IN = or_(
    Transaction.type.in_([TransactionType.BUY, TransactionType.SHOP_BUY]),
    and_(Transaction.type == TransactionType.PALTI, Transaction.sub_type == "ADD"),
)
STOCK_OUT = or_(
    Transaction.type == TransactionType.SELL,
    and_(Transaction.type == TransactionType.PALTI, Transaction.sub_type == "SUBTRACT"),
)
WEIGHT_LOSS = Transaction.type == TransactionType.WEIGHT_LOSS


@dataclass
class StockSummary:
    stock_in: Decimal
    stock_out: Decimal
    weight_loss: Decimal

    @property
    def available(self) -> Decimal:
        return self.stock_in - self.stock_out - self.weight_loss


def _sum_amount(db: Session, condition, driver_id, start, end, exclude_id) -> Decimal:
    query = db.query(func.sum(Transaction.amount)).filter(
        condition,
        Transaction.deleted_at.is_(None),
    )
    if driver_id is not None:
        query = query.filter(Transaction.driver_id == driver_id)
    if start is not None:
        query = query.filter(Transaction.date >= start)
    if end is not None:
        query = query.filter(Transaction.date < end)
    if exclude_id is not None:
        query = query.filter(Transaction.id != exclude_id)
    return to_decimal(query.scalar())


def get_stock_summary(
    db: Session,
    driver_id: Optional[int] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    exclude_id: Optional[int] = None,
) -> StockSummary:
    """Sum stock movements. `driver_id=None` covers every driver."""
    return StockSummary(
        stock_in=_sum_amount(db, STOCK_IN, driver_id, start, end, exclude_id),
        stock_out=_sum_amount(db, STOCK_OUT, driver_id, start, end, exclude_id),
        weight_loss=_sum_amount(db, WEIGHT_LOSS, driver_id, start, end, exclude_id),
    )


def get_available_stock(db: Session, driver_id: int, exclude_id: Optional[int] = None) -> Decimal:
    return get_stock_summary(db, driver_id=driver_id, exclude_id=exclude_id).available


def signed_quantity(txn: Transaction) -> Decimal:
    """Contribution of one row to its driver's stock."""
    amount = to_decimal(txn.amount)
    if txn.type in (TransactionType.BUY, TransactionType.SHOP_BUY):
        return amount
    if txn.type == TransactionType.PALTI:
        return amount if txn.sub_type == "ADD" else -amount
    if txn.type in (TransactionType.SELL, TransactionType.WEIGHT_LOSS):
        return -amount
    return Decimal("0")


def get_stock_tolerance(db: Session) -> Decimal:
    return crud_app_config.get_decimal_setting(db, "STOCK_TOLERANCE", DEFAULT_STOCK_TOLERANCE)


def ensure_stock_after_change(db: Session, txn: Transaction, old_quantity: Decimal, new_quantity: Decimal):
    """Reject a create/edit/delete that would leave the driver's stock below zero.

    `old_quantity` and `new_quantity` are the row's signed contributions
    before and after the change (0 for a row that does not exist yet or is
    being removed). Changes that do not lower stock are always allowed.
    """
    if txn.driver_id is None or new_quantity >= old_quantity:
        return
    available = get_available_stock(db, txn.driver_id, exclude_id=txn.id)
    tolerance = get_stock_tolerance(db)
    if available + new_quantity < -tolerance:
        logger.warning(
            f"Stock check failed for driver {txn.driver_id}: available {available}, "
            f"change {new_quantity} on {txn.type.value}"
        )
        raise InsufficientStock(
            f"Insufficient stock: available {available} KG, requested {-(new_quantity)} KG"
            if new_quantity < 0 else
            f"Insufficient stock: removing this entry would leave {available + new_quantity} KG"
        )
