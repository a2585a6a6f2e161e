import enum

from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship

from database import Base
from models.audit_mixin import AuditMixin
from utils.timeutils import now


class TransactionType(enum.Enum):
    BUY = "BUY"
    SELL = "SELL"
    SHOP_BUY = "SHOP_BUY"
    PALTI = "PALTI"
    WEIGHT_LOSS = "WEIGHT_LOSS"
    FUEL = "FUEL"
    EXPENSE = "EXPENSE"
    PAYMENT = "PAYMENT"
    RECEIVE_PAYMENT = "RECEIVE_PAYMENT"
    DEBIT_NOTE = "DEBIT_NOTE"
    CREDIT_NOTE = "CREDIT_NOTE"
    CASH_TO_BANK = "CASH_TO_BANK"
    BANK_TO_BANK = "BANK_TO_BANK"
    UPDATE_BANK = "UPDATE_BANK"
    UPDATE_CASH = "UPDATE_CASH"
    ADVANCE_PAYMENT = "ADVANCE_PAYMENT"


class Unit(enum.Enum):
    KG = "KG"
    LITRE = "LITRE"
    INR = "INR"


class Transaction(Base, AuditMixin):
    """One business event.

    The *_delta columns hold the balance changes the ledger engine actually
    applied when the row was written or last edited. Deleting the row applies
    their negation, editing applies the difference to a freshly computed set.
    """
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(Enum(TransactionType), nullable=False, index=True)
    sub_type = Column(String, nullable=True)
    unit = Column(Enum(Unit), nullable=True)
    amount = Column(Numeric(12, 3), default=0, nullable=False)
    rate = Column(Numeric(14, 2), nullable=True)
    total_amount = Column(Numeric(14, 2), default=0, nullable=False)
    payment_cash = Column(Numeric(14, 2), default=0, nullable=False)
    payment_upi = Column(Numeric(14, 2), default=0, nullable=False)
    details = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    location = Column(String, nullable=True)
    gps_lat = Column(Numeric(10, 6), nullable=True)
    gps_lng = Column(Numeric(10, 6), nullable=True)
    date = Column(DateTime(timezone=True), default=now, nullable=False, index=True)

    driver_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    transfer_driver_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True, index=True)
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=True)
    to_bank_id = Column(Integer, ForeignKey("banks.id"), nullable=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True)
    expense_id = Column(Integer, ForeignKey("expenses.id"), nullable=True)
    cash_to_bank_id = Column(Integer, ForeignKey("cash_to_bank.id"), nullable=True)

    cash_delta = Column(Numeric(14, 2), default=0, nullable=False)
    bank_delta = Column(Numeric(14, 2), default=0, nullable=False)
    to_bank_delta = Column(Numeric(14, 2), default=0, nullable=False)
    customer_delta = Column(Numeric(14, 2), default=0, nullable=False)
    # In Company.amount_due terms (payable)
    company_delta = Column(Numeric(14, 2), default=0, nullable=False)
    driver_cash_delta = Column(Numeric(14, 2), default=0, nullable=False)
    driver_upi_delta = Column(Numeric(14, 2), default=0, nullable=False)

    driver = relationship("User", foreign_keys=[driver_id])
    transfer_driver = relationship("User", foreign_keys=[transfer_driver_id])
    customer = relationship("Customer")
    company = relationship("Company")
    bank = relationship("Bank", foreign_keys=[bank_id])
    to_bank = relationship("Bank", foreign_keys=[to_bank_id])
    vehicle = relationship("Vehicle")
    expense = relationship("Expense", foreign_keys=[expense_id])
    cash_to_bank = relationship("CashToBank", foreign_keys=[cash_to_bank_id])
