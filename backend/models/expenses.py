import enum

from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship

from database import Base
from models.audit_mixin import AuditMixin
from utils.timeutils import now


class ExpenseType(enum.Enum):
    CASH = "CASH"
    BANK = "BANK"


class Expense(Base, AuditMixin):
    __tablename__ = 'expenses'

    id = Column(Integer, primary_key=True, index=True)
    type = Column(Enum(ExpenseType), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=now)
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=True)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    bank = relationship("Bank")
    driver = relationship("User")
