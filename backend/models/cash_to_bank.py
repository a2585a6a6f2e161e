from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from database import Base
from models.audit_mixin import AuditMixin
from utils.timeutils import now


class CashToBank(Base, AuditMixin):
    __tablename__ = "cash_to_bank"

    id = Column(Integer, primary_key=True, index=True)
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=False)
    bank_name = Column(String, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=now)

    bank = relationship("Bank")
