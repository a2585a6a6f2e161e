from sqlalchemy import Column, Integer, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from database import Base
from models.audit_mixin import AuditMixin
from utils.timeutils import now


class Payment(Base, AuditMixin):
    """Money paid out to a customer or a company, mirrored by a PAYMENT transaction."""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(DateTime(timezone=True), nullable=False, default=now)
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)

    bank = relationship("Bank")
    customer = relationship("Customer")
    company = relationship("Company")
    transaction = relationship("Transaction")
