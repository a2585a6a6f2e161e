from sqlalchemy import Column, Integer, String, Text, Numeric

from database import Base
from models.audit_mixin import AuditMixin


class Customer(Base, AuditMixin):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    mobile = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    # Receivable: positive means the customer owes the business, negative is an advance
    balance = Column(Numeric(14, 2), default=0, nullable=False)
