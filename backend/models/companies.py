from sqlalchemy import Column, Integer, String, Text, Numeric

from database import Base
from models.audit_mixin import AuditMixin


class Company(Base, AuditMixin):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    mobile = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    # Payable: positive means the business owes the company.
    # The ledger engine works in receivable terms and negates when writing here.
    amount_due = Column(Numeric(14, 2), default=0, nullable=False)
