from sqlalchemy import Column, Integer, String, Numeric

from database import Base
from models.audit_mixin import AuditMixin


class Bank(Base, AuditMixin):
    __tablename__ = "banks"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    label = Column(String, nullable=True)
    balance = Column(Numeric(14, 2), default=0, nullable=False)
