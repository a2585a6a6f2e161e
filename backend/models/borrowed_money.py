from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey

from database import Base
from models.audit_mixin import TimestampMixin


class BorrowedMoney(Base, TimestampMixin):
    __tablename__ = "borrowed_money"

    id = Column(Integer, primary_key=True, index=True)
    admin_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    borrowed_money = Column(Numeric(14, 2), nullable=False)
    borrowed_from = Column(String, nullable=False)
    borrowed_on = Column(Date, nullable=False)
    details = Column(Text, nullable=True)
