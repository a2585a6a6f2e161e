from sqlalchemy import Column, Integer, Numeric, DateTime

from database import Base
from models.audit_mixin import TimestampMixin


class TotalCapital(Base, TimestampMixin):
    """Singleton cash-on-hand record, addressed through TOTAL_CASH_ID."""
    __tablename__ = "total_capital"

    id = Column(Integer, primary_key=True, index=True)
    total_cash = Column(Numeric(14, 2), default=0, nullable=False)
    today_cash = Column(Numeric(14, 2), default=0, nullable=False)
    cash_last_updated_at = Column(DateTime(timezone=True), nullable=True)
