from sqlalchemy import Column, Integer, Text, Boolean, DateTime, ForeignKey

from database import Base
from utils.timeutils import now


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    message = Column(Text, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=now)
    is_read = Column(Boolean, default=False, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
