from sqlalchemy import Column, Integer, String
from database import Base
from models.audit_mixin import TimestampMixin


class AppConfig(Base, TimestampMixin):
    __tablename__ = "app_config"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    value = Column(String(255), nullable=False)
