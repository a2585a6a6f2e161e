from sqlalchemy import Column, Integer, String, Numeric
from sqlalchemy.orm import relationship

from database import Base
from models.audit_mixin import TimestampMixin


class Vehicle(Base, TimestampMixin):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    registration = Column(String, unique=True, nullable=False, index=True)
    current_km = Column(Numeric(12, 1), nullable=True)
    status = Column(String, default="ACTIVE", nullable=False)
    image_url = Column(String(500), nullable=True)

    drivers = relationship("User", back_populates="vehicle")
