import enum

from sqlalchemy import Column, Integer, String, Numeric, Enum, ForeignKey
from sqlalchemy.orm import relationship

from database import Base
from models.audit_mixin import TimestampMixin


class UserRole(enum.Enum):
    DRIVER = "DRIVER"
    ADMIN = "ADMIN"


class UserStatus(enum.Enum):
    ACTIVE = "ACTIVE"
    BLOCKED = "BLOCKED"


class User(Base, TimestampMixin):
    """A login. Drivers additionally carry a cash/UPI wallet and a vehicle."""
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    mobile = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.DRIVER, nullable=False)
    status = Column(Enum(UserStatus), default=UserStatus.ACTIVE, nullable=False)
    base_salary = Column(Numeric(14, 2), default=0, nullable=False)
    cash_in_hand = Column(Numeric(14, 2), default=0, nullable=False)
    upi_in_hand = Column(Numeric(14, 2), default=0, nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True)

    vehicle = relationship("Vehicle", back_populates="drivers")

    def __repr__(self):
        return f"<User(id={self.id}, mobile={self.mobile}, role={self.role}, status={self.status})>"
