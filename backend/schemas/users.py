from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from models.users import UserRole, UserStatus


def _check_password(v):
    if v is not None and len(v) < 4:
        raise ValueError("Password must be at least 4 characters long")
    return v


class RegisterRequest(BaseModel):
    name: str
    mobile: str
    password: str
    role: UserRole = UserRole.DRIVER

    @field_validator('password')
    def password_min_length(cls, v):
        return _check_password(v)


class LoginRequest(BaseModel):
    mobile: str
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str


class Principal(BaseModel):
    user_id: int
    role: str
    status: str
    name: str


class DriverCreate(BaseModel):
    name: str
    mobile: str
    password: str
    base_salary: Decimal = Field(Decimal("0"), ge=0)
    vehicle_id: Optional[int] = None

    @field_validator('password')
    def password_min_length(cls, v):
        return _check_password(v)


class DriverUpdate(BaseModel):
    name: Optional[str] = None
    mobile: Optional[str] = None
    password: Optional[str] = None
    base_salary: Optional[Decimal] = Field(None, ge=0)
    vehicle_id: Optional[int] = None
    status: Optional[UserStatus] = None

    @field_validator('password')
    def password_min_length(cls, v):
        return _check_password(v)


class Driver(BaseModel):
    id: int
    name: str
    mobile: str
    role: UserRole
    status: UserStatus
    base_salary: Decimal
    cash_in_hand: Decimal
    upi_in_hand: Decimal
    vehicle_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
