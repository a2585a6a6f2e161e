from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator


class VehicleCreate(BaseModel):
    registration: str
    current_km: Optional[Decimal] = None
    status: str = "ACTIVE"

    @field_validator('registration')
    def registration_required(cls, v):
        v = v.strip().upper()
        if not v:
            raise ValueError("Registration is required")
        return v


class VehicleUpdate(BaseModel):
    registration: Optional[str] = None
    current_km: Optional[Decimal] = None
    status: Optional[str] = None


class Vehicle(BaseModel):
    id: int
    registration: str
    current_km: Optional[Decimal] = None
    status: str
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
