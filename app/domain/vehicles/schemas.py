"""Vehicle schemas - Pydantic models for validation"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class VehicleCreate(BaseModel):
    vehicle_number: str = Field(..., min_length=1, max_length=50)
    name: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    capacity: int = Field(14, ge=1, le=60)
    is_active: bool = True
    insurance_expiry: Optional[date] = None
    registration_expiry: Optional[date] = None


class VehicleUpdate(BaseModel):
    name: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1, le=60)
    is_active: Optional[bool] = None
    insurance_expiry: Optional[date] = None
    registration_expiry: Optional[date] = None


class VehicleResponse(BaseModel):
    id: int
    vehicle_number: str
    name: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    capacity: int
    is_active: bool
    insurance_expiry: Optional[date] = None
    registration_expiry: Optional[date] = None

    class Config:
        from_attributes = True
