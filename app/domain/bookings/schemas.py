"""Booking schemas - Pydantic models for quotes, bookings and payments"""

import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_time_string, validate_us_phone

PaymentMethod = Literal["card", "ach", "check"]
BookingStatus = Literal["pending", "confirmed", "completed", "cancelled"]


class QuoteRequest(BaseModel):
    """Single-service price check"""

    service_type: Literal["wine_tour", "shared_tour", "transfer", "wait_time"] = "wine_tour"
    tour_date: datetime.date
    party_size: int = Field(..., ge=1, le=14)
    hours: Optional[float] = Field(None, gt=0, le=12)
    include_lunch: bool = True
    route: Optional[str] = None
    miles: Optional[float] = Field(None, ge=0)


class QuoteService(BaseModel):
    type: Literal["wine_tour", "shared_tour", "transfer", "wait_time", "custom"]
    hours: Optional[float] = Field(None, gt=0, le=12)
    include_lunch: bool = True
    route: Optional[str] = None
    miles: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    amount: Optional[float] = Field(None, ge=0)


class QuoteDay(BaseModel):
    date: datetime.date
    services: list[QuoteService]


class MultiDayQuoteRequest(BaseModel):
    party_size: int = Field(..., ge=1, le=14)
    days: list[QuoteDay] = Field(..., min_length=1)
    deposit_percentage: Optional[float] = Field(None, ge=0, le=100)


class BookingCreate(BaseModel):
    """Customer booking request"""

    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: str
    customer_phone: Optional[str] = None
    tour_date: datetime.date
    start_time: str = "10:00"
    duration_hours: float = Field(6, gt=0, le=12)
    party_size: int
    pickup_location: Optional[str] = None
    winery_ids: list[int] = Field(default_factory=list)
    notes: Optional[str] = None
    payment_method: PaymentMethod = "card"

    @field_validator("customer_email")
    @classmethod
    def validate_customer_email(cls, v):
        return validate_email(v)

    @field_validator("customer_phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_us_phone(v)
        return v

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, v):
        return validate_time_string(v)


class BookingUpdate(BaseModel):
    """Admin edits: dispatch and status"""

    status: Optional[BookingStatus] = None
    driver_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    start_time: Optional[str] = None
    pickup_location: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, v):
        return validate_time_string(v)


class PaymentCreate(BaseModel):
    amount: float = Field(..., gt=0)
    payment_type: Literal["deposit", "balance"] = "deposit"
    payment_method: PaymentMethod = "card"
    reference: Optional[str] = None
