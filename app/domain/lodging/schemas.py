"""Lodging schemas - Pydantic models for properties and nightly availability"""

import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_us_phone

PropertyType = Literal["hotel", "vacation_rental", "bnb", "inn", "resort"]
AvailabilityStatus = Literal["available", "booked", "blocked", "tentative"]


class LodgingBase(BaseModel):
    property_type: Optional[PropertyType] = None
    description: Optional[str] = None
    short_description: Optional[str] = Field(None, max_length=500)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = Field(None, max_length=2)
    zip_code: Optional[str] = Field(None, max_length=10)
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    booking_url: Optional[str] = None
    amenities: Optional[list[str]] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    max_guests: Optional[int] = Field(None, ge=1)
    price_range_min: Optional[float] = Field(None, ge=0)
    price_range_max: Optional[float] = Field(None, ge=0)
    min_stay_nights: Optional[int] = Field(None, ge=1)
    is_featured: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def validate_contact_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_us_phone(v)
        return v


class LodgingCreate(LodgingBase):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    property_type: PropertyType = "hotel"


class LodgingUpdate(LodgingBase):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    is_active: Optional[bool] = None


class AvailabilityEntry(BaseModel):
    date: datetime.date
    status: AvailabilityStatus = "available"
    nightly_rate: Optional[float] = Field(None, ge=0)
    min_stay: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None


class AvailabilityUpsert(BaseModel):
    entries: list[AvailabilityEntry] = Field(..., min_length=1, max_length=366)
