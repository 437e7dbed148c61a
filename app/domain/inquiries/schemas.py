"""Inquiry schemas - Pydantic models for validation"""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_us_phone

TourType = Literal["wine_tour", "private_transportation", "corporate", "bachelorette"]
InquiryStatus = Literal["new", "contacted", "converted", "closed"]


class InquiryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str
    phone: Optional[str] = None
    tour_date: Optional[date] = None
    party_size: Optional[int] = Field(None, ge=1, le=14)
    tour_type: TourType = "wine_tour"
    preferences: Optional[str] = Field(None, max_length=5000)
    pickup_location: Optional[str] = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def validate_inquiry_email(cls, v):
        if not v or not v.strip():
            raise ValueError("Email is required")
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_us_phone(v)
        return v


class InquiryStatusUpdate(BaseModel):
    status: InquiryStatus
