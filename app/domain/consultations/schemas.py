"""Consultation schemas - Pydantic models for validation"""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_email, validate_us_phone


class ConsultationHandoff(BaseModel):
    """A trip plan handed off by a customer from the planner"""

    owner_name: str = Field(..., min_length=1, max_length=255)
    owner_email: str
    owner_phone: Optional[str] = None
    title: Optional[str] = Field(None, max_length=255)
    trip_type: str = "wine_tour"
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    expected_guests: Optional[int] = Field(None, ge=1, le=200)
    handoff_notes: Optional[str] = None
    preferences: Optional[dict[str, Any]] = None

    @field_validator("owner_name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("owner_email")
    @classmethod
    def validate_owner_email(cls, v):
        if not v or not v.strip():
            raise ValueError("Email is required")
        return validate_email(v)

    @field_validator("owner_phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_us_phone(v)
        return v

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self


class ConsultationUpdate(BaseModel):
    assigned_staff_id: Optional[int] = None
    handoff_notes: Optional[str] = None
