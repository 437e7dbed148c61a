"""Trip proposal schemas - Pydantic models for validation"""

import datetime
from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_time_string, validate_us_phone

PricingType = Literal["flat", "per_person", "per_day", "hourly"]
StopType = Literal["winery", "restaurant", "lodging", "activity", "pickup", "dropoff", "custom"]


class ProposalCreate(BaseModel):
    """Schema for creating a proposal"""

    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_company: Optional[str] = None
    trip_type: str = "wine_tour"
    trip_title: Optional[str] = None
    party_size: int = Field(2, ge=1, le=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    introduction: Optional[str] = None
    internal_notes: Optional[str] = None
    valid_until: Optional[date] = None
    tax_rate: Optional[float] = Field(None, ge=0, le=1)
    discount_percentage: float = Field(0, ge=0, le=100)
    gratuity_percentage: float = Field(0, ge=0, le=100)
    deposit_percentage: float = Field(50, ge=0, le=100)
    planning_fee_mode: Literal["none", "percentage"] = "none"
    planning_fee_percentage: float = Field(0, ge=0, le=100)

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


class ProposalUpdate(BaseModel):
    """Schema for updating a proposal (only provided fields change)"""

    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_company: Optional[str] = None
    trip_type: Optional[str] = None
    trip_title: Optional[str] = None
    party_size: Optional[int] = Field(None, ge=1, le=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    introduction: Optional[str] = None
    internal_notes: Optional[str] = None
    valid_until: Optional[date] = None
    tax_rate: Optional[float] = Field(None, ge=0, le=1)
    discount_percentage: Optional[float] = Field(None, ge=0, le=100)
    gratuity_percentage: Optional[float] = Field(None, ge=0, le=100)
    deposit_percentage: Optional[float] = Field(None, ge=0, le=100)
    deposit_paid: Optional[bool] = None
    planning_fee_mode: Optional[Literal["none", "percentage"]] = None
    planning_fee_percentage: Optional[float] = Field(None, ge=0, le=100)

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


class DayCreate(BaseModel):
    date: Optional[datetime.date] = None
    title: Optional[str] = None
    description: Optional[str] = None


class StopCreate(BaseModel):
    stop_type: StopType = "winery"
    winery_id: Optional[int] = None
    lodging_property_id: Optional[int] = None
    custom_name: Optional[str] = None
    start_time: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, v):
        return validate_time_string(v)


class InclusionCreate(BaseModel):
    inclusion_type: str = "custom"
    description: str = Field(..., min_length=1)
    quantity: float = Field(1, ge=0)
    unit_price: float = Field(0, ge=0)
    pricing_type: PricingType = "flat"
    is_taxable: bool = True
    tax_included_in_price: bool = False
    sort_order: Optional[int] = None


class InclusionUpdate(BaseModel):
    inclusion_type: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[float] = Field(None, ge=0)
    unit_price: Optional[float] = Field(None, ge=0)
    pricing_type: Optional[PricingType] = None
    is_taxable: Optional[bool] = None
    tax_included_in_price: Optional[bool] = None
    sort_order: Optional[int] = None


class StatusUpdate(BaseModel):
    status: str
    notes: Optional[str] = None


class AcceptRequest(BaseModel):
    signature: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


class DeclineRequest(BaseModel):
    reason: Optional[str] = None
