"""Winery schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


def _clean_list(values: Optional[list[str]]) -> Optional[list[str]]:
    if values is None:
        return values
    return [v.strip() for v in values if v and v.strip()]


class WineryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    address: Optional[str] = None
    city: str = "Walla Walla"
    tasting_fee: Optional[float] = Field(None, ge=0)
    average_visit_duration: int = Field(60, ge=15, le=240)
    specialties: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    reservation_required: bool = False
    website: Optional[str] = None
    is_featured: bool = False

    @field_validator("specialties", "features")
    @classmethod
    def clean_lists(cls, v):
        return _clean_list(v)


class WineryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    tasting_fee: Optional[float] = Field(None, ge=0)
    average_visit_duration: Optional[int] = Field(None, ge=15, le=240)
    specialties: Optional[list[str]] = None
    features: Optional[list[str]] = None
    reservation_required: Optional[bool] = None
    website: Optional[str] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("specialties", "features")
    @classmethod
    def clean_lists(cls, v):
        return _clean_list(v)
