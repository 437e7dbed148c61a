"""Corporate request schemas - Pydantic models for validation"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import parse_iso_date, validate_email, validate_us_phone

RequestStatus = Literal["pending", "reviewing", "converted", "declined"]


class CorporateRequestCreate(BaseModel):
    """Public group or corporate event request"""

    company_name: str = Field(..., min_length=1, max_length=255)
    contact_name: str = Field(..., min_length=1, max_length=255)
    contact_email: str
    contact_phone: Optional[str] = None
    event_type: str = "corporate_event"
    party_size: Optional[int] = Field(None, ge=1, le=200)
    preferred_dates: list[str] = Field(default_factory=list)
    description: Optional[str] = None
    ai_extracted_data: Optional[dict[str, Any]] = None

    @field_validator("contact_email")
    @classmethod
    def validate_contact_email(cls, v):
        if not v or not v.strip():
            raise ValueError("Email is required")
        return validate_email(v)

    @field_validator("contact_phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_us_phone(v)
        return v

    @field_validator("preferred_dates")
    @classmethod
    def validate_dates(cls, v):
        # Stored as YYYY-MM-DD strings
        return [parse_iso_date(d.strip()).isoformat() for d in v if d and d.strip()]


class ConvertRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    request_id: int = Field(..., alias="requestId")
