"""Workflow schemas - Time clock and inspection requests"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class ClockRequest(BaseModel):
    # Left as a plain string so an unknown action can be answered with a 400
    action: str
    vehicle_id: Optional[int] = None
    force_clock_out: bool = False
    signature: Optional[str] = None


class InspectionCreate(BaseModel):
    type: Literal["pre_trip", "post_trip"]
    vehicle_id: Optional[int] = None
    mileage: Optional[int] = Field(None, ge=0)
    checklist: Optional[dict[str, Any]] = None
    defects_found: bool = False
    defect_notes: Optional[str] = None
    signature: Optional[str] = None
