"""Availability block schemas"""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_time_string

# "booking" blocks are created by the system when a vehicle is assigned
ManualBlockType = Literal["maintenance", "blackout", "hold"]


class BlockCreate(BaseModel):
    vehicle_id: int
    block_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    block_type: ManualBlockType
    reason: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_times(cls, v):
        return validate_time_string(v)


class BlockUpdate(BaseModel):
    block_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    block_type: Optional[ManualBlockType] = None
    reason: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_times(cls, v):
        return validate_time_string(v)
