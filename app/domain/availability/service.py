"""Availability service - Vehicle blocks and free-vehicle lookup"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import AvailabilityBlock, Booking, User, Vehicle
from .repository import AvailabilityRepository
from .schemas import BlockCreate, BlockUpdate

logger = logging.getLogger(__name__)

DAY_START = "00:00"
DAY_END = "24:00"


def _window(block_start: Optional[str], block_end: Optional[str]) -> tuple[str, str]:
    # A block without times covers the whole day
    return block_start or DAY_START, block_end or DAY_END


def blocks_overlap(a: tuple[Optional[str], Optional[str]], b: tuple[Optional[str], Optional[str]]) -> bool:
    a_start, a_end = _window(*a)
    b_start, b_end = _window(*b)
    return a_start < b_end and b_start < a_end


def serialize_block(block: AvailabilityBlock) -> dict:
    return {
        "id": block.id,
        "vehicle_id": block.vehicle_id,
        "vehicle_name": block.vehicle.display_name if block.vehicle else None,
        "vehicle_capacity": block.vehicle.capacity if block.vehicle else None,
        "block_date": block.block_date.isoformat(),
        "start_time": block.start_time,
        "end_time": block.end_time,
        "block_type": block.block_type,
        "reason": block.reason,
        "booking_id": block.booking_id,
        "created_at": block.created_at,
    }


class AvailabilityService:
    """Service layer for vehicle availability"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AvailabilityRepository()

    # ========================================================================
    # BLOCKS
    # ========================================================================

    def list_blocks(
        self,
        vehicle_id: Optional[int],
        block_type: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
    ) -> dict:
        blocks = self.repo.list_blocks(self.db, vehicle_id, block_type, start_date, end_date)
        return {"blocks": [serialize_block(b) for b in blocks], "total": len(blocks)}

    def _check_times(self, start_time: Optional[str], end_time: Optional[str]) -> None:
        if start_time and end_time and end_time <= start_time:
            raise HTTPException(status_code=400, detail="End time must be after start time")

    def _check_overlap(
        self,
        vehicle_id: int,
        block_date: date,
        start_time: Optional[str],
        end_time: Optional[str],
        exclude_block_id: Optional[int] = None,
    ) -> None:
        for existing in self.repo.blocks_for_vehicle_on(self.db, vehicle_id, block_date):
            if existing.id == exclude_block_id:
                continue
            if blocks_overlap((start_time, end_time), (existing.start_time, existing.end_time)):
                raise HTTPException(
                    status_code=409,
                    detail=f"Overlaps an existing {existing.block_type} block on {block_date.isoformat()}",
                )

    def create_block(self, data: BlockCreate, user: User) -> dict:
        vehicle = self.db.query(Vehicle).filter(Vehicle.id == data.vehicle_id).first()
        if not vehicle:
            raise HTTPException(status_code=400, detail="Vehicle not found")

        self._check_times(data.start_time, data.end_time)
        self._check_overlap(data.vehicle_id, data.block_date, data.start_time, data.end_time)

        block = AvailabilityBlock(**data.model_dump(), created_by=user.id)
        self.db.add(block)
        self.db.commit()
        self.db.refresh(block)
        logger.info(
            f"✅ {block.block_type} block created for vehicle {vehicle.vehicle_number} on {block.block_date}"
        )
        return serialize_block(block)

    def _get_editable_block(self, block_id: int) -> AvailabilityBlock:
        block = self.repo.get_block(self.db, block_id)
        if not block:
            raise HTTPException(status_code=404, detail="Availability block not found")
        if block.block_type == "booking":
            raise HTTPException(
                status_code=400,
                detail="Booking blocks are managed from the booking. Unassign the vehicle instead.",
            )
        return block

    def update_block(self, block_id: int, data: BlockUpdate) -> dict:
        block = self._get_editable_block(block_id)
        updates = data.model_dump(exclude_unset=True)

        start_time = updates.get("start_time", block.start_time)
        end_time = updates.get("end_time", block.end_time)
        block_date = updates.get("block_date") or block.block_date
        self._check_times(start_time, end_time)
        self._check_overlap(block.vehicle_id, block_date, start_time, end_time, exclude_block_id=block.id)

        for key, value in updates.items():
            setattr(block, key, value)
        self.db.commit()
        self.db.refresh(block)
        return serialize_block(block)

    def delete_block(self, block_id: int) -> dict:
        block = self._get_editable_block(block_id)
        self.db.delete(block)
        self.db.commit()
        return {"message": "Availability block deleted"}

    # ========================================================================
    # VEHICLE AVAILABILITY
    # ========================================================================

    def get_available_vehicles(self, tour_date: date, party_size: int) -> list[Vehicle]:
        """Active vehicles large enough for the party with no block or booking that day"""
        unavailable = self.repo.blocked_vehicle_ids(self.db, tour_date) | self.repo.booked_vehicle_ids(
            self.db, tour_date
        )
        return [v for v in self.repo.active_vehicles_for_party(self.db, party_size) if v.id not in unavailable]

    def has_open_vehicle(self, tour_date: date, party_size: int) -> bool:
        """A free vehicle fits the party after every undispatched booking that day takes one"""
        free_vehicles = self.get_available_vehicles(tour_date, party_size)
        return len(free_vehicles) > self.repo.unassigned_booking_count(self.db, tour_date)

    def is_vehicle_free(self, vehicle_id: int, tour_date: date, booking_id: Optional[int] = None) -> bool:
        """Whether a vehicle can take a booking, ignoring the booking's own block"""
        for block in self.repo.blocks_for_vehicle_on(self.db, vehicle_id, tour_date):
            if booking_id and block.booking_id == booking_id:
                continue
            return False
        return vehicle_id not in self.repo.booked_vehicle_ids(self.db, tour_date, exclude_booking_id=booking_id)

    def sync_booking_block(self, booking: Booking) -> None:
        """Keep the system block for a booking in line with its vehicle, date and status (caller commits)"""
        block = self.repo.get_booking_block(self.db, booking.id)

        if booking.vehicle_id is None or booking.status == "cancelled":
            if block:
                self.db.delete(block)
            return

        start_time = booking.start_time
        end_time = _add_hours(booking.start_time, booking.duration_hours) if booking.start_time else None
        if block is None:
            block = AvailabilityBlock(booking_id=booking.id, block_type="booking")
            self.db.add(block)
        block.vehicle_id = booking.vehicle_id
        block.block_date = booking.tour_date
        block.start_time = start_time
        block.end_time = end_time
        block.reason = f"Booking {booking.booking_number}"


def _add_hours(start_time: str, hours: Optional[float]) -> str:
    hour, minute = (int(part) for part in start_time.split(":"))
    total_minutes = min(hour * 60 + minute + int((hours or 0) * 60), 24 * 60)
    if total_minutes >= 24 * 60:
        return DAY_END
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"
