"""Availability repository - Vehicle blocks and booked vehicles per date"""

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import AvailabilityBlock, Booking, Vehicle


class AvailabilityRepository:
    """Repository for availability database operations"""

    @staticmethod
    def list_blocks(
        db: Session,
        vehicle_id: Optional[int] = None,
        block_type: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[AvailabilityBlock]:
        query = db.query(AvailabilityBlock).options(joinedload(AvailabilityBlock.vehicle))

        if vehicle_id:
            query = query.filter(AvailabilityBlock.vehicle_id == vehicle_id)
        if block_type:
            query = query.filter(AvailabilityBlock.block_type == block_type)
        if start_date:
            query = query.filter(AvailabilityBlock.block_date >= start_date)
        if end_date:
            query = query.filter(AvailabilityBlock.block_date <= end_date)

        return query.order_by(AvailabilityBlock.block_date, AvailabilityBlock.start_time).all()

    @staticmethod
    def get_block(db: Session, block_id: int) -> Optional[AvailabilityBlock]:
        return db.query(AvailabilityBlock).filter(AvailabilityBlock.id == block_id).first()

    @staticmethod
    def blocks_for_vehicle_on(db: Session, vehicle_id: int, block_date: date) -> list[AvailabilityBlock]:
        return (
            db.query(AvailabilityBlock)
            .filter(AvailabilityBlock.vehicle_id == vehicle_id, AvailabilityBlock.block_date == block_date)
            .all()
        )

    @staticmethod
    def get_booking_block(db: Session, booking_id: int) -> Optional[AvailabilityBlock]:
        return (
            db.query(AvailabilityBlock)
            .filter(AvailabilityBlock.booking_id == booking_id, AvailabilityBlock.block_type == "booking")
            .first()
        )

    @staticmethod
    def blocked_vehicle_ids(db: Session, block_date: date) -> set[int]:
        rows = db.query(AvailabilityBlock.vehicle_id).filter(AvailabilityBlock.block_date == block_date).all()
        return {row[0] for row in rows}

    @staticmethod
    def booked_vehicle_ids(db: Session, tour_date: date, exclude_booking_id: Optional[int] = None) -> set[int]:
        query = db.query(Booking.vehicle_id).filter(
            Booking.tour_date == tour_date,
            Booking.vehicle_id.isnot(None),
            Booking.status != "cancelled",
        )
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)
        return {row[0] for row in query.all()}

    @staticmethod
    def unassigned_booking_count(db: Session, tour_date: date) -> int:
        """Pending or confirmed bookings on a date still waiting for a vehicle"""
        return (
            db.query(func.count(Booking.id))
            .filter(
                Booking.tour_date == tour_date,
                Booking.status.in_(("pending", "confirmed")),
                Booking.vehicle_id.is_(None),
            )
            .scalar()
        )

    @staticmethod
    def active_vehicles_for_party(db: Session, party_size: int) -> list[Vehicle]:
        return (
            db.query(Vehicle)
            .filter(Vehicle.is_active.is_(True), Vehicle.capacity >= party_size)
            .order_by(Vehicle.capacity, Vehicle.id)
            .all()
        )
