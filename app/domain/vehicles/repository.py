"""Vehicle repository - Database operations for the fleet"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Vehicle


class VehicleRepository:
    """Repository for vehicle database operations"""

    @staticmethod
    def list_vehicles(db: Session, include_inactive: bool = False) -> list[Vehicle]:
        query = db.query(Vehicle)
        if not include_inactive:
            query = query.filter(Vehicle.is_active.is_(True))
        return query.order_by(Vehicle.vehicle_number).all()

    @staticmethod
    def get_by_id(db: Session, vehicle_id: int) -> Optional[Vehicle]:
        return db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()

    @staticmethod
    def get_by_number(db: Session, vehicle_number: str) -> Optional[Vehicle]:
        return db.query(Vehicle).filter(Vehicle.vehicle_number == vehicle_number).first()

    @staticmethod
    def create(db: Session, **data) -> Vehicle:
        vehicle = Vehicle(**data)
        db.add(vehicle)
        db.commit()
        db.refresh(vehicle)
        return vehicle

    @staticmethod
    def update(db: Session, vehicle: Vehicle, **updates) -> Vehicle:
        for key, value in updates.items():
            if value is not None and hasattr(vehicle, key):
                setattr(vehicle, key, value)
        db.commit()
        db.refresh(vehicle)
        return vehicle
