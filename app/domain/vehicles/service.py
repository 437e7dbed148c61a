"""Vehicle service - Fleet management"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Vehicle
from .repository import VehicleRepository
from .schemas import VehicleCreate, VehicleUpdate

logger = logging.getLogger(__name__)


class VehicleService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = VehicleRepository()

    def list_vehicles(self, include_inactive: bool = False) -> list[Vehicle]:
        return self.repo.list_vehicles(self.db, include_inactive)

    def get_vehicle(self, vehicle_id: int) -> Vehicle:
        vehicle = self.repo.get_by_id(self.db, vehicle_id)
        if not vehicle:
            raise HTTPException(status_code=404, detail="Vehicle not found")
        return vehicle

    def create_vehicle(self, data: VehicleCreate) -> Vehicle:
        if self.repo.get_by_number(self.db, data.vehicle_number):
            raise HTTPException(status_code=409, detail="A vehicle with this number already exists")
        vehicle = self.repo.create(self.db, **data.model_dump())
        logger.info(f"✅ Vehicle {vehicle.vehicle_number} added (capacity {vehicle.capacity})")
        return vehicle

    def update_vehicle(self, vehicle_id: int, data: VehicleUpdate) -> Vehicle:
        vehicle = self.get_vehicle(vehicle_id)
        return self.repo.update(self.db, vehicle, **data.model_dump(exclude_unset=True))
