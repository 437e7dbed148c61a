"""Vehicle router - Admin fleet endpoints"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import VehicleCreate, VehicleResponse, VehicleUpdate
from .service import VehicleService

router = APIRouter(prefix="/api/admin/vehicles", tags=["Vehicles"])


def get_vehicle_service(db: Session = Depends(get_db)) -> VehicleService:
    """Dependency injection for VehicleService"""
    return VehicleService(db)


@router.get("", response_model=list[VehicleResponse])
async def list_vehicles(
    include_inactive: bool = Query(False),
    _: User = Depends(require_admin),
    service: VehicleService = Depends(get_vehicle_service),
):
    return service.list_vehicles(include_inactive)


@router.post("", response_model=VehicleResponse, status_code=201)
async def create_vehicle(
    data: VehicleCreate,
    _: User = Depends(require_admin),
    service: VehicleService = Depends(get_vehicle_service),
):
    return service.create_vehicle(data)


@router.patch("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_id: int,
    data: VehicleUpdate,
    _: User = Depends(require_admin),
    service: VehicleService = Depends(get_vehicle_service),
):
    return service.update_vehicle(vehicle_id, data)
