"""Availability router - Admin vehicle blocks"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import BlockCreate, BlockUpdate
from .service import AvailabilityService

router = APIRouter(prefix="/api/admin/availability", tags=["Availability"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


@router.get("")
async def list_blocks(
    vehicle_id: Optional[int] = Query(None),
    block_type: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    _: User = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Vehicle blocks with vehicle name and capacity"""
    return service.list_blocks(vehicle_id, block_type, start_date, end_date)


@router.post("", status_code=201)
async def create_block(
    data: BlockCreate,
    current_user: User = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Block a vehicle for maintenance, a blackout or a hold"""
    return service.create_block(data, current_user)


@router.patch("/{block_id}")
async def update_block(
    block_id: int,
    data: BlockUpdate,
    _: User = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.update_block(block_id, data)


@router.delete("/{block_id}")
async def delete_block(
    block_id: int,
    _: User = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.delete_block(block_id)
