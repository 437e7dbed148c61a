"""Lodging router - Public directory and admin property management"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import AvailabilityUpsert, LodgingCreate, LodgingUpdate
from .service import LodgingService, serialize_property

router = APIRouter(prefix="/api/lodging", tags=["Lodging"])
admin_router = APIRouter(prefix="/api/admin/lodging", tags=["Lodging (Admin)"])


def get_lodging_service(db: Session = Depends(get_db)) -> LodgingService:
    """Dependency injection for LodgingService"""
    return LodgingService(db)


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("")
async def list_lodging(
    property_type: Optional[str] = Query(None),
    featured: Optional[bool] = Query(None),
    service: LodgingService = Depends(get_lodging_service),
):
    """Active lodging properties, featured first"""
    return service.list_public(property_type, featured)


@router.get("/{slug}")
async def get_lodging(slug: str, service: LodgingService = Depends(get_lodging_service)):
    return service.get_public(slug)


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("")
async def list_lodging_admin(
    search: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    _: User = Depends(require_admin),
    service: LodgingService = Depends(get_lodging_service),
):
    return service.list_admin(search, include_inactive)


@admin_router.post("", status_code=201)
async def create_lodging(
    data: LodgingCreate,
    _: User = Depends(require_admin),
    service: LodgingService = Depends(get_lodging_service),
):
    return service.create_property(data)


@admin_router.get("/{property_id}")
async def get_lodging_admin(
    property_id: int,
    _: User = Depends(require_admin),
    service: LodgingService = Depends(get_lodging_service),
):
    return serialize_property(service.get_property(property_id), admin=True)


@admin_router.patch("/{property_id}")
async def update_lodging(
    property_id: int,
    data: LodgingUpdate,
    _: User = Depends(require_admin),
    service: LodgingService = Depends(get_lodging_service),
):
    return service.update_property(property_id, data)


@admin_router.post("/{property_id}/verify")
async def verify_lodging(
    property_id: int,
    current_user: User = Depends(require_admin),
    service: LodgingService = Depends(get_lodging_service),
):
    """Mark the listing details as checked by staff"""
    return service.verify_property(property_id, current_user)


@admin_router.delete("/{property_id}")
async def deactivate_lodging(
    property_id: int,
    _: User = Depends(require_admin),
    service: LodgingService = Depends(get_lodging_service),
):
    """Deactivate a property. Rows are kept for proposal history."""
    return service.deactivate_property(property_id)


@admin_router.get("/{property_id}/availability")
async def get_lodging_availability(
    property_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    _: User = Depends(require_admin),
    service: LodgingService = Depends(get_lodging_service),
):
    return service.get_availability(property_id, start_date, end_date)


@admin_router.put("/{property_id}/availability")
async def put_lodging_availability(
    property_id: int,
    data: AvailabilityUpsert,
    _: User = Depends(require_admin),
    service: LodgingService = Depends(get_lodging_service),
):
    return service.upsert_availability(property_id, data)
