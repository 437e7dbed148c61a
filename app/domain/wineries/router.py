"""Winery router - Public directory and admin management"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import WineryCreate, WineryUpdate
from .service import WineryService, serialize_winery

router = APIRouter(prefix="/api/wineries", tags=["Wineries"])
admin_router = APIRouter(prefix="/api/admin/wineries", tags=["Wineries (Admin)"])


def get_winery_service(db: Session = Depends(get_db)) -> WineryService:
    """Dependency injection for WineryService"""
    return WineryService(db)


@router.get("")
async def search_wineries(
    search: Optional[str] = Query(None),
    style: Optional[str] = Query(None, description="red, white, mixed or sparkling"),
    service: WineryService = Depends(get_winery_service),
):
    """Active wineries matching the search text and wine style"""
    wineries = service.search(search, style)
    return {"wineries": wineries, "total": len(wineries)}


@router.get("/{slug}")
async def get_winery(slug: str, service: WineryService = Depends(get_winery_service)):
    return service.get_public(slug)


@admin_router.get("")
async def list_wineries_admin(
    include_inactive: bool = Query(True),
    _: User = Depends(require_admin),
    service: WineryService = Depends(get_winery_service),
):
    return service.list_admin(include_inactive)


@admin_router.post("", status_code=201)
async def create_winery(
    data: WineryCreate,
    _: User = Depends(require_admin),
    service: WineryService = Depends(get_winery_service),
):
    return service.create_winery(data)


@admin_router.get("/{winery_id}")
async def get_winery_admin(
    winery_id: int,
    _: User = Depends(require_admin),
    service: WineryService = Depends(get_winery_service),
):
    return serialize_winery(service.get_winery(winery_id), admin=True)


@admin_router.patch("/{winery_id}")
async def update_winery(
    winery_id: int,
    data: WineryUpdate,
    _: User = Depends(require_admin),
    service: WineryService = Depends(get_winery_service),
):
    return service.update_winery(winery_id, data)


@admin_router.delete("/{winery_id}")
async def deactivate_winery(
    winery_id: int,
    _: User = Depends(require_admin),
    service: WineryService = Depends(get_winery_service),
):
    return service.deactivate_winery(winery_id)
