"""Inquiry router - Public inquiry form and admin follow-up"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from ...rate_limiter import public_form_rate_limit
from .schemas import InquiryCreate, InquiryStatusUpdate
from .service import InquiryService, serialize_inquiry

router = APIRouter(prefix="/api/inquiries", tags=["Inquiries"])
admin_router = APIRouter(prefix="/api/admin/inquiries", tags=["Inquiries (Admin)"])


def get_inquiry_service(db: Session = Depends(get_db)) -> InquiryService:
    """Dependency injection for InquiryService"""
    return InquiryService(db)


@router.post("", status_code=201)
async def create_inquiry(
    data: InquiryCreate,
    _: None = Depends(public_form_rate_limit),
    service: InquiryService = Depends(get_inquiry_service),
):
    inquiry = await service.create_inquiry(data, source="website")
    return {"success": True, "inquiry": serialize_inquiry(inquiry)}


@admin_router.get("")
async def list_inquiries(
    status: Optional[str] = Query(None),
    _: User = Depends(require_admin),
    service: InquiryService = Depends(get_inquiry_service),
):
    return service.list_inquiries(status)


@admin_router.patch("/{inquiry_id}")
async def update_inquiry(
    inquiry_id: int,
    data: InquiryStatusUpdate,
    _: User = Depends(require_admin),
    service: InquiryService = Depends(get_inquiry_service),
):
    return service.update_status(inquiry_id, data.status)
