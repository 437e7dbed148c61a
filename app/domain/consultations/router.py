"""Consultation router - Public hand-off and the admin consultation queue"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from ...rate_limiter import public_form_rate_limit
from .schemas import ConsultationHandoff, ConsultationUpdate
from .service import ConsultationService, serialize_consultation

router = APIRouter(prefix="/api/consultations", tags=["Consultations"])
admin_router = APIRouter(prefix="/api/admin/consultations", tags=["Consultations (Admin)"])


def get_consultation_service(db: Session = Depends(get_db)) -> ConsultationService:
    """Dependency injection for ConsultationService"""
    return ConsultationService(db)


@router.post("", status_code=201)
async def handoff_consultation(
    data: ConsultationHandoff,
    _: None = Depends(public_form_rate_limit),
    service: ConsultationService = Depends(get_consultation_service),
):
    """Hand off a trip plan to the concierge team"""
    return service.create_handoff(data)


@admin_router.get("")
async def list_consultations(
    status: Optional[str] = Query(None, description="pending, in_progress, completed or all"),
    _: User = Depends(require_admin),
    service: ConsultationService = Depends(get_consultation_service),
):
    """Handed-off consultations with per-status counts"""
    return service.list_consultations(status)


@admin_router.get("/{consultation_id}")
async def get_consultation(
    consultation_id: int,
    _: User = Depends(require_admin),
    service: ConsultationService = Depends(get_consultation_service),
):
    return serialize_consultation(service.get_consultation(consultation_id))


@admin_router.patch("/{consultation_id}")
async def update_consultation(
    consultation_id: int,
    data: ConsultationUpdate,
    _: User = Depends(require_admin),
    service: ConsultationService = Depends(get_consultation_service),
):
    return service.update_consultation(consultation_id, data)


@admin_router.post("/{consultation_id}/assign")
async def assign_consultation(
    consultation_id: int,
    current_user: User = Depends(require_admin),
    service: ConsultationService = Depends(get_consultation_service),
):
    """Take ownership of a consultation"""
    return service.assign_to(consultation_id, current_user)


@admin_router.post("/{consultation_id}/convert")
async def convert_consultation(
    consultation_id: int,
    current_user: User = Depends(require_admin),
    service: ConsultationService = Depends(get_consultation_service),
):
    """Create a draft trip proposal from the consultation"""
    return service.convert_to_proposal(consultation_id, current_user)
