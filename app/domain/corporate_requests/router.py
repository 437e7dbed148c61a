"""Corporate request router - Public intake and admin conversion"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from ...rate_limiter import public_form_rate_limit
from .schemas import ConvertRequest, CorporateRequestCreate
from .service import CorporateRequestService

router = APIRouter(prefix="/api/corporate-request", tags=["Corporate Requests"])
admin_router = APIRouter(prefix="/api/admin/corporate-requests", tags=["Corporate Requests (Admin)"])


def get_corporate_request_service(db: Session = Depends(get_db)) -> CorporateRequestService:
    """Dependency injection for CorporateRequestService"""
    return CorporateRequestService(db)


@router.post("", status_code=201)
async def submit_corporate_request(
    data: CorporateRequestCreate,
    _: None = Depends(public_form_rate_limit),
    service: CorporateRequestService = Depends(get_corporate_request_service),
):
    return service.submit(data)


@router.post("/convert")
async def convert_corporate_request(
    data: ConvertRequest,
    current_user: User = Depends(require_admin),
    service: CorporateRequestService = Depends(get_corporate_request_service),
):
    """Create a draft corporate trip proposal from a request"""
    return service.convert_to_proposal(data.request_id, current_user)


@admin_router.get("")
async def list_corporate_requests(
    status: Optional[str] = Query(None),
    _: User = Depends(require_admin),
    service: CorporateRequestService = Depends(get_corporate_request_service),
):
    return service.list_requests(status)
