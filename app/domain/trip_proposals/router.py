"""Trip proposal router - Admin builder endpoints and the customer-facing proposal page"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import (
    AcceptRequest,
    DayCreate,
    DeclineRequest,
    InclusionCreate,
    InclusionUpdate,
    ProposalCreate,
    ProposalUpdate,
    StatusUpdate,
    StopCreate,
)
from .service import TripProposalService, serialize_proposal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/trip-proposals", tags=["Trip Proposals"])
public_router = APIRouter(prefix="/api/trip-proposals", tags=["Trip Proposals (Public)"])


def get_trip_proposal_service(db: Session = Depends(get_db)) -> TripProposalService:
    """Dependency injection for TripProposalService"""
    return TripProposalService(db)


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("")
async def list_proposals(
    status: Optional[str] = Query(None, description="Filter by status or 'all'"),
    search: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    _: User = Depends(require_admin),
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    """List proposals with optional status and text filters"""
    return service.list_proposals(status, search, limit, offset)


@router.post("", status_code=201)
async def create_proposal(
    data: ProposalCreate,
    current_user: User = Depends(require_admin),
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    """Create a draft proposal"""
    proposal = service.create_proposal(data, current_user)
    return serialize_proposal(proposal, include_details=True)


@router.get("/{proposal_id}")
async def get_proposal(
    proposal_id: int,
    _: User = Depends(require_admin),
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    """Full proposal with days, stops and inclusions"""
    return serialize_proposal(service.get_proposal(proposal_id), include_details=True)


@router.patch("/{proposal_id}")
async def update_proposal(
    proposal_id: int,
    data: ProposalUpdate,
    current_user: User = Depends(require_admin),
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    proposal = service.update_proposal(proposal_id, data, current_user)
    return serialize_proposal(proposal, include_details=True)


@router.delete("/{proposal_id}")
async def delete_proposal(
    proposal_id: int,
    _: User = Depends(require_admin),
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    return service.delete_proposal(proposal_id)


# ============================================================================
# ITINERARY
# ============================================================================


@router.post("/{proposal_id}/days", status_code=201)
async def add_day(
    proposal_id: int,
    data: DayCreate,
    _: User = Depends(require_admin),
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    day = service.add_day(proposal_id, data)
    return {"id": day.id, "day_number": day.day_number, "date": day.date, "title": day.title}


@router.delete("/{proposal_id}/days/{day_id}")
async def delete_day(
    proposal_id: int,
    day_id: int,
    _: User = Depends(require_admin),
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    return service.delete_day(proposal_id, day_id)


@router.post("/{proposal_id}/days/{day_id}/stops", status_code=201)
async def add_stop(
    proposal_id: int,
    day_id: int,
    data: StopCreate,
    _: User = Depends(require_admin),
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    stop = service.add_stop(proposal_id, day_id, data)
    return {"id": stop.id, "stop_order": stop.stop_order, "name": stop.display_name}


@router.delete("/{proposal_id}/stops/{stop_id}")
async def delete_stop(
    proposal_id: int,
    stop_id: int,
    _: User = Depends(require_admin),
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    return service.delete_stop(proposal_id, stop_id)


# ============================================================================
# INCLUSIONS & PRICING
# ============================================================================


@router.post("/{proposal_id}/inclusions", status_code=201)
async def add_inclusion(
    proposal_id: int,
    data: InclusionCreate,
    _: User = Depends(require_admin),
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    """Add a priced line item; totals are recalculated"""
    return serialize_proposal(service.add_inclusion(proposal_id, data), include_details=True)


@router.patch("/{proposal_id}/inclusions/{inclusion_id}")
async def update_inclusion(
    proposal_id: int,
    inclusion_id: int,
    data: InclusionUpdate,
    _: User = Depends(require_admin),
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    return serialize_proposal(service.update_inclusion(proposal_id, inclusion_id, data), include_details=True)


@router.delete("/{proposal_id}/inclusions/{inclusion_id}")
async def delete_inclusion(
    proposal_id: int,
    inclusion_id: int,
    _: User = Depends(require_admin),
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    return serialize_proposal(service.delete_inclusion(proposal_id, inclusion_id), include_details=True)


@router.get("/{proposal_id}/pricing")
async def get_pricing(
    proposal_id: int,
    _: User = Depends(require_admin),
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    return service.get_pricing(proposal_id)


# ============================================================================
# STATUS WORKFLOW
# ============================================================================


@router.post("/{proposal_id}/status")
async def update_status(
    proposal_id: int,
    data: StatusUpdate,
    current_user: User = Depends(require_admin),
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    """Move a proposal through its lifecycle"""
    proposal = service.update_status(proposal_id, data.status, data.notes, current_user)
    return serialize_proposal(proposal)


@router.post("/{proposal_id}/send")
async def send_proposal(
    proposal_id: int,
    current_user: User = Depends(require_admin),
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    """Email the proposal link to the customer"""
    return await service.send_proposal(proposal_id, current_user)


@router.post("/{proposal_id}/convert")
async def convert_to_booking(
    proposal_id: int,
    current_user: User = Depends(require_admin),
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    """Create a confirmed booking from an accepted proposal"""
    return service.convert_to_booking(proposal_id, current_user)


# ============================================================================
# CUSTOMER ROUTES
# ============================================================================


@public_router.get("/{proposal_number}")
async def view_proposal(
    proposal_number: str,
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    """Customer proposal page (records a view)"""
    return service.view_public(proposal_number)


@public_router.post("/{proposal_number}/accept")
async def accept_proposal(
    proposal_number: str,
    data: AcceptRequest,
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    return service.accept_public(proposal_number, data.signature, data.name)


@public_router.post("/{proposal_number}/decline")
async def decline_proposal(
    proposal_number: str,
    data: DeclineRequest,
    service: TripProposalService = Depends(get_trip_proposal_service),
):
    return service.decline_public(proposal_number, data.reason)
