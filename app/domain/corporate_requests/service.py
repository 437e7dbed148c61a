"""Corporate request service - Intake and conversion to trip proposals"""

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import CorporateRequest, User
from ...shared.validators import parse_iso_date
from ..trip_proposals.schemas import ProposalCreate
from ..trip_proposals.service import TripProposalService
from .repository import CorporateRequestRepository
from .schemas import CorporateRequestCreate

logger = logging.getLogger(__name__)

# Keys checked, in order, for a start date in AI-extracted request data
EXTRACTED_DATE_KEYS = ("start_date", "event_date", "preferred_date")


def _first_valid_date(values) -> Optional[date]:
    for value in values:
        if not isinstance(value, str):
            continue
        try:
            return parse_iso_date(value.strip())
        except ValueError:
            continue
    return None


def resolve_start_date(request: CorporateRequest) -> Optional[date]:
    """Start date from AI-extracted data, then the customer's preferred dates"""
    extracted = request.ai_extracted_data or {}
    candidates = [extracted.get(key) for key in EXTRACTED_DATE_KEYS]
    if isinstance(extracted.get("dates"), list):
        candidates.extend(extracted["dates"])
    return _first_valid_date(candidates) or _first_valid_date(request.preferred_dates or [])


def serialize_request(request: CorporateRequest) -> dict:
    return {
        "id": request.id,
        "request_number": request.request_number,
        "company_name": request.company_name,
        "contact_name": request.contact_name,
        "contact_email": request.contact_email,
        "contact_phone": request.contact_phone,
        "event_type": request.event_type,
        "party_size": request.party_size,
        "preferred_dates": request.preferred_dates or [],
        "description": request.description,
        "ai_extracted_data": request.ai_extracted_data,
        "status": request.status,
        "converted_to_proposal_id": request.converted_to_proposal_id,
        "created_at": request.created_at,
    }


class CorporateRequestService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = CorporateRequestRepository()

    def submit(self, data: CorporateRequestCreate) -> dict:
        number = self.repo.get_next_request_number(self.db, datetime.utcnow().year)
        request = self.repo.create(self.db, request_number=number, status="pending", **data.model_dump())
        self.db.commit()
        logger.info(f"📥 Corporate request {number} received from {data.company_name}")
        return {"success": True, "requestNumber": request.request_number, "id": request.id}

    def list_requests(self, status: Optional[str]) -> dict:
        requests = self.repo.list_requests(self.db, status)
        return {"requests": [serialize_request(r) for r in requests], "total": len(requests)}

    def convert_to_proposal(self, request_id: int, user: User) -> dict:
        request = self.repo.get_by_id(self.db, request_id)
        if not request:
            raise HTTPException(status_code=404, detail="Corporate request not found")
        if request.status == "converted" or request.converted_to_proposal_id:
            raise HTTPException(status_code=400, detail="Request has already been converted to a proposal")

        extracted = request.ai_extracted_data or {}
        proposal_data = ProposalCreate(
            customer_name=request.contact_name,
            customer_email=request.contact_email,
            customer_phone=request.contact_phone,
            customer_company=request.company_name,
            trip_type="corporate",
            trip_title=extracted.get("event_name") or f"{request.company_name} Event",
            party_size=request.party_size or 2,
            start_date=resolve_start_date(request),
            internal_notes=request.description,
        )
        proposal = TripProposalService(self.db).create_proposal(
            proposal_data, user, corporate_request_id=request.id, commit=False
        )
        request.status = "converted"
        request.converted_to_proposal_id = proposal.id
        self.db.commit()

        logger.info(f"✅ Corporate request {request.request_number} converted to {proposal.proposal_number}")
        return {"success": True, "proposalId": proposal.id, "proposalNumber": proposal.proposal_number}
