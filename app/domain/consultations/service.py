"""Consultation service - Hand-off intake, staff queue and conversion to proposals"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Consultation, User
from ..trip_proposals.schemas import ProposalCreate
from ..trip_proposals.service import TripProposalService
from .repository import STATUS_FILTERS, ConsultationRepository
from .schemas import ConsultationHandoff, ConsultationUpdate

logger = logging.getLogger(__name__)


def consultation_queue_status(consultation: Consultation) -> str:
    if consultation.converted_to_proposal_id:
        return "completed"
    if consultation.assigned_staff_id:
        return "in_progress"
    return "pending"


def serialize_consultation(consultation: Consultation) -> dict:
    staff = consultation.assigned_staff
    return {
        "id": consultation.id,
        "share_code": consultation.share_code,
        "title": consultation.title,
        "trip_type": consultation.trip_type,
        "owner_name": consultation.owner_name,
        "owner_email": consultation.owner_email,
        "owner_phone": consultation.owner_phone,
        "start_date": consultation.start_date.isoformat() if consultation.start_date else None,
        "end_date": consultation.end_date.isoformat() if consultation.end_date else None,
        "expected_guests": consultation.expected_guests,
        "status": consultation.status,
        "queue_status": consultation_queue_status(consultation),
        "handoff_notes": consultation.handoff_notes,
        "handed_off_at": consultation.handed_off_at,
        "preferences": consultation.preferences or {},
        "assigned_staff_id": consultation.assigned_staff_id,
        "assigned_staff_name": staff.name if staff else None,
        "converted_to_proposal_id": consultation.converted_to_proposal_id,
        "created_at": consultation.created_at,
    }


class ConsultationService:
    """Service layer for trip consultations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ConsultationRepository()

    def create_handoff(self, data: ConsultationHandoff) -> dict:
        consultation = self.repo.create(
            self.db,
            **data.model_dump(),
            status="handed_off",
            handed_off_at=datetime.utcnow(),
        )
        self.db.commit()
        self.db.refresh(consultation)
        logger.info(f"📥 Consultation {consultation.share_code} handed off by {consultation.owner_email}")
        return {"success": True, "id": consultation.id, "share_code": consultation.share_code}

    def list_consultations(self, status: Optional[str]) -> dict:
        status = status or "pending"
        if status not in STATUS_FILTERS:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid status. Must be one of: {', '.join(STATUS_FILTERS)}",
            )
        consultations = self.repo.list_by_status(self.db, status)
        return {
            "consultations": [serialize_consultation(c) for c in consultations],
            "counts": self.repo.count_by_status(self.db),
        }

    def get_consultation(self, consultation_id: int) -> Consultation:
        consultation = self.repo.get_by_id(self.db, consultation_id)
        if not consultation:
            raise HTTPException(status_code=404, detail="Consultation not found")
        return consultation

    def update_consultation(self, consultation_id: int, data: ConsultationUpdate) -> dict:
        consultation = self.get_consultation(consultation_id)
        updates = data.model_dump(exclude_unset=True)

        if updates.get("assigned_staff_id") is not None:
            if not self.repo.get_staff_user(self.db, updates["assigned_staff_id"]):
                raise HTTPException(status_code=400, detail="Assigned user not found or is not staff")

        for key, value in updates.items():
            setattr(consultation, key, value)
        self.db.commit()
        self.db.refresh(consultation)
        return serialize_consultation(consultation)

    def assign_to(self, consultation_id: int, user: User) -> dict:
        consultation = self.get_consultation(consultation_id)
        consultation.assigned_staff_id = user.id
        self.db.commit()
        self.db.refresh(consultation)
        logger.info(f"👤 Consultation {consultation.id} assigned to {user.email}")
        return serialize_consultation(consultation)

    def convert_to_proposal(self, consultation_id: int, user: User) -> dict:
        """Create a draft trip proposal from the hand-off and link it"""
        consultation = self.get_consultation(consultation_id)
        if consultation.converted_to_proposal_id:
            raise HTTPException(status_code=400, detail="Consultation has already been converted to a proposal")

        proposal_data = ProposalCreate(
            customer_name=consultation.owner_name,
            customer_email=consultation.owner_email,
            customer_phone=consultation.owner_phone,
            trip_type=consultation.trip_type or "wine_tour",
            trip_title=consultation.title,
            party_size=consultation.expected_guests or 2,
            start_date=consultation.start_date,
            end_date=consultation.end_date,
            internal_notes=consultation.handoff_notes,
        )
        proposal = TripProposalService(self.db).create_proposal(
            proposal_data, user, consultation_id=consultation.id, commit=False
        )
        consultation.converted_to_proposal_id = proposal.id
        if consultation.assigned_staff_id is None:
            consultation.assigned_staff_id = user.id
        self.db.commit()

        logger.info(f"✅ Consultation {consultation.id} converted to proposal {proposal.proposal_number}")
        return {"success": True, "proposal_id": proposal.id, "proposal_number": proposal.proposal_number}
