"""Draft service - Aging of draft proposals and reminder toggles"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models_proposal import TripProposal
from .repository import DraftRepository

logger = logging.getLogger(__name__)

RECENT_MAX_DAYS = 7
AGING_MAX_DAYS = 30


def age_bucket(age_days: int) -> str:
    if age_days <= RECENT_MAX_DAYS:
        return "recent"
    if age_days <= AGING_MAX_DAYS:
        return "aging"
    return "stale"


def draft_age_days(proposal: TripProposal, now: Optional[datetime] = None) -> int:
    now = now or datetime.utcnow()
    created = proposal.created_at or now
    return max(0, (now - created).days)


class DraftService:
    """Service layer for draft proposals"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DraftRepository()

    def list_drafts(self) -> dict:
        now = datetime.utcnow()
        drafts = []
        for proposal in self.repo.list_drafts(self.db):
            days = draft_age_days(proposal, now)
            drafts.append(
                {
                    "id": proposal.id,
                    "proposal_number": proposal.proposal_number,
                    "customer_name": proposal.customer_name,
                    "customer_email": proposal.customer_email,
                    "trip_title": proposal.trip_title,
                    "start_date": proposal.start_date.isoformat() if proposal.start_date else None,
                    "total": proposal.total,
                    "created_at": proposal.created_at,
                    "age_days": days,
                    "age_bucket": age_bucket(days),
                    "draft_reminders_enabled": proposal.draft_reminders_enabled,
                }
            )
        return {"drafts": drafts, "total": len(drafts)}

    def summary(self) -> dict:
        now = datetime.utcnow()
        counts = {"total": 0, "recent": 0, "aging": 0, "stale": 0}
        for proposal in self.repo.list_drafts(self.db):
            counts["total"] += 1
            counts[age_bucket(draft_age_days(proposal, now))] += 1
        return counts

    def set_reminders(self, proposal_id: int, enabled: bool) -> dict:
        proposal = self.repo.get_by_id(self.db, proposal_id)
        if not proposal:
            raise HTTPException(status_code=404, detail="Proposal not found")
        if proposal.status != "draft":
            raise HTTPException(status_code=400, detail="Reminders can only be toggled on draft proposals")

        proposal.draft_reminders_enabled = enabled
        self.db.commit()
        logger.info(f"🔔 Draft reminders {'enabled' if enabled else 'disabled'} for {proposal.proposal_number}")
        return {"success": True, "id": proposal.id, "draft_reminders_enabled": enabled}
