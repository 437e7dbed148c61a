"""Trip proposal repository - Database operations for proposals"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from ...models_proposal import (
    TripProposal,
    TripProposalActivity,
    TripProposalDay,
    TripProposalInclusion,
    TripProposalStop,
)


class TripProposalRepository:
    """Repository for trip proposal database operations"""

    @staticmethod
    def get_next_proposal_number(db: Session, year: int) -> str:
        """Next TP-YYYY-NNNNN number for the year"""
        prefix = f"TP-{year}-"
        latest = (
            db.query(func.max(TripProposal.proposal_number))
            .filter(TripProposal.proposal_number.like(f"{prefix}%"))
            .scalar()
        )
        sequence = int(latest[len(prefix):]) + 1 if latest else 1
        return f"{prefix}{sequence:05d}"

    @staticmethod
    def list_proposals(
        db: Session,
        status: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[TripProposal], int]:
        """Filtered page of proposals plus the total match count"""
        query = db.query(TripProposal)

        if status and status != "all":
            query = query.filter(TripProposal.status == status)

        if search:
            term = f"%{search.lower()}%"
            query = query.filter(
                or_(
                    TripProposal.customer_name.ilike(term),
                    TripProposal.customer_email.ilike(term),
                    TripProposal.proposal_number.ilike(term),
                    TripProposal.trip_title.ilike(term),
                )
            )

        total = query.count()
        proposals = (
            query.order_by(TripProposal.created_at.desc(), TripProposal.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return proposals, total

    @staticmethod
    def get_by_id(db: Session, proposal_id: int) -> Optional[TripProposal]:
        return (
            db.query(TripProposal)
            .options(
                selectinload(TripProposal.days).selectinload(TripProposalDay.stops),
                selectinload(TripProposal.inclusions),
            )
            .filter(TripProposal.id == proposal_id)
            .first()
        )

    @staticmethod
    def get_by_number(db: Session, proposal_number: str) -> Optional[TripProposal]:
        return db.query(TripProposal).filter(TripProposal.proposal_number == proposal_number.upper()).first()

    @staticmethod
    def create(db: Session, **data) -> TripProposal:
        proposal = TripProposal(**data)
        db.add(proposal)
        db.flush()
        return proposal

    @staticmethod
    def update(db: Session, proposal: TripProposal, **updates) -> TripProposal:
        """Apply non-None updates"""
        for key, value in updates.items():
            if value is not None and hasattr(proposal, key):
                setattr(proposal, key, value)
        return proposal

    @staticmethod
    def delete(db: Session, proposal: TripProposal) -> None:
        db.delete(proposal)
        db.commit()

    # Days and stops
    @staticmethod
    def get_day(db: Session, proposal_id: int, day_id: int) -> Optional[TripProposalDay]:
        return (
            db.query(TripProposalDay)
            .filter(TripProposalDay.id == day_id, TripProposalDay.proposal_id == proposal_id)
            .first()
        )

    @staticmethod
    def get_stop(db: Session, proposal_id: int, stop_id: int) -> Optional[TripProposalStop]:
        return (
            db.query(TripProposalStop)
            .join(TripProposalDay)
            .filter(TripProposalStop.id == stop_id, TripProposalDay.proposal_id == proposal_id)
            .first()
        )

    # Inclusions
    @staticmethod
    def get_inclusion(db: Session, proposal_id: int, inclusion_id: int) -> Optional[TripProposalInclusion]:
        return (
            db.query(TripProposalInclusion)
            .filter(
                TripProposalInclusion.id == inclusion_id,
                TripProposalInclusion.proposal_id == proposal_id,
            )
            .first()
        )

    @staticmethod
    def log_activity(
        db: Session,
        proposal: TripProposal,
        activity_type: str,
        description: str,
        actor: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> TripProposalActivity:
        activity = TripProposalActivity(
            proposal_id=proposal.id,
            activity_type=activity_type,
            description=description,
            actor=actor,
            activity_metadata=metadata,
        )
        db.add(activity)
        return activity
