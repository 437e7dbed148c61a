"""Draft repository - Draft trip proposals awaiting completion"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models_proposal import TripProposal


class DraftRepository:
    @staticmethod
    def list_drafts(db: Session) -> list[TripProposal]:
        return (
            db.query(TripProposal)
            .filter(TripProposal.status == "draft")
            .order_by(TripProposal.created_at.desc(), TripProposal.id.desc())
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, proposal_id: int) -> Optional[TripProposal]:
        return db.query(TripProposal).filter(TripProposal.id == proposal_id).first()
