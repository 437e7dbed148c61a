"""
Trip proposal status rules and automated transitions
Proposal lifecycle: draft → sent → viewed → accepted → booked
Sent/viewed proposals expire once valid_until has passed
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ..models_proposal import TripProposal, TripProposalActivity

logger = logging.getLogger(__name__)

VALID_TRANSITIONS = {
    "draft": {"sent", "declined"},
    "sent": {"viewed", "accepted", "declined", "expired"},
    "viewed": {"accepted", "declined", "expired", "sent"},
    "accepted": {"booked"},
    "declined": {"draft"},
    "expired": {"draft"},
    "booked": set(),
}


def can_transition(current: str, new: str) -> bool:
    return new in VALID_TRANSITIONS.get(current, set())


def validate_status_transition(current: str, new: str) -> None:
    """Raise ValueError when a proposal cannot move from current to new"""
    if new not in VALID_TRANSITIONS:
        raise ValueError(f"Unknown proposal status: {new}")
    if not can_transition(current, new):
        allowed = ", ".join(sorted(VALID_TRANSITIONS.get(current, set()))) or "none"
        raise ValueError(f"Cannot change status from {current} to {new} (allowed: {allowed})")


def update_proposal_statuses(db: Session) -> dict:
    """
    Expire proposals the customer never acted on.
    Should be run as a scheduled job (daily cron)

    Returns:
        dict: Summary of status changes made
    """
    summary = {"checked": 0, "expired": 0, "errors": 0}
    today = datetime.utcnow().date()

    candidates = (
        db.query(TripProposal)
        .filter(
            TripProposal.status.in_(["sent", "viewed"]),
            TripProposal.valid_until.isnot(None),
            TripProposal.valid_until < today,
        )
        .all()
    )
    summary["checked"] = len(candidates)

    for proposal in candidates:
        try:
            previous = proposal.status
            proposal.status = "expired"
            db.add(
                TripProposalActivity(
                    proposal_id=proposal.id,
                    activity_type="status_changed",
                    description=f"Status changed from {previous} to expired (valid until {proposal.valid_until})",
                    actor="system",
                    activity_metadata={"from": previous, "to": "expired"},
                )
            )
            db.commit()
            summary["expired"] += 1
            logger.info(f"✅ Proposal {proposal.proposal_number} transitioned: {previous} → expired")
        except Exception as e:
            db.rollback()
            summary["errors"] += 1
            logger.error(f"❌ Failed to expire proposal {proposal.id}: {str(e)}")

    logger.info(
        f"Proposal status automation complete: {summary['expired']} expired of {summary['checked']} checked"
    )
    return summary
