"""Draft router - Admin view of draft proposals"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import ReminderToggle
from .service import DraftService

router = APIRouter(prefix="/api/admin/drafts", tags=["Drafts"])


def get_draft_service(db: Session = Depends(get_db)) -> DraftService:
    """Dependency injection for DraftService"""
    return DraftService(db)


@router.get("")
async def list_drafts(_: User = Depends(require_admin), service: DraftService = Depends(get_draft_service)):
    """Draft proposals, newest first, with their age"""
    return service.list_drafts()


@router.get("/summary")
async def drafts_summary(_: User = Depends(require_admin), service: DraftService = Depends(get_draft_service)):
    return service.summary()


@router.post("/{proposal_id}/reminders")
async def toggle_reminders(
    proposal_id: int,
    data: ReminderToggle,
    _: User = Depends(require_admin),
    service: DraftService = Depends(get_draft_service),
):
    return service.set_reminders(proposal_id, data.enabled)
