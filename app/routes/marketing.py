"""
Marketing admin API
Scheduled social posts, Buffer accounts, content suggestions and competitor intelligence
"""

import logging
from datetime import datetime, timezone
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db
from ..models import User
from ..models_marketing import (
    Competitor,
    CompetitorChange,
    CompetitorSwot,
    ContentSuggestion,
    ScheduledPost,
    SocialAccount,
)
from ..services import competitor_monitoring

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/marketing", tags=["Marketing"])

Platform = Literal["instagram", "facebook", "linkedin", "tiktok", "twitter", "pinterest"]
CompetitorType = Literal["tour_operator", "content_benchmark", "indirect", "aggregator"]
Level = Literal["high", "medium", "low"]

EDITABLE_POST_STATUSES = {"draft", "scheduled", "failed"}
CANCELLABLE_POST_STATUSES = {"draft", "scheduled", "failed"}


# ============================================================================
# SCHEMAS
# ============================================================================


class PostCreate(BaseModel):
    platform: Platform
    content: str = Field(..., min_length=1, max_length=5000)
    media_urls: list[str] = Field(default_factory=list)
    link_url: Optional[str] = Field(None, max_length=500)
    scheduled_for: Optional[datetime] = None
    social_account_id: Optional[int] = None
    status: Literal["draft", "scheduled"] = "draft"


class PostUpdate(BaseModel):
    platform: Optional[Platform] = None
    content: Optional[str] = Field(None, min_length=1, max_length=5000)
    media_urls: Optional[list[str]] = None
    link_url: Optional[str] = Field(None, max_length=500)
    scheduled_for: Optional[datetime] = None
    social_account_id: Optional[int] = None
    status: Optional[Literal["draft", "scheduled"]] = None


class AccountCreate(BaseModel):
    platform: Platform
    account_name: str = Field(..., min_length=1, max_length=255)
    buffer_profile_id: Optional[str] = Field(None, max_length=100)
    is_active: bool = True


class SuggestionUpdate(BaseModel):
    status: Literal["pending", "accepted", "modified", "rejected"]


class CompetitorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    website_url: str = Field(..., max_length=500)
    description: Optional[str] = None
    competitor_type: CompetitorType = "tour_operator"
    priority_level: Level = "medium"
    monitor_pricing: bool = True
    monitor_promotions: bool = True
    monitor_packages: bool = True
    monitor_content: bool = False

    @field_validator("website_url")
    @classmethod
    def validate_website_url(cls, v):
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("Website URL must start with http:// or https://")
        return v


class CompetitorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    website_url: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    competitor_type: Optional[CompetitorType] = None
    priority_level: Optional[Level] = None
    monitor_pricing: Optional[bool] = None
    monitor_promotions: Optional[bool] = None
    monitor_packages: Optional[bool] = None
    monitor_content: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("website_url")
    @classmethod
    def validate_website_url(cls, v):
        if v is not None and not v.strip().startswith(("http://", "https://")):
            raise ValueError("Website URL must start with http:// or https://")
        return v.strip() if v else v


class ChangeReview(BaseModel):
    action_taken: Optional[str] = Field(None, max_length=5000)


class ChangeDismiss(BaseModel):
    notes: Optional[str] = Field(None, max_length=5000)


class SwotCreate(BaseModel):
    category: Literal["strength", "weakness", "opportunity", "threat"]
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    impact_level: Level = "medium"


# ============================================================================
# SERIALIZERS
# ============================================================================


def serialize_post(post: ScheduledPost) -> dict:
    return {
        "id": post.id,
        "platform": post.platform,
        "content": post.content,
        "media_urls": post.media_urls or [],
        "link_url": post.link_url,
        "scheduled_for": post.scheduled_for,
        "status": post.status,
        "retry_count": post.retry_count,
        "error_message": post.error_message,
        "buffer_post_id": post.buffer_post_id,
        "published_at": post.published_at,
        "engagement": post.engagement or 0,
        "impressions": post.impressions or 0,
        "clicks": post.clicks or 0,
        "social_account_id": post.social_account_id,
        "created_at": post.created_at,
    }


def serialize_competitor(competitor: Competitor) -> dict:
    return {
        "id": competitor.id,
        "name": competitor.name,
        "website_url": competitor.website_url,
        "description": competitor.description,
        "competitor_type": competitor.competitor_type,
        "priority_level": competitor.priority_level,
        "monitor_pricing": competitor.monitor_pricing,
        "monitor_promotions": competitor.monitor_promotions,
        "monitor_packages": competitor.monitor_packages,
        "monitor_content": competitor.monitor_content,
        "is_active": competitor.is_active,
        "last_checked_at": competitor.last_checked_at,
        "last_change_detected_at": competitor.last_change_detected_at,
    }


def serialize_change(change: CompetitorChange) -> dict:
    return {
        "id": change.id,
        "competitor_id": change.competitor_id,
        "competitor_name": change.competitor.name if change.competitor else None,
        "change_type": change.change_type,
        "significance": change.significance,
        "title": change.title,
        "description": change.description,
        "threat_level": change.threat_level,
        "recommended_actions": change.recommended_actions or [],
        "source_url": change.source_url,
        "status": change.status,
        "reviewed_by": change.reviewed_by,
        "reviewed_at": change.reviewed_at,
        "action_taken": change.action_taken,
        "detected_at": change.detected_at,
    }


def serialize_swot(item: CompetitorSwot) -> dict:
    return {
        "id": item.id,
        "competitor_id": item.competitor_id,
        "category": item.category,
        "title": item.title,
        "description": item.description,
        "impact_level": item.impact_level,
        "created_at": item.created_at,
    }


def _get_post(db: Session, post_id: int) -> ScheduledPost:
    post = db.query(ScheduledPost).filter(ScheduledPost.id == post_id).first()
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


def _get_competitor(db: Session, competitor_id: int) -> Competitor:
    competitor = db.query(Competitor).filter(Competitor.id == competitor_id).first()
    if not competitor:
        raise HTTPException(status_code=404, detail="Competitor not found")
    return competitor


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Stored timestamps are naive UTC
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _check_schedule(status: str, scheduled_for: Optional[datetime]) -> None:
    if status != "scheduled":
        return
    if not scheduled_for:
        raise HTTPException(status_code=400, detail="scheduled_for is required to schedule a post")
    if _naive_utc(scheduled_for) <= datetime.utcnow():
        raise HTTPException(status_code=400, detail="scheduled_for must be in the future")


# ============================================================================
# POSTS
# ============================================================================


@router.get("/posts")
async def list_posts(
    status: Optional[str] = Query(None),
    platform: Optional[str] = Query(None),
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(ScheduledPost)
    if status and status != "all":
        query = query.filter(ScheduledPost.status == status)
    if platform:
        query = query.filter(ScheduledPost.platform == platform)
    posts = query.order_by(ScheduledPost.scheduled_for.desc(), ScheduledPost.id.desc()).all()
    return {"posts": [serialize_post(p) for p in posts], "total": len(posts)}


@router.post("/posts", status_code=201)
async def create_post(data: PostCreate, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    """Create a draft, or schedule a post for a future time"""
    _check_schedule(data.status, data.scheduled_for)
    values = data.model_dump()
    values["scheduled_for"] = _naive_utc(values["scheduled_for"])

    post = ScheduledPost(**values, retry_count=0, created_by=user.id)
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info(f"📝 Post {post.id} created for {post.platform} ({post.status})")
    return serialize_post(post)


@router.patch("/posts/{post_id}")
async def update_post(
    post_id: int, data: PostUpdate, _: User = Depends(require_admin), db: Session = Depends(get_db)
):
    post = _get_post(db, post_id)
    if post.status not in EDITABLE_POST_STATUSES:
        raise HTTPException(status_code=400, detail=f"Cannot edit a post that is {post.status}")

    updates = data.model_dump(exclude_unset=True)
    new_status = updates.get("status", post.status)
    if new_status == "failed":
        new_status = "draft"
    _check_schedule(new_status, updates.get("scheduled_for", post.scheduled_for))

    if "scheduled_for" in updates:
        updates["scheduled_for"] = _naive_utc(updates["scheduled_for"])
    for key, value in updates.items():
        setattr(post, key, value)
    post.status = new_status
    db.commit()
    db.refresh(post)
    return serialize_post(post)


@router.post("/posts/{post_id}/cancel")
async def cancel_post(post_id: int, _: User = Depends(require_admin), db: Session = Depends(get_db)):
    post = _get_post(db, post_id)
    if post.status not in CANCELLABLE_POST_STATUSES:
        raise HTTPException(status_code=400, detail=f"Cannot cancel a post that is {post.status}")
    post.status = "cancelled"
    db.commit()
    return serialize_post(post)


@router.post("/posts/{post_id}/retry")
async def retry_post(post_id: int, _: User = Depends(require_admin), db: Session = Depends(get_db)):
    """Put a failed post back in the publishing queue"""
    post = _get_post(db, post_id)
    if post.status != "failed":
        raise HTTPException(status_code=400, detail="Only failed posts can be retried")
    post.status = "scheduled"
    post.retry_count = 0
    post.error_message = None
    if not post.scheduled_for or post.scheduled_for < datetime.utcnow():
        post.scheduled_for = datetime.utcnow()
    db.commit()
    return serialize_post(post)


# ============================================================================
# ACCOUNTS & SUGGESTIONS
# ============================================================================


@router.get("/accounts")
async def list_accounts(_: User = Depends(require_admin), db: Session = Depends(get_db)):
    accounts = db.query(SocialAccount).order_by(SocialAccount.platform, SocialAccount.id).all()
    return [
        {
            "id": a.id,
            "platform": a.platform,
            "account_name": a.account_name,
            "buffer_profile_id": a.buffer_profile_id,
            "is_active": a.is_active,
        }
        for a in accounts
    ]


@router.post("/accounts", status_code=201)
async def create_account(data: AccountCreate, _: User = Depends(require_admin), db: Session = Depends(get_db)):
    account = SocialAccount(**data.model_dump())
    db.add(account)
    db.commit()
    db.refresh(account)
    return {"id": account.id, **data.model_dump()}


@router.get("/suggestions")
async def list_suggestions(
    status: Optional[str] = Query(None), _: User = Depends(require_admin), db: Session = Depends(get_db)
):
    query = db.query(ContentSuggestion)
    if status:
        query = query.filter(ContentSuggestion.status == status)
    suggestions = query.order_by(ContentSuggestion.suggestion_date.desc(), ContentSuggestion.id.desc()).all()
    return [
        {
            "id": s.id,
            "suggestion_date": s.suggestion_date.isoformat(),
            "platform": s.platform,
            "content": s.content,
            "status": s.status,
        }
        for s in suggestions
    ]


@router.patch("/suggestions/{suggestion_id}")
async def update_suggestion(
    suggestion_id: int, data: SuggestionUpdate, _: User = Depends(require_admin), db: Session = Depends(get_db)
):
    suggestion = db.query(ContentSuggestion).filter(ContentSuggestion.id == suggestion_id).first()
    if not suggestion:
        raise HTTPException(status_code=404, detail="Suggestion not found")
    suggestion.status = data.status
    db.commit()
    return {"id": suggestion.id, "status": suggestion.status}


# ============================================================================
# COMPETITORS
# ============================================================================


@router.get("/competitors")
async def list_competitors(
    include_inactive: bool = Query(False), _: User = Depends(require_admin), db: Session = Depends(get_db)
):
    query = db.query(Competitor)
    if not include_inactive:
        query = query.filter(Competitor.is_active.is_(True))
    competitors = query.order_by(Competitor.name).all()
    return {
        "competitors": [serialize_competitor(c) for c in competitors],
        "statistics": competitor_monitoring.statistics(db),
    }


@router.post("/competitors", status_code=201)
async def create_competitor(
    data: CompetitorCreate, _: User = Depends(require_admin), db: Session = Depends(get_db)
):
    competitor = Competitor(**data.model_dump())
    db.add(competitor)
    db.commit()
    db.refresh(competitor)
    logger.info(f"✅ Competitor added: {competitor.name}")
    return serialize_competitor(competitor)


@router.patch("/competitors/{competitor_id}")
async def update_competitor(
    competitor_id: int, data: CompetitorUpdate, _: User = Depends(require_admin), db: Session = Depends(get_db)
):
    competitor = _get_competitor(db, competitor_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(competitor, key, value)
    db.commit()
    db.refresh(competitor)
    return serialize_competitor(competitor)


@router.get("/competitors/changes")
async def list_changes(
    status: Optional[str] = Query(None),
    competitor_id: Optional[int] = Query(None),
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(CompetitorChange)
    if status and status != "all":
        query = query.filter(CompetitorChange.status == status)
    if competitor_id:
        query = query.filter(CompetitorChange.competitor_id == competitor_id)
    changes = query.order_by(CompetitorChange.detected_at.desc(), CompetitorChange.id.desc()).all()
    return {"changes": [serialize_change(c) for c in changes], "total": len(changes)}


@router.get("/competitors/changes/unreviewed-count")
async def unreviewed_count(_: User = Depends(require_admin), db: Session = Depends(get_db)):
    return {"count": competitor_monitoring.unreviewed_changes_count(db)}


@router.post("/competitors/changes/{change_id}/review")
async def review_change(
    change_id: int, data: ChangeReview, user: User = Depends(require_admin), db: Session = Depends(get_db)
):
    change = competitor_monitoring.mark_change_reviewed(db, change_id, user.id, data.action_taken)
    return serialize_change(change)


@router.post("/competitors/changes/{change_id}/dismiss")
async def dismiss_change(
    change_id: int, data: ChangeDismiss, user: User = Depends(require_admin), db: Session = Depends(get_db)
):
    change = competitor_monitoring.dismiss_change(db, change_id, user.id, data.notes)
    return serialize_change(change)


@router.get("/competitors/{competitor_id}/swot")
async def list_swot(competitor_id: int, _: User = Depends(require_admin), db: Session = Depends(get_db)):
    _get_competitor(db, competitor_id)
    items = (
        db.query(CompetitorSwot)
        .filter(CompetitorSwot.competitor_id == competitor_id, CompetitorSwot.is_active.is_(True))
        .order_by(CompetitorSwot.category, CompetitorSwot.id)
        .all()
    )
    return [serialize_swot(i) for i in items]


@router.post("/competitors/{competitor_id}/swot", status_code=201)
async def create_swot(
    competitor_id: int, data: SwotCreate, _: User = Depends(require_admin), db: Session = Depends(get_db)
):
    _get_competitor(db, competitor_id)
    item = CompetitorSwot(competitor_id=competitor_id, **data.model_dump())
    db.add(item)
    db.commit()
    db.refresh(item)
    return serialize_swot(item)


@router.delete("/competitors/{competitor_id}/swot/{swot_id}")
async def delete_swot(
    competitor_id: int, swot_id: int, _: User = Depends(require_admin), db: Session = Depends(get_db)
):
    item = (
        db.query(CompetitorSwot)
        .filter(CompetitorSwot.id == swot_id, CompetitorSwot.competitor_id == competitor_id)
        .first()
    )
    if not item:
        raise HTTPException(status_code=404, detail="SWOT item not found")
    db.delete(item)
    db.commit()
    return {"success": True, "id": swot_id}
