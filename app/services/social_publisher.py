"""
Social post publishing via Buffer
Claims due posts with a status guard so a post is never sent twice
"""

import logging
from datetime import datetime
from typing import Any, Optional

import httpx
from sqlalchemy.orm import Session

from ..config import BUFFER_ACCESS_TOKEN, BUFFER_API_URL, SOCIAL_POST_MAX_RETRIES
from ..models_marketing import ScheduledPost, SocialAccount

logger = logging.getLogger(__name__)

BUFFER_TIMEOUT = 30.0


class PublishError(Exception):
    """A post could not be published"""


def claim_post(db: Session, post_id: int) -> bool:
    """Move a post from scheduled to publishing. False if another run already claimed it."""
    claimed = (
        db.query(ScheduledPost)
        .filter(ScheduledPost.id == post_id, ScheduledPost.status == "scheduled")
        .update({"status": "publishing"}, synchronize_session=False)
    )
    db.commit()
    return claimed == 1


def resolve_profile_id(db: Session, post: ScheduledPost) -> Optional[str]:
    """Buffer profile for the post's account, falling back to the active account on its platform"""
    account = None
    if post.social_account_id:
        account = db.query(SocialAccount).filter(SocialAccount.id == post.social_account_id).first()
    if account is None:
        account = (
            db.query(SocialAccount)
            .filter(SocialAccount.platform == post.platform, SocialAccount.is_active.is_(True))
            .order_by(SocialAccount.id)
            .first()
        )
    if account is None or not account.is_active:
        return None
    return account.buffer_profile_id


async def post_to_buffer(profile_id: str, post: ScheduledPost) -> dict[str, Any]:
    """Create an immediate Buffer update for the post"""
    payload = {
        "access_token": BUFFER_ACCESS_TOKEN,
        "profile_ids[]": profile_id,
        "text": post.content,
        "now": "true",
    }
    if post.link_url:
        payload["media[link]"] = post.link_url
    if post.media_urls:
        payload["media[photo]"] = post.media_urls[0]

    try:
        async with httpx.AsyncClient(timeout=BUFFER_TIMEOUT) as client:
            response = await client.post(f"{BUFFER_API_URL}/updates/create.json", data=payload)
    except httpx.HTTPError as e:
        raise PublishError(f"Buffer request failed: {e}") from e

    if response.status_code >= 400:
        raise PublishError(f"Buffer API error {response.status_code}: {response.text[:500]}")

    try:
        data = response.json()
    except ValueError as e:
        raise PublishError("Buffer returned an invalid response") from e
    if not isinstance(data, dict):
        raise PublishError("Buffer returned an unexpected response")
    if not data.get("success", True):
        raise PublishError(data.get("message") or "Buffer rejected the update")
    return data


def _buffer_update_id(data: dict[str, Any]) -> Optional[str]:
    updates = data.get("updates") or []
    if updates and isinstance(updates[0], dict):
        return updates[0].get("id")
    return data.get("id")


def record_failure(db: Session, post: ScheduledPost, error: str) -> str:
    """Bump retry_count. Returns the post's new status."""
    post.retry_count = (post.retry_count or 0) + 1
    post.error_message = error
    post.status = "scheduled" if post.retry_count < SOCIAL_POST_MAX_RETRIES else "failed"
    db.commit()
    return post.status


async def publish_due_posts(db: Session, now: Optional[datetime] = None) -> dict:
    """Publish every scheduled post that is due"""
    results = {"processed": 0, "published": 0, "failed": 0, "retried": 0, "skipped": 0}

    if not BUFFER_ACCESS_TOKEN:
        logger.warning("⚠️ BUFFER_ACCESS_TOKEN not configured - skipping social publishing")
        return results

    now = now or datetime.utcnow()
    due_ids = [
        row.id
        for row in db.query(ScheduledPost.id)
        .filter(ScheduledPost.status == "scheduled", ScheduledPost.scheduled_for <= now)
        .order_by(ScheduledPost.scheduled_for)
        .all()
    ]
    logger.info(f"📣 {len(due_ids)} social post(s) due for publishing")

    for post_id in due_ids:
        if not claim_post(db, post_id):
            results["skipped"] += 1
            continue

        results["processed"] += 1
        post = db.query(ScheduledPost).filter(ScheduledPost.id == post_id).first()

        try:
            profile_id = resolve_profile_id(db, post)
            if not profile_id:
                raise PublishError(f"No active Buffer profile for {post.platform}")

            data = await post_to_buffer(profile_id, post)
            post.buffer_post_id = _buffer_update_id(data)
            post.status = "published"
            post.published_at = datetime.utcnow()
            post.error_message = None
            db.commit()
            results["published"] += 1
            logger.info(f"✅ Published post {post.id} to {post.platform}")

        except PublishError as e:
            status = record_failure(db, post, str(e))
            if status == "failed":
                results["failed"] += 1
                logger.error(f"❌ Post {post.id} failed permanently after {post.retry_count} attempts: {e}")
            else:
                results["retried"] += 1
                logger.warning(f"⚠️ Post {post.id} failed (attempt {post.retry_count}), will retry: {e}")

        except Exception as e:
            db.rollback()
            status = record_failure(db, post, f"Unexpected error: {e}")
            results["failed" if status == "failed" else "retried"] += 1
            logger.error(f"❌ Unexpected error publishing post {post.id}: {e}", exc_info=True)

    return results
