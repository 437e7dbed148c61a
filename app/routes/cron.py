"""
Scheduler entry points
Each job is also registered with the arq worker; these routes let an external
scheduler trigger the same work over HTTP
"""

import logging
import time
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import verify_cron_secret
from ..database import get_db
from ..services import competitor_monitoring
from ..services.compliance_notifications import run_compliance_notifications
from ..services.social_publisher import publish_due_posts
from ..services.status_automation import update_proposal_statuses
from ..services.weekly_report import run_weekly_report

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cron", tags=["Cron"], dependencies=[Depends(verify_cron_secret)])


@router.get("/publish-social-posts")
async def publish_social_posts(db: Session = Depends(get_db)):
    """Publish scheduled posts that are due (every 15 minutes)"""
    results = await publish_due_posts(db)
    return {"success": True, "timestamp": datetime.utcnow().isoformat(), **results}


@router.post("/competitor-check")
async def competitor_check(db: Session = Depends(get_db)):
    started_at = datetime.utcnow()
    start = time.monotonic()
    try:
        results = await competitor_monitoring.run_competitor_check(db)
    except Exception as e:
        logger.error(f"❌ Competitor check run failed: {e}")
        raise HTTPException(status_code=500, detail="Competitor check failed") from e

    return {
        "success": True,
        "started_at": started_at.isoformat(),
        "completed_at": datetime.utcnow().isoformat(),
        "duration_ms": int((time.monotonic() - start) * 1000),
        **results,
    }


@router.get("/competitor-check")
async def competitor_check_health(db: Session = Depends(get_db)):
    """Health check for the competitor monitor"""
    stats = competitor_monitoring.statistics(db)
    return {
        "status": "healthy",
        "last_check": stats["last_check_at"],
        "active_competitors": stats["active_competitors"],
        "unreviewed_changes": stats["unreviewed_changes"],
    }


@router.get("/weekly-marketing-report")
async def weekly_marketing_report(db: Session = Depends(get_db)):
    return await run_weekly_report(db)


@router.get("/compliance-notifications")
async def compliance_notifications(db: Session = Depends(get_db)):
    results = await run_compliance_notifications(db)
    return {"success": True, **results}


@router.get("/expire-proposals")
async def expire_proposals(db: Session = Depends(get_db)):
    return {"success": True, **update_proposal_statuses(db)}
