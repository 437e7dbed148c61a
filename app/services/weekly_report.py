"""
Weekly marketing report
Aggregates last week's published posts, asks Claude for recommendations and
emails the digest to the office
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from anthropic import AsyncAnthropic
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..config import ADMIN_EMAIL, ANTHROPIC_API_KEY, ANTHROPIC_MODEL
from ..email_service import send_weekly_marketing_report
from ..models_marketing import ContentSuggestion, MarketingReportLog, ScheduledPost

logger = logging.getLogger(__name__)

CORE_PLATFORMS = ("instagram", "facebook", "linkedin")
SUMMARY_MAX_TOKENS = 800
SUMMARY_NO_KEY = "AI summary unavailable (API key not configured)."
SUMMARY_FAILED = "AI summary unavailable (generation failed)."


def report_period(today: Optional[date] = None) -> tuple[datetime, datetime]:
    """The last completed Monday-Sunday week"""
    today = today or datetime.utcnow().date()
    days_back = 6 if today.weekday() == 6 else today.weekday() + 7
    start = today - timedelta(days=days_back)
    end = start + timedelta(days=6)
    return datetime.combine(start, time.min), datetime.combine(end, time.max)


def _label(value: datetime) -> str:
    return value.strftime("%b %d, %Y")


def gather_metrics(db: Session, start: datetime, end: datetime) -> dict[str, Any]:
    published = db.query(ScheduledPost).filter(
        ScheduledPost.status == "published",
        ScheduledPost.published_at >= start,
        ScheduledPost.published_at <= end,
    )

    count, engagement, impressions, clicks = published.with_entities(
        func.count(ScheduledPost.id),
        func.coalesce(func.sum(ScheduledPost.engagement), 0),
        func.coalesce(func.sum(ScheduledPost.impressions), 0),
        func.coalesce(func.sum(ScheduledPost.clicks), 0),
    ).one()
    metrics = {
        "posts_published": int(count or 0),
        "total_engagement": int(engagement or 0),
        "total_impressions": int(impressions or 0),
        "total_clicks": int(clicks or 0),
    }

    top = published.order_by(ScheduledPost.engagement.desc(), ScheduledPost.id).first()
    top_post = None
    if top and (top.engagement or 0) > 0:
        top_post = {
            "id": top.id,
            "platform": top.platform,
            "content": top.content,
            "engagement": top.engagement or 0,
        }

    platform_rows = (
        published.with_entities(ScheduledPost.platform, func.count(ScheduledPost.id))
        .group_by(ScheduledPost.platform)
        .all()
    )
    platform_breakdown = sorted(
        ({"platform": platform, "posts": int(posts)} for platform, posts in platform_rows),
        key=lambda row: (-row["posts"], row["platform"]),
    )
    posted = {row["platform"] for row in platform_breakdown}
    content_gaps = [p for p in CORE_PLATFORMS if p not in posted]

    suggestions = db.query(ContentSuggestion).filter(
        ContentSuggestion.suggestion_date >= start.date(), ContentSuggestion.suggestion_date <= end.date()
    )
    suggestion_stats = {
        "generated": suggestions.count(),
        "accepted": suggestions.filter(ContentSuggestion.status.in_(["accepted", "modified"])).count(),
    }

    return {
        "metrics": metrics,
        "top_post": top_post,
        "platform_breakdown": platform_breakdown,
        "content_gaps": content_gaps,
        "suggestions": suggestion_stats,
    }


def _summary_prompt(period_label: str, data: dict[str, Any]) -> str:
    metrics = data["metrics"]
    lines = [
        f"Weekly social media results for a Walla Walla wine tour company ({period_label}):",
        f"- Posts published: {metrics['posts_published']}",
        f"- Engagement: {metrics['total_engagement']}",
        f"- Impressions: {metrics['total_impressions']}",
        f"- Clicks: {metrics['total_clicks']}",
        "- Posts by platform: "
        + (", ".join(f"{r['platform']} {r['posts']}" for r in data["platform_breakdown"]) or "none"),
        f"- Platforms with no posts: {', '.join(data['content_gaps']) or 'none'}",
        f"- Content suggestions accepted: {data['suggestions']['accepted']} of {data['suggestions']['generated']}",
    ]
    if data["top_post"]:
        lines.append(f"- Top post ({data['top_post']['platform']}): {data['top_post']['content'][:300]}")
    lines.append("")
    lines.append(
        "Write a short summary of the week and 3 to 5 concrete recommendations for next week. "
        "Plain text, no markdown headings."
    )
    return "\n".join(lines)


async def generate_ai_summary(period_label: str, data: dict[str, Any]) -> str:
    if not ANTHROPIC_API_KEY:
        logger.warning("⚠️ ANTHROPIC_API_KEY not configured - skipping AI summary")
        return SUMMARY_NO_KEY

    try:
        client = AsyncAnthropic(api_key=ANTHROPIC_API_KEY)
        message = await client.messages.create(
            model=ANTHROPIC_MODEL,
            max_tokens=SUMMARY_MAX_TOKENS,
            messages=[{"role": "user", "content": _summary_prompt(period_label, data)}],
        )
        text = "".join(block.text for block in message.content if getattr(block, "type", "") == "text").strip()
        return text or SUMMARY_FAILED
    except Exception as e:
        logger.error(f"❌ AI summary generation failed: {e}")
        return SUMMARY_FAILED


async def run_weekly_report(db: Session, today: Optional[date] = None) -> dict[str, Any]:
    """Build, email and log last week's marketing report"""
    start, end = report_period(today)
    start_label, end_label = _label(start), _label(end)
    period_label = f"{start_label} - {end_label}"

    data = gather_metrics(db, start, end)
    ai_summary = await generate_ai_summary(period_label, data)

    email_sent = False
    try:
        await send_weekly_marketing_report(
            to=ADMIN_EMAIL,
            start_label=start_label,
            end_label=end_label,
            metrics=data["metrics"],
            platform_breakdown=data["platform_breakdown"],
            content_gaps=data["content_gaps"],
            top_post=data["top_post"],
            suggestions=data["suggestions"],
            ai_summary=ai_summary,
        )
        email_sent = True
    except Exception as e:
        logger.error(f"❌ Failed to send weekly marketing report: {e}")

    db.add(
        MarketingReportLog(
            report_type="weekly_summary",
            report_date=end.date(),
            content=ai_summary,
            metrics={**data["metrics"], "platform_breakdown": data["platform_breakdown"], **data["suggestions"]},
            sent_to=ADMIN_EMAIL,
            sent_at=datetime.utcnow() if email_sent else None,
        )
    )
    db.commit()

    logger.info(f"📊 Weekly marketing report for {period_label} complete (email_sent={email_sent})")
    return {
        "success": True,
        "period": {"start": start.isoformat(), "end": end.isoformat(), "label": period_label},
        "metrics": data["metrics"],
        "email_sent": email_sent,
    }
