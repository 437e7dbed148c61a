"""
Competitor monitoring
Fetches competitor pages, stores a hashed text snapshot per page and records
changes detected by keyword and price heuristics
"""

import hashlib
import logging
import re
from datetime import datetime
from typing import Any, Optional

import httpx
from bs4 import BeautifulSoup
from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models_marketing import Competitor, CompetitorChange, CompetitorSnapshot

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; WallaWallaTravel/1.0; +https://wallawalla.travel)"
FETCH_TIMEOUT = 30.0
MAX_TEXT_LENGTH = 50000

PRICE_PATTERN = re.compile(r"\$\d+(?:\.\d{2})?")

PROMO_KEYWORDS = ["special", "discount", "save", "off", "deal", "promotion", "limited", "free"]
PACKAGE_KEYWORDS = ["new tour", "new package", "introducing", "now offering", "experience"]

CHANGE_LABELS = {
    "pricing": "Pricing",
    "promotion": "Promotion",
    "new_offering": "New offering",
    "content": "Content",
}

OPEN_CHANGE_STATUSES = ("new",)


# ============================================================================
# PAGE CONTENT
# ============================================================================


def extract_text(page_html: str) -> str:
    """Visible text of a page, trimmed for storage"""
    soup = BeautifulSoup(page_html or "", "lxml")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    text = soup.get_text(separator=" ", strip=True)
    return re.sub(r"\s+", " ", text)[:MAX_TEXT_LENGTH]


def hash_content(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


async def fetch_page(url: str) -> dict[str, Any]:
    """Fetch a page. Failures are reported in the result, never raised."""
    try:
        async with httpx.AsyncClient(timeout=FETCH_TIMEOUT, follow_redirects=True) as client:
            response = await client.get(url, headers={"User-Agent": USER_AGENT})
    except httpx.HTTPError as e:
        return {"success": False, "error": str(e) or e.__class__.__name__}

    if not response.is_success:
        return {"success": False, "status": response.status_code, "error": f"HTTP {response.status_code}"}

    text = extract_text(response.text)
    return {"success": True, "status": response.status_code, "text": text, "hash": hash_content(text)}


# ============================================================================
# CHANGE ANALYSIS
# ============================================================================


def _average_price(prices: list[str]) -> float:
    if not prices:
        return 0.0
    return sum(float(p.lstrip("$")) for p in prices) / len(prices)


def _price_change_percent(old_prices: list[str], new_prices: list[str]) -> float:
    if not old_prices:
        return 100.0
    if not new_prices:
        return -100.0
    old_avg = _average_price(old_prices)
    return (_average_price(new_prices) - old_avg) / old_avg * 100


def analyze_change(old_text: str, new_text: str) -> Optional[dict[str, str]]:
    """
    Classify the difference between two page texts

    Returns change_type, significance, description and threat_level for the
    first heuristic that matches, or None when the change looks insignificant.
    """
    old_lower = (old_text or "").lower()
    new_lower = (new_text or "").lower()

    old_prices = sorted(PRICE_PATTERN.findall(old_lower))
    new_prices = sorted(PRICE_PATTERN.findall(new_lower))
    if old_prices != new_prices:
        pct = _price_change_percent(old_prices, new_prices)
        if abs(pct) > 15:
            significance = "high"
        elif abs(pct) > 5:
            significance = "medium"
        else:
            significance = "low"
        if pct < -10:
            threat = "high"
        elif pct < 0:
            threat = "medium"
        else:
            threat = "low"
        return {
            "change_type": "pricing",
            "significance": significance,
            "description": f"Pricing {'decreased' if pct < 0 else 'increased'} by approximately {abs(pct):.0f}%",
            "threat_level": threat,
        }

    had_promo = any(k in old_lower for k in PROMO_KEYWORDS)
    has_promo = any(k in new_lower for k in PROMO_KEYWORDS)
    if has_promo and not had_promo:
        return {
            "change_type": "promotion",
            "significance": "medium",
            "description": "New promotional content detected on the page",
            "threat_level": "medium",
        }

    had_package = any(k in old_lower for k in PACKAGE_KEYWORDS)
    has_package = any(k in new_lower for k in PACKAGE_KEYWORDS)
    if has_package and not had_package:
        return {
            "change_type": "new_offering",
            "significance": "medium",
            "description": "New tour or package offering detected",
            "threat_level": "low",
        }

    old_len = len(old_text or "")
    ratio = abs(len(new_text or "") - old_len) / max(old_len, 1)
    if ratio > 0.2:
        return {
            "change_type": "content",
            "significance": "medium" if ratio > 0.5 else "low",
            "description": f"Significant content update detected ({ratio * 100:.0f}% change in content length)",
            "threat_level": "none",
        }

    return None


def recommended_actions(change_type: str, threat_level: str) -> list[str]:
    if change_type == "pricing":
        if threat_level == "high":
            return [
                "Review your pricing strategy immediately",
                "Consider matching or highlighting value differences",
                "Prepare talking points for sales team",
            ]
        return ["Monitor for further price changes", "Document in competitive pricing spreadsheet"]
    if change_type == "promotion":
        return [
            "Evaluate if response promotion is needed",
            "Update sales team on competitor offer",
            "Consider counter-promotion if high threat",
        ]
    if change_type == "new_offering":
        return [
            "Research the new offering details",
            "Assess if similar offering makes sense for us",
            "Update competitive comparison materials",
        ]
    if change_type == "content":
        return ["Review content changes for SEO implications", "Update your own content if needed"]
    return []


# ============================================================================
# MONITORING RUN
# ============================================================================


def pages_to_check(competitor: Competitor) -> list[tuple[str, str]]:
    base_url = competitor.website_url.rstrip("/")
    pages = [("homepage", base_url)]
    if competitor.monitor_pricing:
        pages.append(("pricing", f"{base_url}/pricing"))
    if competitor.monitor_packages:
        pages.append(("tours", f"{base_url}/tours"))
    return pages


def _upsert_snapshot(
    db: Session, competitor: Competitor, page_type: str, url: str, fetched: dict[str, Any]
) -> Optional[tuple[str, Optional[str]]]:
    """Store the new snapshot and return the previous (hash, text), if any"""
    snapshot = (
        db.query(CompetitorSnapshot)
        .filter(CompetitorSnapshot.competitor_id == competitor.id, CompetitorSnapshot.page_type == page_type)
        .first()
    )
    previous = None
    if snapshot is None:
        snapshot = CompetitorSnapshot(competitor_id=competitor.id, page_type=page_type)
        db.add(snapshot)
    else:
        previous = (snapshot.content_hash, snapshot.content_text)

    snapshot.page_url = url
    snapshot.content_hash = fetched["hash"]
    snapshot.content_text = fetched["text"]
    snapshot.http_status = fetched.get("status")
    snapshot.captured_at = datetime.utcnow()
    return previous


async def check_competitor(db: Session, competitor: Competitor) -> dict[str, Any]:
    result = {
        "competitor_id": competitor.id,
        "competitor_name": competitor.name,
        "pages_checked": 0,
        "changes_detected": 0,
        "changes": [],
        "checked_at": datetime.utcnow().isoformat(),
    }

    for page_type, url in pages_to_check(competitor):
        fetched = await fetch_page(url)
        result["pages_checked"] += 1
        if not fetched["success"]:
            logger.debug(f"Skipping {url}: {fetched.get('error')}")
            continue

        previous = _upsert_snapshot(db, competitor, page_type, url, fetched)
        if previous is None or previous[0] == fetched["hash"]:
            continue

        analysis = analyze_change(previous[1] or "", fetched["text"])
        if not analysis:
            continue

        db.add(
            CompetitorChange(
                competitor_id=competitor.id,
                change_type=analysis["change_type"],
                significance=analysis["significance"],
                title=f"{CHANGE_LABELS[analysis['change_type']]} change detected",
                description=analysis["description"],
                threat_level=analysis["threat_level"],
                recommended_actions=recommended_actions(analysis["change_type"], analysis["threat_level"]),
                source_url=url,
                status="new",
                detected_at=datetime.utcnow(),
            )
        )
        competitor.last_change_detected_at = datetime.utcnow()
        result["changes_detected"] += 1
        result["changes"].append(
            {"page_type": page_type, "change_type": analysis["change_type"], "description": analysis["description"]}
        )

    competitor.last_checked_at = datetime.utcnow()
    db.commit()
    return result


async def run_competitor_check(db: Session) -> dict[str, Any]:
    """Check every active competitor except content benchmarks"""
    competitors = (
        db.query(Competitor)
        .filter(Competitor.is_active.is_(True), Competitor.competitor_type != "content_benchmark")
        .order_by(Competitor.id)
        .all()
    )

    results = []
    errors = []
    total_changes = 0
    for competitor in competitors:
        try:
            result = await check_competitor(db, competitor)
            total_changes += result["changes_detected"]
            results.append(result)
        except Exception as e:
            db.rollback()
            logger.error(f"❌ Competitor check failed for {competitor.name} ({competitor.id}): {e}")
            errors.append({"competitor_id": competitor.id, "error": str(e)})

    logger.info(
        f"🔎 Competitor check complete: {len(results)} checked, {total_changes} change(s), {len(errors)} error(s)"
    )
    return {
        "competitors_checked": len(results),
        "total_changes_detected": total_changes,
        "results": results,
        "errors": errors,
    }


# ============================================================================
# REVIEW WORKFLOW
# ============================================================================


def _get_change(db: Session, change_id: int) -> CompetitorChange:
    change = db.query(CompetitorChange).filter(CompetitorChange.id == change_id).first()
    if not change:
        raise HTTPException(status_code=404, detail="Competitor change not found")
    return change


def mark_change_reviewed(
    db: Session, change_id: int, reviewed_by: int, action_taken: Optional[str] = None
) -> CompetitorChange:
    change = _get_change(db, change_id)
    change.status = "actioned" if action_taken else "reviewed"
    change.reviewed_by = reviewed_by
    change.reviewed_at = datetime.utcnow()
    if action_taken:
        change.action_taken = action_taken
    db.commit()
    db.refresh(change)
    return change


def dismiss_change(db: Session, change_id: int, reviewed_by: Optional[int] = None, notes: Optional[str] = None):
    change = _get_change(db, change_id)
    change.status = "dismissed"
    change.reviewed_by = reviewed_by
    change.reviewed_at = datetime.utcnow()
    if notes:
        change.action_taken = notes
    db.commit()
    db.refresh(change)
    return change


def unreviewed_changes_count(db: Session) -> int:
    return db.query(CompetitorChange).filter(CompetitorChange.status.in_(OPEN_CHANGE_STATUSES)).count()


def statistics(db: Session) -> dict[str, Any]:
    last_check = db.query(func.max(Competitor.last_checked_at)).scalar()
    return {
        "active_competitors": db.query(Competitor).filter(Competitor.is_active.is_(True)).count(),
        "total_changes": db.query(CompetitorChange).count(),
        "unreviewed_changes": unreviewed_changes_count(db),
        "high_threat_changes": db.query(CompetitorChange)
        .filter(CompetitorChange.threat_level == "high", CompetitorChange.status.in_(OPEN_CHANGE_STATUSES))
        .count(),
        "last_check_at": last_check.isoformat() if last_check else None,
    }
