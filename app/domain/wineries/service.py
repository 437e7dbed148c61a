"""
Winery service - Directory search, style classification and admin edits
Search results are cached in Redis and invalidated on every admin edit
"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import build_winery_search_key, cache, invalidate_winery_cache
from ...models import Winery
from ...shared.validators import generate_slug
from .repository import WineryRepository
from .schemas import WineryCreate, WineryUpdate

logger = logging.getLogger(__name__)

WINE_STYLES = ("red", "white", "mixed", "sparkling")

RED_KEYWORDS = [
    "cabernet",
    "merlot",
    "syrah",
    "malbec",
    "petit verdot",
    "sangiovese",
    "tempranillo",
    "grenache",
    "mourvedre",
    "zinfandel",
    "pinot noir",
    "carmenere",
    "barbera",
    "red blend",
    "bordeaux",
]
WHITE_KEYWORDS = [
    "chardonnay",
    "riesling",
    "sauvignon blanc",
    "viognier",
    "pinot gris",
    "pinot grigio",
    "semillon",
    "roussanne",
    "marsanne",
    "gewurztraminer",
    "chenin blanc",
    "white blend",
]
SPARKLING_KEYWORDS = ["sparkling", "champagne", "brut", "prosecco", "cremant", "blanc de blancs"]

SEARCH_CACHE_TTL = 600


def _mentions(specialties: list[str], keywords: list[str]) -> bool:
    text = " ".join(specialties or []).lower()
    return any(keyword in text for keyword in keywords)


def classify_styles(specialties: Optional[list[str]]) -> set[str]:
    """Wine styles a winery pours, from its specialties"""
    styles = set()
    if _mentions(specialties, RED_KEYWORDS):
        styles.add("red")
    if _mentions(specialties, WHITE_KEYWORDS):
        styles.add("white")
    if _mentions(specialties, SPARKLING_KEYWORDS):
        styles.add("sparkling")
    if {"red", "white"} <= styles:
        styles.add("mixed")
    return styles


def matches_search(winery: Winery, search: Optional[str]) -> bool:
    if not search or not search.strip():
        return True
    term = search.strip().lower()
    haystack = [winery.name or "", winery.description or ""]
    haystack.extend(winery.specialties or [])
    haystack.extend(winery.features or [])
    return any(term in value.lower() for value in haystack)


def serialize_winery(winery: Winery, admin: bool = False) -> dict:
    data = {
        "id": winery.id,
        "name": winery.name,
        "slug": winery.slug,
        "description": winery.description,
        "address": winery.address,
        "city": winery.city,
        "tasting_fee": winery.tasting_fee,
        "average_visit_duration": winery.average_visit_duration,
        "specialties": winery.specialties or [],
        "features": winery.features or [],
        "reservation_required": winery.reservation_required,
        "website": winery.website,
        "is_featured": winery.is_featured,
        "styles": sorted(classify_styles(winery.specialties)),
    }
    if admin:
        data["is_active"] = winery.is_active
        data["created_at"] = winery.created_at
        data["updated_at"] = winery.updated_at
    return data


class WineryService:
    """Service layer for wineries"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = WineryRepository()

    # ========================================================================
    # SEARCH
    # ========================================================================

    def search(self, search: Optional[str] = None, style: Optional[str] = None, limit: Optional[int] = None) -> list[dict]:
        """Active wineries matching text and style, served from cache when possible"""
        if style and style not in WINE_STYLES:
            raise HTTPException(
                status_code=400, detail=f"Invalid style. Must be one of: {', '.join(WINE_STYLES)}"
            )

        key = build_winery_search_key(search, style, limit)
        cached = cache.get(key)
        if cached is not None:
            return cached

        results = []
        for winery in self.repo.list_active(self.db):
            if not matches_search(winery, search):
                continue
            if style and style not in classify_styles(winery.specialties):
                continue
            results.append(serialize_winery(winery))
            if limit and len(results) >= limit:
                break

        cache.set(key, results, ttl=SEARCH_CACHE_TTL)
        return results

    def get_public(self, slug: str) -> dict:
        winery = self.repo.get_by_slug(self.db, slug)
        if not winery or not winery.is_active:
            raise HTTPException(status_code=404, detail="Winery not found")
        return serialize_winery(winery)

    # ========================================================================
    # ADMIN
    # ========================================================================

    def list_admin(self, include_inactive: bool) -> dict:
        wineries = self.repo.list_all(self.db, include_inactive)
        return {"wineries": [serialize_winery(w, admin=True) for w in wineries], "total": len(wineries)}

    def get_winery(self, winery_id: int) -> Winery:
        winery = self.repo.get_by_id(self.db, winery_id)
        if not winery:
            raise HTTPException(status_code=404, detail="Winery not found")
        return winery

    def _check_slug(self, slug: str, winery_id: Optional[int] = None) -> None:
        existing = self.repo.get_by_slug(self.db, slug)
        if existing and existing.id != winery_id:
            raise HTTPException(status_code=409, detail=f"A winery with slug '{slug}' already exists")

    def create_winery(self, data: WineryCreate) -> dict:
        values = data.model_dump()
        values["slug"] = values.get("slug") or generate_slug(data.name)
        self._check_slug(values["slug"])

        winery = self.repo.create(self.db, **values)
        self.db.commit()
        self.db.refresh(winery)
        invalidate_winery_cache()
        logger.info(f"✅ Winery created: {winery.name} ({winery.slug})")
        return serialize_winery(winery, admin=True)

    def update_winery(self, winery_id: int, data: WineryUpdate) -> dict:
        winery = self.get_winery(winery_id)
        updates = data.model_dump(exclude_unset=True)
        if updates.get("slug"):
            self._check_slug(updates["slug"], winery.id)

        for key, value in updates.items():
            setattr(winery, key, value)
        self.db.commit()
        self.db.refresh(winery)
        invalidate_winery_cache()
        return serialize_winery(winery, admin=True)

    def deactivate_winery(self, winery_id: int) -> dict:
        winery = self.get_winery(winery_id)
        winery.is_active = False
        self.db.commit()
        invalidate_winery_cache()
        logger.info(f"🗑️ Winery {winery.slug} deactivated")
        return {"success": True, "id": winery.id, "is_active": False}
