"""Lodging service - Property directory, verification and nightly availability"""

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import User
from ...models_lodging import LodgingAvailability, LodgingProperty
from .repository import LodgingRepository
from .schemas import AvailabilityUpsert, LodgingCreate, LodgingUpdate

logger = logging.getLogger(__name__)


def serialize_property(prop: LodgingProperty, admin: bool = False) -> dict:
    data = {
        "id": prop.id,
        "name": prop.name,
        "slug": prop.slug,
        "property_type": prop.property_type,
        "description": prop.description,
        "short_description": prop.short_description,
        "address": prop.address,
        "city": prop.city,
        "state": prop.state,
        "zip_code": prop.zip_code,
        "phone": prop.phone,
        "email": prop.email,
        "website": prop.website,
        "booking_url": prop.booking_url,
        "amenities": prop.amenities or [],
        "bedrooms": prop.bedrooms,
        "max_guests": prop.max_guests,
        "price_range_min": prop.price_range_min,
        "price_range_max": prop.price_range_max,
        "min_stay_nights": prop.min_stay_nights,
        "is_verified": prop.is_verified,
        "is_featured": prop.is_featured,
    }
    if admin:
        data.update(
            {
                "is_active": prop.is_active,
                "verified_by": prop.verified_by,
                "verified_at": prop.verified_at,
                "created_at": prop.created_at,
                "updated_at": prop.updated_at,
            }
        )
    return data


def serialize_availability(entry: LodgingAvailability) -> dict:
    return {
        "date": entry.date.isoformat(),
        "status": entry.status,
        "nightly_rate": entry.nightly_rate,
        "min_stay": entry.min_stay,
        "notes": entry.notes,
    }


class LodgingService:
    """Service layer for lodging properties"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = LodgingRepository()

    # ========================================================================
    # PUBLIC
    # ========================================================================

    def list_public(self, property_type: Optional[str], featured: Optional[bool]) -> dict:
        properties = self.repo.list_public(self.db, property_type, featured)
        return {"properties": [serialize_property(p) for p in properties], "total": len(properties)}

    def get_public(self, slug: str) -> dict:
        prop = self.repo.get_by_slug(self.db, slug)
        if not prop or not prop.is_active:
            raise HTTPException(status_code=404, detail="Property not found")
        return serialize_property(prop)

    # ========================================================================
    # ADMIN
    # ========================================================================

    def list_admin(self, search: Optional[str], include_inactive: bool) -> dict:
        properties = self.repo.list_admin(self.db, search, include_inactive)
        return {"properties": [serialize_property(p, admin=True) for p in properties], "total": len(properties)}

    def get_property(self, property_id: int) -> LodgingProperty:
        prop = self.repo.get_by_id(self.db, property_id)
        if not prop:
            raise HTTPException(status_code=404, detail="Property not found")
        return prop

    def _check_price_range(self, price_min: Optional[float], price_max: Optional[float]) -> None:
        if price_min is not None and price_max is not None and price_min > price_max:
            raise HTTPException(status_code=400, detail="Minimum price cannot exceed maximum price")

    def _check_slug(self, slug: str, property_id: Optional[int] = None) -> None:
        existing = self.repo.get_by_slug(self.db, slug)
        if existing and existing.id != property_id:
            raise HTTPException(status_code=409, detail=f"A property with slug '{slug}' already exists")

    def create_property(self, data: LodgingCreate) -> dict:
        self._check_slug(data.slug)
        self._check_price_range(data.price_range_min, data.price_range_max)

        values = data.model_dump(exclude_none=True)
        prop = self.repo.create(self.db, **values)
        self.db.commit()
        self.db.refresh(prop)
        logger.info(f"✅ Lodging property created: {prop.name} ({prop.slug})")
        return serialize_property(prop, admin=True)

    def update_property(self, property_id: int, data: LodgingUpdate) -> dict:
        prop = self.get_property(property_id)
        updates = data.model_dump(exclude_unset=True)

        if updates.get("slug"):
            self._check_slug(updates["slug"], prop.id)
        self._check_price_range(
            updates.get("price_range_min", prop.price_range_min),
            updates.get("price_range_max", prop.price_range_max),
        )

        for key, value in updates.items():
            setattr(prop, key, value)
        self.db.commit()
        self.db.refresh(prop)
        return serialize_property(prop, admin=True)

    def verify_property(self, property_id: int, user: User) -> dict:
        prop = self.get_property(property_id)
        prop.is_verified = True
        prop.verified_by = user.id
        prop.verified_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(prop)
        logger.info(f"✅ Lodging property {prop.slug} verified by {user.email}")
        return serialize_property(prop, admin=True)

    def deactivate_property(self, property_id: int) -> dict:
        prop = self.get_property(property_id)
        prop.is_active = False
        self.db.commit()
        logger.info(f"🗑️ Lodging property {prop.slug} deactivated")
        return {"success": True, "id": prop.id, "is_active": False}

    # ========================================================================
    # AVAILABILITY
    # ========================================================================

    def get_availability(self, property_id: int, start_date: Optional[date], end_date: Optional[date]) -> dict:
        prop = self.get_property(property_id)
        if start_date and end_date and end_date < start_date:
            raise HTTPException(status_code=400, detail="End date cannot be before start date")
        entries = self.repo.list_availability(self.db, prop.id, start_date, end_date)
        return {"property_id": prop.id, "availability": [serialize_availability(e) for e in entries]}

    def upsert_availability(self, property_id: int, data: AvailabilityUpsert) -> dict:
        """Insert or replace one row per date"""
        prop = self.get_property(property_id)
        # Last entry wins when a date is repeated in the payload
        by_date = {entry.date: entry for entry in data.entries}

        for day, entry in by_date.items():
            row = self.repo.get_availability(self.db, prop.id, day)
            if row is None:
                row = LodgingAvailability(property_id=prop.id, date=day)
                self.db.add(row)
            row.status = entry.status
            row.nightly_rate = entry.nightly_rate
            row.min_stay = entry.min_stay
            row.notes = entry.notes

        self.db.commit()
        logger.info(f"📅 Availability updated for {prop.slug}: {len(by_date)} date(s)")
        return {"success": True, "updated": len(by_date)}
