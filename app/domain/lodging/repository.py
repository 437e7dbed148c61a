"""Lodging repository - Database operations for properties and availability"""

from datetime import date
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models_lodging import LodgingAvailability, LodgingProperty


class LodgingRepository:
    """Repository for lodging database operations"""

    @staticmethod
    def list_public(
        db: Session, property_type: Optional[str] = None, featured: Optional[bool] = None
    ) -> list[LodgingProperty]:
        query = db.query(LodgingProperty).filter(LodgingProperty.is_active.is_(True))
        if property_type:
            query = query.filter(LodgingProperty.property_type == property_type)
        if featured is not None:
            query = query.filter(LodgingProperty.is_featured.is_(featured))
        return query.order_by(LodgingProperty.is_featured.desc(), LodgingProperty.name).all()

    @staticmethod
    def list_admin(db: Session, search: Optional[str] = None, include_inactive: bool = False) -> list[LodgingProperty]:
        query = db.query(LodgingProperty)
        if not include_inactive:
            query = query.filter(LodgingProperty.is_active.is_(True))
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    LodgingProperty.name.ilike(term),
                    LodgingProperty.city.ilike(term),
                    LodgingProperty.address.ilike(term),
                )
            )
        return query.order_by(LodgingProperty.name).all()

    @staticmethod
    def get_by_id(db: Session, property_id: int) -> Optional[LodgingProperty]:
        return db.query(LodgingProperty).filter(LodgingProperty.id == property_id).first()

    @staticmethod
    def get_by_slug(db: Session, slug: str) -> Optional[LodgingProperty]:
        return db.query(LodgingProperty).filter(LodgingProperty.slug == slug).first()

    @staticmethod
    def create(db: Session, **data) -> LodgingProperty:
        prop = LodgingProperty(**data)
        db.add(prop)
        db.flush()
        return prop

    @staticmethod
    def list_availability(
        db: Session, property_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[LodgingAvailability]:
        query = db.query(LodgingAvailability).filter(LodgingAvailability.property_id == property_id)
        if start_date:
            query = query.filter(LodgingAvailability.date >= start_date)
        if end_date:
            query = query.filter(LodgingAvailability.date <= end_date)
        return query.order_by(LodgingAvailability.date).all()

    @staticmethod
    def get_availability(db: Session, property_id: int, day: date) -> Optional[LodgingAvailability]:
        return (
            db.query(LodgingAvailability)
            .filter(LodgingAvailability.property_id == property_id, LodgingAvailability.date == day)
            .first()
        )
