"""Winery repository - Database operations for wineries"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Winery


class WineryRepository:
    """Repository for winery database operations"""

    @staticmethod
    def list_active(db: Session) -> list[Winery]:
        return (
            db.query(Winery)
            .filter(Winery.is_active.is_(True))
            .order_by(Winery.is_featured.desc(), Winery.name)
            .all()
        )

    @staticmethod
    def list_all(db: Session, include_inactive: bool = True) -> list[Winery]:
        query = db.query(Winery)
        if not include_inactive:
            query = query.filter(Winery.is_active.is_(True))
        return query.order_by(Winery.name).all()

    @staticmethod
    def get_by_id(db: Session, winery_id: int) -> Optional[Winery]:
        return db.query(Winery).filter(Winery.id == winery_id).first()

    @staticmethod
    def get_by_slug(db: Session, slug: str) -> Optional[Winery]:
        return db.query(Winery).filter(Winery.slug == slug).first()

    @staticmethod
    def create(db: Session, **data) -> Winery:
        winery = Winery(**data)
        db.add(winery)
        db.flush()
        return winery
