"""Corporate request repository - Database operations"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import CorporateRequest


class CorporateRequestRepository:
    """Repository for corporate request database operations"""

    @staticmethod
    def get_next_request_number(db: Session, year: int) -> str:
        """CR-YYYY-NNNN, sequential within the year"""
        prefix = f"CR-{year}-"
        last = (
            db.query(CorporateRequest.request_number)
            .filter(CorporateRequest.request_number.like(f"{prefix}%"))
            .order_by(CorporateRequest.request_number.desc())
            .first()
        )
        seq = int(last[0].rsplit("-", 1)[1]) + 1 if last else 1
        return f"{prefix}{seq:04d}"

    @staticmethod
    def list_requests(db: Session, status: Optional[str] = None) -> list[CorporateRequest]:
        query = db.query(CorporateRequest)
        if status and status != "all":
            query = query.filter(CorporateRequest.status == status)
        return query.order_by(CorporateRequest.created_at.desc(), CorporateRequest.id.desc()).all()

    @staticmethod
    def get_by_id(db: Session, request_id: int) -> Optional[CorporateRequest]:
        return db.query(CorporateRequest).filter(CorporateRequest.id == request_id).first()

    @staticmethod
    def create(db: Session, **data) -> CorporateRequest:
        request = CorporateRequest(**data)
        db.add(request)
        db.flush()
        return request
