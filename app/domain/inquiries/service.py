"""Inquiry service - Tour inquiries from the website and ChatGPT"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...email_service import send_inquiry_notification
from ...models import Inquiry
from .schemas import InquiryCreate

logger = logging.getLogger(__name__)


def serialize_inquiry(inquiry: Inquiry) -> dict:
    return {
        "id": inquiry.id,
        "inquiry_number": inquiry.inquiry_number,
        "name": inquiry.name,
        "email": inquiry.email,
        "phone": inquiry.phone,
        "tour_date": inquiry.tour_date.isoformat() if inquiry.tour_date else None,
        "party_size": inquiry.party_size,
        "tour_type": inquiry.tour_type,
        "preferences": inquiry.preferences,
        "pickup_location": inquiry.pickup_location,
        "source": inquiry.source,
        "status": inquiry.status,
        "created_at": inquiry.created_at,
    }


class InquiryService:
    def __init__(self, db: Session):
        self.db = db

    async def create_inquiry(self, data: InquiryCreate, source: str = "website") -> Inquiry:
        """Store the inquiry and notify the office. Email failures do not fail the request."""
        inquiry = Inquiry(**data.model_dump(), source=source, status="new")
        self.db.add(inquiry)
        self.db.commit()
        self.db.refresh(inquiry)
        logger.info(f"📥 Inquiry {inquiry.inquiry_number} created from {source} for {inquiry.email}")

        try:
            await send_inquiry_notification(
                inquiry_number=inquiry.inquiry_number,
                name=inquiry.name,
                email=inquiry.email,
                phone=inquiry.phone,
                tour_date=inquiry.tour_date.isoformat() if inquiry.tour_date else None,
                party_size=inquiry.party_size,
                tour_type=inquiry.tour_type,
                source=source,
                preferences=inquiry.preferences,
            )
        except Exception as e:
            logger.error(f"❌ Failed to send notification for inquiry {inquiry.inquiry_number}: {e}")

        return inquiry

    def list_inquiries(self, status: Optional[str]) -> dict:
        query = self.db.query(Inquiry)
        if status and status != "all":
            query = query.filter(Inquiry.status == status)
        inquiries = query.order_by(Inquiry.created_at.desc(), Inquiry.id.desc()).all()
        return {"inquiries": [serialize_inquiry(i) for i in inquiries], "total": len(inquiries)}

    def update_status(self, inquiry_id: int, status: str) -> dict:
        inquiry = self.db.query(Inquiry).filter(Inquiry.id == inquiry_id).first()
        if not inquiry:
            raise HTTPException(status_code=404, detail="Inquiry not found")
        inquiry.status = status
        self.db.commit()
        self.db.refresh(inquiry)
        return serialize_inquiry(inquiry)
