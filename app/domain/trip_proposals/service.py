"""Trip proposal service - Business logic for proposals"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...email_service import send_proposal_email
from ...models import Booking, BookingStop, User, Winery
from ...models_lodging import LodgingProperty
from ...models_proposal import TripProposal, TripProposalDay, TripProposalInclusion, TripProposalStop
from ...services.pricing import calculate_proposal_pricing
from ...services.rate_config import DEFAULT_DEPOSIT_PERCENTAGE, TAX_RATE
from ...services.status_automation import validate_status_transition
from ..bookings.service import generate_booking_number
from .repository import TripProposalRepository
from .schemas import DayCreate, InclusionCreate, InclusionUpdate, ProposalCreate, ProposalUpdate, StopCreate

logger = logging.getLogger(__name__)

DEFAULT_VALIDITY_DAYS = 30
DELETABLE_STATUSES = {"draft", "declined", "expired"}
BOOKING_HOURS_PER_DAY = 6
PRICING_FIELDS = {
    "party_size",
    "tax_rate",
    "discount_percentage",
    "gratuity_percentage",
    "deposit_percentage",
    "deposit_paid",
    "planning_fee_mode",
    "planning_fee_percentage",
}


def serialize_proposal(proposal: TripProposal, include_details: bool = False) -> dict:
    """JSON shape shared by the admin and customer views"""
    data = {
        "id": proposal.id,
        "proposal_number": proposal.proposal_number,
        "status": proposal.status,
        "customer_name": proposal.customer_name,
        "customer_email": proposal.customer_email,
        "customer_phone": proposal.customer_phone,
        "customer_company": proposal.customer_company,
        "trip_type": proposal.trip_type,
        "trip_title": proposal.trip_title,
        "party_size": proposal.party_size,
        "start_date": proposal.start_date.isoformat() if proposal.start_date else None,
        "end_date": proposal.end_date.isoformat() if proposal.end_date else None,
        "valid_until": proposal.valid_until.isoformat() if proposal.valid_until else None,
        "subtotal": proposal.subtotal or 0,
        "discount_amount": proposal.discount_amount or 0,
        "taxes": proposal.taxes or 0,
        "gratuity_amount": proposal.gratuity_amount or 0,
        "total": proposal.total or 0,
        "deposit_amount": proposal.deposit_amount or 0,
        "balance_due": proposal.balance_due or 0,
        "view_count": proposal.view_count or 0,
        "sent_at": proposal.sent_at,
        "accepted_at": proposal.accepted_at,
        "converted_to_booking_id": proposal.converted_to_booking_id,
        "created_at": proposal.created_at,
    }
    if include_details:
        data.update(
            {
                "introduction": proposal.introduction,
                "tax_rate": proposal.tax_rate,
                "discount_percentage": proposal.discount_percentage,
                "gratuity_percentage": proposal.gratuity_percentage,
                "deposit_percentage": proposal.deposit_percentage,
                "deposit_paid": proposal.deposit_paid,
                "planning_fee_mode": proposal.planning_fee_mode,
                "planning_fee_percentage": proposal.planning_fee_percentage,
                "days": [
                    {
                        "id": day.id,
                        "day_number": day.day_number,
                        "date": day.date.isoformat() if day.date else None,
                        "title": day.title,
                        "description": day.description,
                        "stops": [
                            {
                                "id": stop.id,
                                "stop_order": stop.stop_order,
                                "stop_type": stop.stop_type,
                                "name": stop.display_name,
                                "winery_id": stop.winery_id,
                                "lodging_property_id": stop.lodging_property_id,
                                "start_time": stop.start_time,
                                "duration_minutes": stop.duration_minutes,
                                "notes": stop.notes,
                            }
                            for stop in day.stops
                        ],
                    }
                    for day in proposal.days
                ],
                "inclusions": [
                    {
                        "id": inc.id,
                        "inclusion_type": inc.inclusion_type,
                        "description": inc.description,
                        "quantity": inc.quantity,
                        "unit_price": inc.unit_price,
                        "pricing_type": inc.pricing_type,
                        "total_price": inc.total_price,
                        "is_taxable": inc.is_taxable,
                        "tax_included_in_price": inc.tax_included_in_price,
                        "sort_order": inc.sort_order,
                    }
                    for inc in proposal.inclusions
                ],
            }
        )
    return data


class TripProposalService:
    """Service layer for trip proposal business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TripProposalRepository()

    # ========================================================================
    # CRUD
    # ========================================================================

    def list_proposals(
        self, status: Optional[str], search: Optional[str], limit: int, offset: int
    ) -> dict:
        proposals, total = self.repo.list_proposals(self.db, status, search, limit, offset)
        return {"proposals": [serialize_proposal(p) for p in proposals], "total": total}

    def get_proposal(self, proposal_id: int) -> TripProposal:
        proposal = self.repo.get_by_id(self.db, proposal_id)
        if not proposal:
            raise HTTPException(status_code=404, detail="Proposal not found")
        return proposal

    def create_proposal(
        self,
        data: ProposalCreate,
        user: Optional[User] = None,
        consultation_id: Optional[int] = None,
        corporate_request_id: Optional[int] = None,
        commit: bool = True,
    ) -> TripProposal:
        """Create a draft proposal with an empty first day"""
        today = datetime.utcnow().date()
        number = self.repo.get_next_proposal_number(self.db, today.year)

        proposal = self.repo.create(
            self.db,
            proposal_number=number,
            status="draft",
            customer_name=data.customer_name,
            customer_email=data.customer_email,
            customer_phone=data.customer_phone,
            customer_company=data.customer_company,
            trip_type=data.trip_type,
            trip_title=data.trip_title,
            party_size=data.party_size,
            start_date=data.start_date,
            end_date=data.end_date,
            introduction=data.introduction,
            internal_notes=data.internal_notes,
            valid_until=data.valid_until or today + timedelta(days=DEFAULT_VALIDITY_DAYS),
            tax_rate=TAX_RATE if data.tax_rate is None else data.tax_rate,
            discount_percentage=data.discount_percentage,
            gratuity_percentage=data.gratuity_percentage,
            deposit_percentage=data.deposit_percentage
            if data.deposit_percentage is not None
            else DEFAULT_DEPOSIT_PERCENTAGE,
            planning_fee_mode=data.planning_fee_mode,
            planning_fee_percentage=data.planning_fee_percentage,
            consultation_id=consultation_id,
            corporate_request_id=corporate_request_id,
            created_by=user.id if user else None,
            view_count=0,
        )
        self.db.add(TripProposalDay(proposal=proposal, day_number=1, date=data.start_date, title="Day 1"))
        self.repo.log_activity(
            self.db, proposal, "created", f"Proposal {number} created", actor=user.email if user else "system"
        )

        if commit:
            self.db.commit()
            self.db.refresh(proposal)
        logger.info(f"✅ Trip proposal {number} created for {data.customer_name}")
        return proposal

    def update_proposal(self, proposal_id: int, data: ProposalUpdate, user: User) -> TripProposal:
        proposal = self.get_proposal(proposal_id)
        if proposal.status == "booked":
            raise HTTPException(status_code=400, detail="Booked proposals cannot be edited")

        updates = data.model_dump(exclude_unset=True)
        self.repo.update(self.db, proposal, **updates)
        self.repo.log_activity(
            self.db, proposal, "updated", "Proposal details updated", actor=user.email,
            metadata={"fields": sorted(updates.keys())},
        )

        if PRICING_FIELDS & set(updates.keys()):
            self.recalculate_pricing(proposal)

        self.db.commit()
        self.db.refresh(proposal)
        return proposal

    def delete_proposal(self, proposal_id: int) -> dict:
        proposal = self.get_proposal(proposal_id)
        if proposal.status not in DELETABLE_STATUSES:
            raise HTTPException(
                status_code=400,
                detail=f"Only draft, declined or expired proposals can be deleted (status: {proposal.status})",
            )
        number = proposal.proposal_number
        self.repo.delete(self.db, proposal)
        logger.info(f"🗑️ Trip proposal {number} deleted")
        return {"message": "Proposal deleted"}

    # ========================================================================
    # ITINERARY
    # ========================================================================

    def add_day(self, proposal_id: int, data: DayCreate) -> TripProposalDay:
        proposal = self.get_proposal(proposal_id)
        next_number = max((d.day_number for d in proposal.days), default=0) + 1
        day = TripProposalDay(
            proposal_id=proposal.id,
            day_number=next_number,
            date=data.date,
            title=data.title or f"Day {next_number}",
            description=data.description,
        )
        self.db.add(day)
        self.db.commit()
        self.db.refresh(day)
        return day

    def delete_day(self, proposal_id: int, day_id: int) -> dict:
        proposal = self.get_proposal(proposal_id)
        day = self.repo.get_day(self.db, proposal.id, day_id)
        if not day:
            raise HTTPException(status_code=404, detail="Day not found")
        if len(proposal.days) <= 1:
            raise HTTPException(status_code=400, detail="A proposal must keep at least one day")

        proposal.days.remove(day)
        # Renumber the remaining days
        for index, remaining in enumerate(sorted(proposal.days, key=lambda d: d.day_number), start=1):
            remaining.day_number = index
        self.db.commit()
        return {"message": "Day deleted"}

    def add_stop(self, proposal_id: int, day_id: int, data: StopCreate) -> TripProposalStop:
        self.get_proposal(proposal_id)
        day = self.repo.get_day(self.db, proposal_id, day_id)
        if not day:
            raise HTTPException(status_code=404, detail="Day not found")

        if data.winery_id and not self.db.query(Winery).filter(Winery.id == data.winery_id).first():
            raise HTTPException(status_code=400, detail="Winery not found")
        if data.lodging_property_id and not (
            self.db.query(LodgingProperty).filter(LodgingProperty.id == data.lodging_property_id).first()
        ):
            raise HTTPException(status_code=400, detail="Lodging property not found")
        if not (data.winery_id or data.lodging_property_id or data.custom_name):
            raise HTTPException(status_code=400, detail="A stop needs a winery, lodging property or custom name")

        stop = TripProposalStop(
            day_id=day.id,
            stop_order=max((s.stop_order for s in day.stops), default=0) + 1,
            **data.model_dump(),
        )
        self.db.add(stop)
        self.db.commit()
        self.db.refresh(stop)
        return stop

    def delete_stop(self, proposal_id: int, stop_id: int) -> dict:
        stop = self.repo.get_stop(self.db, proposal_id, stop_id)
        if not stop:
            raise HTTPException(status_code=404, detail="Stop not found")
        self.db.delete(stop)
        self.db.commit()
        return {"message": "Stop deleted"}

    # ========================================================================
    # INCLUSIONS & PRICING
    # ========================================================================

    def add_inclusion(self, proposal_id: int, data: InclusionCreate) -> TripProposal:
        proposal = self.get_proposal(proposal_id)
        values = data.model_dump()
        if values["sort_order"] is None:
            values["sort_order"] = len(proposal.inclusions)
        proposal.inclusions.append(TripProposalInclusion(**values))
        self.db.flush()
        self.recalculate_pricing(proposal)
        self.db.commit()
        self.db.refresh(proposal)
        return proposal

    def update_inclusion(self, proposal_id: int, inclusion_id: int, data: InclusionUpdate) -> TripProposal:
        proposal = self.get_proposal(proposal_id)
        inclusion = self.repo.get_inclusion(self.db, proposal.id, inclusion_id)
        if not inclusion:
            raise HTTPException(status_code=404, detail="Inclusion not found")
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(inclusion, key, value)
        self.recalculate_pricing(proposal)
        self.db.commit()
        self.db.refresh(proposal)
        return proposal

    def delete_inclusion(self, proposal_id: int, inclusion_id: int) -> TripProposal:
        proposal = self.get_proposal(proposal_id)
        inclusion = self.repo.get_inclusion(self.db, proposal.id, inclusion_id)
        if not inclusion:
            raise HTTPException(status_code=404, detail="Inclusion not found")
        proposal.inclusions.remove(inclusion)
        self.db.flush()
        self.recalculate_pricing(proposal)
        self.db.commit()
        self.db.refresh(proposal)
        return proposal

    def recalculate_pricing(self, proposal: TripProposal) -> dict:
        """Recompute line totals and proposal totals in place (caller commits)"""
        inclusions = list(proposal.inclusions)
        pricing = calculate_proposal_pricing(
            inclusions=[
                {
                    "inclusion_type": inc.inclusion_type,
                    "quantity": inc.quantity,
                    "unit_price": inc.unit_price,
                    "pricing_type": inc.pricing_type,
                    "is_taxable": inc.is_taxable,
                    "tax_included_in_price": inc.tax_included_in_price,
                }
                for inc in inclusions
            ],
            party_size=proposal.party_size,
            tax_rate=proposal.tax_rate,
            discount_percentage=proposal.discount_percentage,
            gratuity_percentage=proposal.gratuity_percentage,
            deposit_percentage=proposal.deposit_percentage,
            deposit_paid=proposal.deposit_paid,
            planning_fee_mode=proposal.planning_fee_mode,
            planning_fee_percentage=proposal.planning_fee_percentage,
        )

        for inc, line_total in zip(inclusions, pricing["line_totals"]):
            if inc.inclusion_type == "planning_fee" and pricing["planning_fee_unit_price"] is not None:
                inc.unit_price = pricing["planning_fee_unit_price"]
                inc.quantity = 1
                inc.pricing_type = "flat"
            inc.total_price = line_total

        proposal.subtotal = pricing["subtotal"]
        proposal.discount_amount = pricing["discount_amount"]
        proposal.taxes = pricing["taxes"]
        proposal.gratuity_amount = pricing["gratuity_amount"]
        proposal.total = pricing["total"]
        proposal.deposit_amount = pricing["deposit_amount"]
        proposal.balance_due = pricing["balance_due"]
        return pricing

    def get_pricing(self, proposal_id: int) -> dict:
        proposal = self.get_proposal(proposal_id)
        pricing = self.recalculate_pricing(proposal)
        self.db.commit()
        return {
            "proposal_id": proposal.id,
            "subtotal": pricing["subtotal"],
            "discount_amount": pricing["discount_amount"],
            "taxes": pricing["taxes"],
            "gratuity_amount": pricing["gratuity_amount"],
            "total": pricing["total"],
            "deposit_amount": pricing["deposit_amount"],
            "balance_due": pricing["balance_due"],
            "line_items": [
                {"id": inc.id, "description": inc.description, "total_price": inc.total_price}
                for inc in proposal.inclusions
            ],
        }

    # ========================================================================
    # STATUS
    # ========================================================================

    def change_status(
        self,
        proposal: TripProposal,
        new_status: str,
        actor: str,
        notes: Optional[str] = None,
        signature: Optional[str] = None,
        signer_name: Optional[str] = None,
    ) -> TripProposal:
        """Validate and apply a status transition with its side effects (caller commits)"""
        previous = proposal.status
        try:
            validate_status_transition(previous, new_status)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        now = datetime.utcnow()
        proposal.status = new_status

        if new_status == "sent":
            proposal.sent_at = now
        elif new_status == "viewed":
            proposal.view_count = (proposal.view_count or 0) + 1
            proposal.last_viewed_at = now
            if not proposal.first_viewed_at:
                proposal.first_viewed_at = now
        elif new_status == "accepted":
            proposal.accepted_at = now
            proposal.accepted_signature = signature
            proposal.accepted_by_name = signer_name
        elif new_status == "declined":
            proposal.declined_at = now
            proposal.decline_reason = notes

        description = f"Status changed from {previous} to {new_status}"
        if notes:
            description = f"{description}: {notes}"
        self.repo.log_activity(
            self.db, proposal, "status_changed", description, actor=actor,
            metadata={"from": previous, "to": new_status},
        )
        logger.info(f"✅ Proposal {proposal.proposal_number} transitioned: {previous} → {new_status}")
        return proposal

    def update_status(self, proposal_id: int, new_status: str, notes: Optional[str], user: User) -> TripProposal:
        proposal = self.get_proposal(proposal_id)
        self.change_status(proposal, new_status, actor=user.email, notes=notes)
        self.db.commit()
        self.db.refresh(proposal)
        return proposal

    async def send_proposal(self, proposal_id: int, user: User) -> dict:
        """Mark as sent and email the customer a link"""
        proposal = self.get_proposal(proposal_id)
        if not proposal.customer_email:
            raise HTTPException(status_code=400, detail="Customer email is required to send a proposal")

        self.change_status(proposal, "sent", actor=user.email)
        self.db.commit()

        email_sent = True
        try:
            await send_proposal_email(
                to=proposal.customer_email,
                customer_name=proposal.customer_name,
                proposal_number=proposal.proposal_number,
                trip_title=proposal.trip_title or "Walla Walla Wine Country",
                total=proposal.total or 0,
                valid_until=proposal.valid_until.isoformat() if proposal.valid_until else None,
            )
        except Exception as e:
            email_sent = False
            logger.warning(f"⚠️ Proposal {proposal.proposal_number} marked sent but email failed: {e}")

        return {"success": True, "status": proposal.status, "email_sent": email_sent}

    def convert_to_booking(self, proposal_id: int, user: User) -> dict:
        """Turn an accepted proposal into a confirmed booking"""
        proposal = self.get_proposal(proposal_id)
        if proposal.converted_to_booking_id:
            raise HTTPException(status_code=400, detail="Proposal has already been converted to a booking")
        if proposal.status != "accepted":
            raise HTTPException(status_code=400, detail="Only accepted proposals can be converted to bookings")

        days = list(proposal.days)
        tour_date = proposal.start_date or next((d.date for d in days if d.date), None)
        if not tour_date:
            raise HTTPException(status_code=400, detail="Proposal needs a start date before booking")

        booking = Booking(
            booking_number=generate_booking_number(tour_date.year),
            customer_name=proposal.customer_name,
            customer_email=(proposal.customer_email or "").lower(),
            customer_phone=proposal.customer_phone,
            tour_type=proposal.trip_type or "wine_tour",
            tour_date=tour_date,
            start_time="09:00",
            duration_hours=BOOKING_HOURS_PER_DAY * max(1, len(days)),
            party_size=proposal.party_size,
            status="confirmed",
            subtotal=proposal.subtotal or 0,
            taxes=proposal.taxes or 0,
            gratuity=proposal.gratuity_amount or 0,
            total_amount=proposal.total or 0,
            deposit_amount=proposal.deposit_amount or 0,
            deposit_paid=bool(proposal.deposit_paid),
            notes=f"Created from proposal {proposal.proposal_number}",
        )
        winery_ids = [s.winery_id for d in days for s in d.stops if s.winery_id]
        booking.stops = [BookingStop(winery_id=wid, stop_order=i) for i, wid in enumerate(winery_ids, start=1)]
        self.db.add(booking)
        self.db.flush()

        proposal.converted_to_booking_id = booking.id
        self.change_status(proposal, "booked", actor=user.email)
        self.repo.log_activity(
            self.db, proposal, "converted", f"Converted to booking {booking.booking_number}",
            actor=user.email, metadata={"booking_id": booking.id},
        )
        self.db.commit()
        logger.info(f"✅ Proposal {proposal.proposal_number} converted to booking {booking.booking_number}")
        return {"success": True, "booking_id": booking.id, "booking_number": booking.booking_number}

    # ========================================================================
    # CUSTOMER ACTIONS
    # ========================================================================

    def _get_public(self, proposal_number: str) -> TripProposal:
        proposal = self.repo.get_by_number(self.db, proposal_number)
        if not proposal or proposal.status == "draft":
            raise HTTPException(status_code=404, detail="Proposal not found")
        return proposal

    def view_public(self, proposal_number: str) -> dict:
        """Customer opens the proposal link"""
        proposal = self._get_public(proposal_number)
        if proposal.status == "sent":
            self.change_status(proposal, "viewed", actor="customer")
            self.db.commit()
        elif proposal.status == "viewed":
            proposal.view_count = (proposal.view_count or 0) + 1
            proposal.last_viewed_at = datetime.utcnow()
            self.db.commit()
        self.db.refresh(proposal)
        return serialize_proposal(proposal, include_details=True)

    def accept_public(self, proposal_number: str, signature: str, name: str) -> dict:
        proposal = self._get_public(proposal_number)
        if proposal.valid_until and proposal.valid_until < datetime.utcnow().date():
            raise HTTPException(status_code=400, detail="This proposal has expired")
        self.change_status(proposal, "accepted", actor="customer", signature=signature, signer_name=name)
        self.db.commit()
        return {"success": True, "status": proposal.status, "message": "Thank you! Your proposal has been accepted."}

    def decline_public(self, proposal_number: str, reason: Optional[str]) -> dict:
        proposal = self._get_public(proposal_number)
        self.change_status(proposal, "declined", actor="customer", notes=reason)
        self.db.commit()
        return {"success": True, "status": proposal.status}
