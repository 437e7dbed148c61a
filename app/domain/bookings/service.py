"""Booking service - Quotes, the customer booking flow and payments"""

import logging
import time
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Booking, BookingStop, Vehicle
from ...security_utils import generate_numeric_code
from ...services.pricing import calculate_multi_day_quote
from ...services.rate_config import (
    MAX_PARTY_SIZE,
    PricingError,
    calculate_deposit,
    calculate_payment_amounts,
    calculate_processing_fee,
    calculate_shared_tour_price,
    calculate_transfer_price,
    calculate_wait_time_price,
    calculate_wine_tour_price,
)
from ..availability.service import AvailabilityService
from .repository import BookingRepository
from .schemas import BookingCreate, BookingUpdate, MultiDayQuoteRequest, PaymentCreate, QuoteRequest

logger = logging.getLogger(__name__)


def generate_booking_number(year: int) -> str:
    """WWT-YYYY-<6 timestamp digits><3 random digits>"""
    stamp = str(int(time.time() * 1000))[-6:]
    return f"WWT-{year}-{stamp}{generate_numeric_code(3)}"


def serialize_booking(booking: Booking, total_paid: Optional[float] = None) -> dict:
    data = {
        "id": booking.id,
        "booking_number": booking.booking_number,
        "status": booking.status,
        "customer_name": booking.customer_name,
        "customer_email": booking.customer_email,
        "customer_phone": booking.customer_phone,
        "tour_type": booking.tour_type,
        "tour_date": booking.tour_date.isoformat(),
        "start_time": booking.start_time,
        "duration_hours": booking.duration_hours,
        "party_size": booking.party_size,
        "pickup_location": booking.pickup_location,
        "driver_id": booking.driver_id,
        "vehicle_id": booking.vehicle_id,
        "subtotal": booking.subtotal,
        "taxes": booking.taxes,
        "gratuity": booking.gratuity,
        "total_amount": booking.total_amount,
        "deposit_amount": booking.deposit_amount,
        "deposit_paid": booking.deposit_paid,
        "wineries": [stop.winery.name for stop in booking.stops if stop.winery],
    }
    if total_paid is not None:
        data["total_paid"] = round(total_paid, 2)
        data["balance_due"] = round((booking.total_amount or 0) - total_paid, 2)
    return data


class BookingService:
    """Service layer for bookings"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.availability = AvailabilityService(db)

    # ========================================================================
    # QUOTES
    # ========================================================================

    def quote(self, data: QuoteRequest) -> dict:
        try:
            if data.service_type == "wine_tour":
                result = calculate_wine_tour_price(data.hours or 0, data.party_size, data.tour_date)
            elif data.service_type == "shared_tour":
                result = calculate_shared_tour_price(data.party_size, data.tour_date, data.include_lunch)
            elif data.service_type == "transfer":
                result = calculate_transfer_price(data.route or "", data.miles)
            else:
                result = calculate_wait_time_price(data.hours or 0, data.party_size, data.tour_date)
        except PricingError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        total = result.get("total", result["subtotal"])
        return {
            "service_type": data.service_type,
            "tour_date": data.tour_date.isoformat(),
            "party_size": data.party_size,
            **result,
            "deposit_amount": calculate_deposit(total),
        }

    def multi_day_quote(self, data: MultiDayQuoteRequest) -> dict:
        days = [
            {"date": day.date, "services": [service.model_dump() for service in day.services]}
            for day in data.days
        ]
        try:
            return calculate_multi_day_quote(data.party_size, days, data.deposit_percentage)
        except PricingError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

    def payment_fee(self, amount: float, payment_method: str) -> dict:
        try:
            fee = calculate_processing_fee(amount, payment_method)
        except PricingError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return {
            "amount": round(amount, 2),
            "payment_method": payment_method,
            "processing_fee": fee,
            "total": round(amount + fee, 2),
        }

    # ========================================================================
    # BOOKING FLOW
    # ========================================================================

    def create_booking(self, data: BookingCreate) -> dict:
        """Validate, check a vehicle is free, price and store a pending booking"""
        if data.tour_date <= datetime.utcnow().date():
            raise HTTPException(status_code=400, detail="Tour date must be in the future")
        if data.party_size < 1 or data.party_size > MAX_PARTY_SIZE:
            raise HTTPException(status_code=400, detail=f"Party size must be between 1 and {MAX_PARTY_SIZE}")

        if not self.availability.get_available_vehicles(data.tour_date, data.party_size):
            raise HTTPException(
                status_code=409,
                detail=f"No vehicles are available for {data.party_size} guests on {data.tour_date.isoformat()}",
            )
        if not self.availability.has_open_vehicle(data.tour_date, data.party_size):
            raise HTTPException(status_code=409, detail="Not enough capacity available for this date")

        pricing = calculate_wine_tour_price(data.duration_hours, data.party_size, data.tour_date)
        wineries = self.repo.get_active_wineries(self.db, data.winery_ids)
        if len(wineries) != len(set(data.winery_ids)):
            raise HTTPException(status_code=400, detail="One or more wineries are unavailable")

        booking = self.repo.create(
            self.db,
            booking_number=generate_booking_number(data.tour_date.year),
            customer_name=data.customer_name,
            customer_email=data.customer_email,
            customer_phone=data.customer_phone,
            tour_type="wine_tour",
            tour_date=data.tour_date,
            start_time=data.start_time,
            duration_hours=pricing["hours"],
            party_size=data.party_size,
            pickup_location=data.pickup_location,
            status="pending",
            subtotal=pricing["subtotal"],
            taxes=pricing["tax"],
            gratuity=0,
            total_amount=pricing["total"],
            deposit_amount=calculate_deposit(pricing["total"]),
            deposit_paid=False,
            notes=data.notes,
        )
        # Keep the customer's stop order
        by_id = {w.id: w for w in wineries}
        ordered_ids = list(dict.fromkeys(data.winery_ids))
        booking.stops = [
            BookingStop(winery_id=by_id[wid].id, stop_order=i) for i, wid in enumerate(ordered_ids, start=1)
        ]
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"✅ Booking {booking.booking_number} created for {data.customer_email} on {data.tour_date}")
        return {
            "success": True,
            "booking_number": booking.booking_number,
            "status": booking.status,
            "pricing": pricing,
            "payment": calculate_payment_amounts(pricing["total"], data.payment_method),
        }

    def get_customer_booking(self, booking_number: str, email: str) -> dict:
        booking = self.repo.get_by_number(self.db, booking_number)
        if not booking or booking.customer_email.lower() != (email or "").strip().lower():
            raise HTTPException(status_code=404, detail="Booking not found")
        return serialize_booking(booking, self.repo.total_paid(self.db, booking.id))

    # ========================================================================
    # ADMIN
    # ========================================================================

    def list_bookings(self, status: Optional[str], tour_date: Optional[date]) -> dict:
        bookings = self.repo.list_bookings(self.db, status, tour_date)
        return {"bookings": [serialize_booking(b) for b in bookings], "total": len(bookings)}

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.repo.get_by_id(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def update_booking(self, booking_id: int, data: BookingUpdate) -> dict:
        booking = self.get_booking(booking_id)
        updates = data.model_dump(exclude_unset=True)

        if updates.get("driver_id") is not None and not self.repo.get_driver(self.db, updates["driver_id"]):
            raise HTTPException(status_code=400, detail="Driver not found")

        if updates.get("vehicle_id") is not None:
            vehicle = self.db.query(Vehicle).filter(Vehicle.id == updates["vehicle_id"]).first()
            if not vehicle or not vehicle.is_active:
                raise HTTPException(status_code=400, detail="Vehicle not found or inactive")
            if vehicle.capacity < booking.party_size:
                raise HTTPException(status_code=400, detail="Vehicle capacity is too small for this party")
            if not self.availability.is_vehicle_free(vehicle.id, booking.tour_date, booking.id):
                raise HTTPException(status_code=409, detail="Vehicle is not available on this date")

        for key, value in updates.items():
            setattr(booking, key, value)

        self.db.flush()
        self.availability.sync_booking_block(booking)
        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"✅ Booking {booking.booking_number} updated: {sorted(updates.keys())}")
        return serialize_booking(booking)

    def record_payment(self, booking_id: int, data: PaymentCreate) -> dict:
        """Record a received payment and update deposit status"""
        booking = self.get_booking(booking_id)
        if booking.status == "cancelled":
            raise HTTPException(status_code=400, detail="Cannot record a payment on a cancelled booking")

        paid = self.repo.total_paid(self.db, booking.id)
        if paid + data.amount > (booking.total_amount or 0) + 0.005:
            raise HTTPException(status_code=400, detail="Payment exceeds the remaining balance")

        payment = self.repo.add_payment(
            self.db,
            booking_id=booking.id,
            amount=round(data.amount, 2),
            payment_type=data.payment_type,
            payment_method=data.payment_method,
            processing_fee=calculate_processing_fee(data.amount, data.payment_method),
            status="succeeded",
            reference=data.reference,
        )
        paid += payment.amount
        if paid + 0.005 >= (booking.deposit_amount or 0):
            booking.deposit_paid = True
        self.db.commit()

        logger.info(f"💳 Payment of ${payment.amount:.2f} recorded for booking {booking.booking_number}")
        return {
            "success": True,
            "payment_id": payment.id,
            "processing_fee": payment.processing_fee,
            "total_paid": round(paid, 2),
            "balance_due": round((booking.total_amount or 0) - paid, 2),
            "deposit_paid": booking.deposit_paid,
        }
