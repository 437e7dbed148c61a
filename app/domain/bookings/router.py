"""Booking router - Public quotes and booking flow, admin dispatch and payments"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from ...rate_limiter import public_form_rate_limit
from .schemas import BookingCreate, BookingUpdate, MultiDayQuoteRequest, PaymentCreate, QuoteRequest
from .service import BookingService, serialize_booking

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])
admin_router = APIRouter(prefix="/api/admin/bookings", tags=["Bookings (Admin)"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


# ============================================================================
# PUBLIC
# ============================================================================


@router.post("/quote")
async def quote(data: QuoteRequest, service: BookingService = Depends(get_booking_service)):
    """Price a single service for a date and party size"""
    return service.quote(data)


@router.post("/quote/multi-day")
async def multi_day_quote(data: MultiDayQuoteRequest, service: BookingService = Depends(get_booking_service)):
    """Day-by-day quote with running totals"""
    return service.multi_day_quote(data)


@router.get("/payment-fee")
async def payment_fee(
    amount: float = Query(..., ge=0),
    payment_method: str = Query("card"),
    service: BookingService = Depends(get_booking_service),
):
    return service.payment_fee(amount, payment_method)


@router.post("", status_code=201)
async def create_booking(
    data: BookingCreate,
    _: None = Depends(public_form_rate_limit),
    service: BookingService = Depends(get_booking_service),
):
    """Customer booking request. Creates a pending booking with a deposit due."""
    return service.create_booking(data)


@router.get("/{booking_number}")
async def get_booking(
    booking_number: str,
    email: str = Query(..., description="Email used on the booking"),
    service: BookingService = Depends(get_booking_service),
):
    """Look up a booking by number; the email must match"""
    return service.get_customer_booking(booking_number, email)


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("")
async def list_bookings(
    status: Optional[str] = Query(None),
    tour_date: Optional[date] = Query(None),
    _: User = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    return service.list_bookings(status, tour_date)


@admin_router.get("/{booking_id}")
async def get_booking_admin(
    booking_id: int,
    _: User = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.get_booking(booking_id)
    return serialize_booking(booking, service.repo.total_paid(service.db, booking.id))


@admin_router.patch("/{booking_id}")
async def update_booking(
    booking_id: int,
    data: BookingUpdate,
    _: User = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    """Assign a driver or vehicle, change status or edit details"""
    return service.update_booking(booking_id, data)


@admin_router.post("/{booking_id}/payments", status_code=201)
async def record_payment(
    booking_id: int,
    data: PaymentCreate,
    _: User = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    return service.record_payment(booking_id, data)
