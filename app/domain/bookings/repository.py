"""Booking repository - Database operations for bookings and payments"""

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ...models import Booking, BookingStop, Payment, User, Winery


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_by_id(db: Session, booking_id: int) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(selectinload(Booking.stops).selectinload(BookingStop.winery))
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def get_by_number(db: Session, booking_number: str) -> Optional[Booking]:
        return db.query(Booking).filter(func.upper(Booking.booking_number) == booking_number.strip().upper()).first()

    @staticmethod
    def get_latest_by_email(db: Session, email: str) -> Optional[Booking]:
        return (
            db.query(Booking)
            .filter(func.lower(Booking.customer_email) == email.strip().lower())
            .order_by(Booking.tour_date.desc(), Booking.id.desc())
            .first()
        )

    @staticmethod
    def list_bookings(db: Session, status: Optional[str] = None, tour_date: Optional[date] = None) -> list[Booking]:
        query = db.query(Booking)
        if status and status != "all":
            query = query.filter(Booking.status == status)
        if tour_date:
            query = query.filter(Booking.tour_date == tour_date)
        return query.order_by(Booking.tour_date.desc(), Booking.id.desc()).all()

    @staticmethod
    def create(db: Session, **data) -> Booking:
        booking = Booking(**data)
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def get_active_wineries(db: Session, winery_ids: list[int]) -> list[Winery]:
        if not winery_ids:
            return []
        return db.query(Winery).filter(Winery.id.in_(winery_ids), Winery.is_active.is_(True)).all()

    @staticmethod
    def get_driver(db: Session, driver_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == driver_id, User.role == "driver").first()

    @staticmethod
    def total_paid(db: Session, booking_id: int) -> float:
        paid = (
            db.query(func.sum(Payment.amount))
            .filter(Payment.booking_id == booking_id, Payment.status == "succeeded")
            .scalar()
        )
        return float(paid or 0)

    @staticmethod
    def add_payment(db: Session, **data) -> Payment:
        payment = Payment(**data)
        db.add(payment)
        db.flush()
        return payment
