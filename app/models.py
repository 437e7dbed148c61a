import secrets

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_share_code():
    """Short public code used to share a consultation with the customer"""
    return secrets.token_urlsafe(8)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=True)
    role = Column(String(20), default="staff", nullable=False)  # admin, staff, driver
    phone = Column(String(30), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    # Driver compliance dates
    license_expiry = Column(Date, nullable=True)
    medical_cert_expiry = Column(Date, nullable=True)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_number = Column(String(50), unique=True, nullable=False)
    name = Column(String(255), nullable=True)  # e.g. "Sprinter 1"
    make = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    capacity = Column(Integer, nullable=False, default=14)
    is_active = Column(Boolean, default=True, nullable=False)
    insurance_expiry = Column(Date, nullable=True)
    registration_expiry = Column(Date, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        return " ".join(p for p in [self.make, self.model] if p) or self.vehicle_number


class Winery(Base):
    __tablename__ = "wineries"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(100), default="Walla Walla")
    tasting_fee = Column(Float, nullable=True)
    average_visit_duration = Column(Integer, default=60)  # minutes
    specialties = Column(JSON, default=list)  # grape varieties / wine styles
    features = Column(JSON, default=list)  # e.g. "outdoor seating", "food"
    reservation_required = Column(Boolean, default=False)
    website = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_number = Column(String(50), unique=True, index=True, nullable=False)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), index=True, nullable=False)
    customer_phone = Column(String(30), nullable=True)
    tour_type = Column(String(50), default="wine_tour")
    tour_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), default="10:00")  # HH:MM
    duration_hours = Column(Float, default=6)
    party_size = Column(Integer, nullable=False)
    pickup_location = Column(String(500), nullable=True)
    status = Column(String(20), default="pending", index=True)  # pending, confirmed, completed, cancelled
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True)
    subtotal = Column(Float, default=0)
    taxes = Column(Float, default=0)
    gratuity = Column(Float, default=0)
    total_amount = Column(Float, default=0)
    deposit_amount = Column(Float, default=0)
    deposit_paid = Column(Boolean, default=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    driver = relationship("User")
    vehicle = relationship("Vehicle")
    stops = relationship(
        "BookingStop", back_populates="booking", order_by="BookingStop.stop_order", cascade="all, delete-orphan"
    )
    payments = relationship("Payment", back_populates="booking", cascade="all, delete-orphan")


class BookingStop(Base):
    __tablename__ = "booking_wineries"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    winery_id = Column(Integer, ForeignKey("wineries.id"), nullable=False)
    stop_order = Column(Integer, default=1)

    booking = relationship("Booking", back_populates="stops")
    winery = relationship("Winery")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Float, nullable=False)
    payment_type = Column(String(20), default="deposit")  # deposit, balance
    payment_method = Column(String(20), default="card")  # card, ach, check
    processing_fee = Column(Float, default=0)
    status = Column(String(20), default="succeeded")  # pending, succeeded, failed, refunded
    reference = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    booking = relationship("Booking", back_populates="payments")


class AvailabilityBlock(Base):
    __tablename__ = "availability_blocks"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False)
    block_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=True)  # HH:MM, null = whole day
    end_time = Column(String(5), nullable=True)
    block_type = Column(String(20), nullable=False)  # maintenance, blackout, hold, booking
    reason = Column(Text, nullable=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    vehicle = relationship("Vehicle")


class Consultation(Base):
    __tablename__ = "consultations"

    id = Column(Integer, primary_key=True, index=True)
    share_code = Column(String(32), unique=True, index=True, default=generate_share_code)
    title = Column(String(255), nullable=True)
    trip_type = Column(String(50), default="wine_tour")
    owner_name = Column(String(255), nullable=False)
    owner_email = Column(String(255), nullable=False)
    owner_phone = Column(String(30), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    expected_guests = Column(Integer, nullable=True)
    status = Column(String(20), default="planning")  # planning, handed_off
    handoff_notes = Column(Text, nullable=True)
    handed_off_at = Column(DateTime, nullable=True)
    preferences = Column(JSON, nullable=True)
    assigned_staff_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    converted_to_proposal_id = Column(Integer, ForeignKey("trip_proposals.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    assigned_staff = relationship("User")


class CorporateRequest(Base):
    __tablename__ = "corporate_requests"

    id = Column(Integer, primary_key=True, index=True)
    request_number = Column(String(20), unique=True, index=True, nullable=False)
    company_name = Column(String(255), nullable=False)
    contact_name = Column(String(255), nullable=False)
    contact_email = Column(String(255), nullable=False)
    contact_phone = Column(String(30), nullable=True)
    event_type = Column(String(100), nullable=True)
    party_size = Column(Integer, nullable=True)
    preferred_dates = Column(JSON, nullable=True)  # list of YYYY-MM-DD strings
    description = Column(Text, nullable=True)
    ai_extracted_data = Column(JSON, nullable=True)
    status = Column(String(20), default="pending")  # pending, reviewing, converted, declined
    converted_to_proposal_id = Column(Integer, ForeignKey("trip_proposals.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Inquiry(Base):
    __tablename__ = "inquiries"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=True)
    tour_date = Column(Date, nullable=True)
    party_size = Column(Integer, nullable=True)
    tour_type = Column(String(50), default="wine_tour")
    preferences = Column(Text, nullable=True)
    pickup_location = Column(String(500), nullable=True)
    source = Column(String(20), default="website")  # website, chatgpt
    status = Column(String(20), default="new")  # new, contacted, converted, closed
    created_at = Column(DateTime, server_default=func.now())

    @property
    def inquiry_number(self) -> str:
        return f"INQ-{self.id:06d}"
