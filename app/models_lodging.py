"""
Lodging directory models
Properties recommended to guests and their nightly availability calendar
"""

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
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class LodgingProperty(Base):
    __tablename__ = "lodging_properties"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    property_type = Column(String(50), default="hotel")  # hotel, vacation_rental, bnb, inn
    description = Column(Text, nullable=True)
    short_description = Column(String(500), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(100), default="Walla Walla")
    state = Column(String(2), default="WA")
    zip_code = Column(String(10), nullable=True)
    phone = Column(String(30), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(500), nullable=True)
    booking_url = Column(String(500), nullable=True)
    amenities = Column(JSON, default=list)
    bedrooms = Column(Integer, nullable=True)
    max_guests = Column(Integer, nullable=True)
    price_range_min = Column(Float, nullable=True)
    price_range_max = Column(Float, nullable=True)
    min_stay_nights = Column(Integer, default=1)
    is_verified = Column(Boolean, default=False)
    verified_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    verified_at = Column(DateTime, nullable=True)
    is_featured = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    availability = relationship(
        "LodgingAvailability", back_populates="property", cascade="all, delete-orphan"
    )


class LodgingAvailability(Base):
    __tablename__ = "lodging_availability"
    __table_args__ = (UniqueConstraint("property_id", "date", name="uq_lodging_availability_date"),)

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("lodging_properties.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    status = Column(String(20), default="available")  # available, booked, blocked, tentative
    nightly_rate = Column(Float, nullable=True)
    min_stay = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    property = relationship("LodgingProperty", back_populates="availability")
