"""
Trip proposal models
Multi-day itineraries with priced inclusions, sent to customers for acceptance
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
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class TripProposal(Base):
    __tablename__ = "trip_proposals"

    id = Column(Integer, primary_key=True, index=True)
    proposal_number = Column(String(20), unique=True, index=True, nullable=False)  # TP-2025-00001
    status = Column(String(20), default="draft", index=True)

    # Customer
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(30), nullable=True)
    customer_company = Column(String(255), nullable=True)

    # Trip
    trip_type = Column(String(50), default="wine_tour")
    trip_title = Column(String(255), nullable=True)
    party_size = Column(Integer, nullable=False, default=2)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    introduction = Column(Text, nullable=True)
    internal_notes = Column(Text, nullable=True)
    valid_until = Column(Date, nullable=True)

    # Pricing inputs
    tax_rate = Column(Float, default=0.091)
    discount_percentage = Column(Float, default=0)
    gratuity_percentage = Column(Float, default=0)
    deposit_percentage = Column(Float, default=50)
    deposit_paid = Column(Boolean, default=False)
    planning_fee_mode = Column(String(20), default="none")  # none, percentage
    planning_fee_percentage = Column(Float, default=0)

    # Calculated pricing
    subtotal = Column(Float, default=0)
    discount_amount = Column(Float, default=0)
    taxes = Column(Float, default=0)
    gratuity_amount = Column(Float, default=0)
    total = Column(Float, default=0)
    deposit_amount = Column(Float, default=0)
    balance_due = Column(Float, default=0)

    # Customer engagement
    sent_at = Column(DateTime, nullable=True)
    first_viewed_at = Column(DateTime, nullable=True)
    last_viewed_at = Column(DateTime, nullable=True)
    view_count = Column(Integer, default=0)
    accepted_at = Column(DateTime, nullable=True)
    accepted_signature = Column(Text, nullable=True)
    accepted_by_name = Column(String(255), nullable=True)
    declined_at = Column(DateTime, nullable=True)
    decline_reason = Column(Text, nullable=True)
    draft_reminders_enabled = Column(Boolean, default=True)

    # Links
    consultation_id = Column(Integer, nullable=True)
    corporate_request_id = Column(Integer, nullable=True)
    converted_to_booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    days = relationship(
        "TripProposalDay",
        back_populates="proposal",
        order_by="TripProposalDay.day_number",
        cascade="all, delete-orphan",
    )
    inclusions = relationship(
        "TripProposalInclusion",
        back_populates="proposal",
        order_by="TripProposalInclusion.sort_order",
        cascade="all, delete-orphan",
    )
    activities = relationship(
        "TripProposalActivity",
        back_populates="proposal",
        order_by="TripProposalActivity.id",
        cascade="all, delete-orphan",
    )


class TripProposalDay(Base):
    __tablename__ = "trip_proposal_days"

    id = Column(Integer, primary_key=True, index=True)
    proposal_id = Column(Integer, ForeignKey("trip_proposals.id", ondelete="CASCADE"), nullable=False)
    day_number = Column(Integer, nullable=False)
    date = Column(Date, nullable=True)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)

    proposal = relationship("TripProposal", back_populates="days")
    stops = relationship(
        "TripProposalStop",
        back_populates="day",
        order_by="TripProposalStop.stop_order",
        cascade="all, delete-orphan",
    )


class TripProposalStop(Base):
    __tablename__ = "trip_proposal_stops"

    id = Column(Integer, primary_key=True, index=True)
    day_id = Column(Integer, ForeignKey("trip_proposal_days.id", ondelete="CASCADE"), nullable=False)
    stop_order = Column(Integer, default=1)
    stop_type = Column(String(30), default="winery")  # winery, restaurant, lodging, activity, pickup, dropoff
    winery_id = Column(Integer, ForeignKey("wineries.id"), nullable=True)
    lodging_property_id = Column(Integer, ForeignKey("lodging_properties.id"), nullable=True)
    custom_name = Column(String(255), nullable=True)
    start_time = Column(String(5), nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    day = relationship("TripProposalDay", back_populates="stops")
    winery = relationship("Winery")
    lodging_property = relationship("LodgingProperty")

    @property
    def display_name(self) -> str:
        if self.winery:
            return self.winery.name
        if self.lodging_property:
            return self.lodging_property.name
        return self.custom_name or self.stop_type


class TripProposalInclusion(Base):
    __tablename__ = "trip_proposal_inclusions"

    id = Column(Integer, primary_key=True, index=True)
    proposal_id = Column(Integer, ForeignKey("trip_proposals.id", ondelete="CASCADE"), nullable=False)
    inclusion_type = Column(String(30), default="custom")  # transportation, planning_fee, tasting, custom ...
    description = Column(String(500), nullable=False)
    quantity = Column(Float, default=1)
    unit_price = Column(Float, default=0)
    pricing_type = Column(String(20), default="flat")  # flat, per_person, per_day, hourly
    total_price = Column(Float, default=0)
    is_taxable = Column(Boolean, default=True)
    tax_included_in_price = Column(Boolean, default=False)
    sort_order = Column(Integer, default=0)

    proposal = relationship("TripProposal", back_populates="inclusions")


class TripProposalActivity(Base):
    __tablename__ = "trip_proposal_activity"

    id = Column(Integer, primary_key=True, index=True)
    proposal_id = Column(Integer, ForeignKey("trip_proposals.id", ondelete="CASCADE"), nullable=False)
    activity_type = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    actor = Column(String(255), nullable=True)  # staff email, "customer" or "system"
    activity_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    proposal = relationship("TripProposal", back_populates="activities")
