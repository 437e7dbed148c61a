"""
Driver workflow models
Time cards, vehicle inspections and weekly hours-of-service totals
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


class TimeCard(Base):
    __tablename__ = "time_cards"

    id = Column(Integer, primary_key=True, index=True)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True)
    date = Column(Date, nullable=False, index=True)
    clock_in_time = Column(DateTime, nullable=False)
    clock_out_time = Column(DateTime, nullable=True)
    on_duty_hours = Column(Float, nullable=True)
    driver_signature = Column(Text, nullable=True)
    signature_timestamp = Column(DateTime, nullable=True)
    status = Column(String(20), default="on_duty")  # on_duty, completed, auto_closed
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    driver = relationship("User")
    vehicle = relationship("Vehicle")


class Inspection(Base):
    __tablename__ = "inspections"

    id = Column(Integer, primary_key=True, index=True)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    time_card_id = Column(Integer, ForeignKey("time_cards.id"), nullable=True, index=True)
    type = Column(String(20), nullable=False)  # pre_trip, post_trip
    mileage = Column(Integer, nullable=True)
    checklist = Column(JSON, nullable=True)
    defects_found = Column(Boolean, default=False)
    defect_notes = Column(Text, nullable=True)
    signature = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class WeeklyHos(Base):
    __tablename__ = "weekly_hos"
    __table_args__ = (UniqueConstraint("driver_id", "week_start_date", name="uq_weekly_hos_driver_week"),)

    id = Column(Integer, primary_key=True, index=True)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    week_start_date = Column(Date, nullable=False)  # Monday
    total_on_duty_hours = Column(Float, default=0)
    days_worked = Column(Integer, default=0)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
