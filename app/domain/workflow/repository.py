"""Workflow repository - Time cards, inspections and weekly hours"""

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import User, Vehicle
from ...models_workflow import Inspection, TimeCard, WeeklyHos


class WorkflowRepository:
    """Repository for driver workflow database operations"""

    @staticmethod
    def get_open_card(db: Session, driver_id: int, on_date: Optional[date] = None) -> Optional[TimeCard]:
        query = db.query(TimeCard).filter(TimeCard.driver_id == driver_id, TimeCard.clock_out_time.is_(None))
        if on_date is not None:
            query = query.filter(TimeCard.date == on_date)
        return query.options(joinedload(TimeCard.vehicle)).order_by(TimeCard.clock_in_time.desc()).first()

    @staticmethod
    def get_open_card_before(db: Session, driver_id: int, before: date) -> Optional[TimeCard]:
        return (
            db.query(TimeCard)
            .filter(TimeCard.driver_id == driver_id, TimeCard.clock_out_time.is_(None), TimeCard.date < before)
            .order_by(TimeCard.date.desc())
            .first()
        )

    @staticmethod
    def get_last_closed_card(db: Session, driver_id: int, on_date: date) -> Optional[TimeCard]:
        return (
            db.query(TimeCard)
            .options(joinedload(TimeCard.vehicle))
            .filter(TimeCard.driver_id == driver_id, TimeCard.date == on_date, TimeCard.clock_out_time.isnot(None))
            .order_by(TimeCard.clock_out_time.desc())
            .first()
        )

    @staticmethod
    def get_vehicle(db: Session, vehicle_id: int) -> Optional[Vehicle]:
        return db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()

    @staticmethod
    def open_card_for_vehicle(db: Session, vehicle_id: int, exclude_driver_id: int) -> Optional[TimeCard]:
        return (
            db.query(TimeCard)
            .options(joinedload(TimeCard.driver))
            .filter(
                TimeCard.vehicle_id == vehicle_id,
                TimeCard.clock_out_time.is_(None),
                TimeCard.driver_id != exclude_driver_id,
            )
            .first()
        )

    @staticmethod
    def vehicles_in_use(db: Session) -> dict[int, str]:
        """Vehicle id to the name of the driver currently using it"""
        rows = (
            db.query(TimeCard.vehicle_id, User.name)
            .join(User, User.id == TimeCard.driver_id)
            .filter(TimeCard.clock_out_time.is_(None), TimeCard.vehicle_id.isnot(None))
            .all()
        )
        return {vehicle_id: name for vehicle_id, name in rows}

    @staticmethod
    def list_active_vehicles(db: Session) -> list[Vehicle]:
        return db.query(Vehicle).filter(Vehicle.is_active.is_(True)).order_by(Vehicle.vehicle_number).all()

    @staticmethod
    def has_post_trip(db: Session, time_card_id: int) -> bool:
        return (
            db.query(Inspection.id)
            .filter(Inspection.time_card_id == time_card_id, Inspection.type == "post_trip")
            .first()
            is not None
        )

    @staticmethod
    def completed_hours_since(db: Session, driver_id: int, since: date) -> float:
        total = (
            db.query(func.sum(TimeCard.on_duty_hours))
            .filter(TimeCard.driver_id == driver_id, TimeCard.date >= since, TimeCard.status == "completed")
            .scalar()
        )
        return float(total or 0)

    @staticmethod
    def week_totals(db: Session, driver_id: int, week_start: date, week_end: date) -> tuple[float, int]:
        total, days = (
            db.query(func.sum(TimeCard.on_duty_hours), func.count(func.distinct(TimeCard.date)))
            .filter(
                TimeCard.driver_id == driver_id,
                TimeCard.date >= week_start,
                TimeCard.date <= week_end,
                TimeCard.clock_out_time.isnot(None),
            )
            .one()
        )
        return float(total or 0), int(days or 0)

    @staticmethod
    def get_weekly_hos(db: Session, driver_id: int, week_start: date) -> Optional[WeeklyHos]:
        return (
            db.query(WeeklyHos)
            .filter(WeeklyHos.driver_id == driver_id, WeeklyHos.week_start_date == week_start)
            .first()
        )
