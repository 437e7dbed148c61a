"""
Driver time clock
Clock in/out with vehicle checks, post-trip enforcement and hours-of-service warnings
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import User
from ...models_workflow import Inspection, TimeCard, WeeklyHos
from .repository import WorkflowRepository
from .schemas import ClockRequest, InspectionCreate

logger = logging.getLogger(__name__)

MAX_SHIFT_HOURS = 15
MAX_ROLLING_HOURS = 70
ROLLING_WINDOW_DAYS = 8
AUTO_CLOSE_AFTER = timedelta(hours=24)
AUTO_CLOSE_SIGNATURE = "SYSTEM_AUTO_CLOSE"


def format_clock_time(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime("%I:%M %p").lstrip("0") + " UTC"


def shift_hours(clock_in: datetime, clock_out: datetime) -> float:
    return round(max(0.0, (clock_out - clock_in).total_seconds() / 3600), 2)


def week_start_for(day: date) -> date:
    """Monday of the week containing day"""
    return day - timedelta(days=day.weekday())


def serialize_time_card(card: TimeCard) -> dict:
    return {
        "id": card.id,
        "driver_id": card.driver_id,
        "vehicle_id": card.vehicle_id,
        "vehicle": card.vehicle.display_name if card.vehicle else None,
        "date": card.date.isoformat(),
        "clock_in_time": card.clock_in_time,
        "clock_out_time": card.clock_out_time,
        "on_duty_hours": card.on_duty_hours,
        "status": card.status,
        "notes": card.notes,
    }


def shift_summary(card: TimeCard) -> dict:
    return {
        "clock_in": format_clock_time(card.clock_in_time),
        "clock_out": format_clock_time(card.clock_out_time),
        "total_hours": f"{card.on_duty_hours or 0:.2f}",
        "vehicle": card.vehicle.display_name if card.vehicle else None,
    }


class WorkflowService:
    """Service layer for the driver time clock"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = WorkflowRepository()

    # ========================================================================
    # CLOCK
    # ========================================================================

    def clock(self, driver: User, data: ClockRequest) -> dict:
        if data.action == "clock_in":
            return self.clock_in(driver, data.vehicle_id, data.force_clock_out)
        if data.action == "clock_out":
            return self.clock_out(driver, data.signature)
        raise HTTPException(status_code=400, detail="Action must be clock_in or clock_out")

    def _auto_close(self, card: TimeCard) -> None:
        end_of_day = datetime.combine(card.date, time(23, 59, 59, 999999))
        card.clock_out_time = end_of_day
        card.on_duty_hours = shift_hours(card.clock_in_time, end_of_day)
        card.driver_signature = AUTO_CLOSE_SIGNATURE
        card.signature_timestamp = end_of_day
        card.status = "auto_closed"
        card.notes = "Auto-closed by system - incomplete time card"
        self.db.flush()
        logger.warning(f"⚠️ Auto-closed incomplete time card {card.id} from {card.date}")

    def clock_in(self, driver: User, vehicle_id: Optional[int], force_clock_out: bool = False) -> dict:
        now = datetime.utcnow()
        today = now.date()

        active = self.repo.get_open_card(self.db, driver.id, on_date=today)
        if active:
            return {
                "status": "already_clocked_in",
                "message": f"You're already clocked in as of {format_clock_time(active.clock_in_time)}",
                "time_card": serialize_time_card(active),
            }

        previous = self.repo.get_open_card_before(self.db, driver.id, today)
        if previous:
            if force_clock_out or now - previous.clock_in_time > AUTO_CLOSE_AFTER:
                self._auto_close(previous)
            else:
                return {
                    "status": "incomplete_previous",
                    "message": f"You have an incomplete time card from {previous.date.isoformat()}",
                    "previous_card": serialize_time_card(previous),
                }

        if not vehicle_id:
            self.db.commit()
            return {"status": "vehicle_required", "message": "Please select a vehicle to clock in"}

        vehicle = self.repo.get_vehicle(self.db, vehicle_id)
        if not vehicle:
            self.db.commit()
            return {"status": "invalid_vehicle", "message": "Selected vehicle not found"}
        if not vehicle.is_active:
            self.db.commit()
            return {
                "status": "vehicle_inactive",
                "message": f"Vehicle {vehicle.vehicle_number} is not currently active",
            }

        in_use = self.repo.open_card_for_vehicle(self.db, vehicle.id, exclude_driver_id=driver.id)
        if in_use:
            self.db.commit()
            driver_name = in_use.driver.name if in_use.driver else "another driver"
            return {
                "status": "vehicle_in_use",
                "message": f"Vehicle {vehicle.vehicle_number} is currently in use by {driver_name}",
            }

        card = TimeCard(driver_id=driver.id, vehicle_id=vehicle.id, date=today, clock_in_time=now, status="on_duty")
        self.db.add(card)
        self.db.commit()
        self.db.refresh(card)

        logger.info(f"✅ Driver {driver.id} clocked in with vehicle {vehicle.vehicle_number}")
        return {
            "status": "success",
            "message": f"Successfully clocked in at {format_clock_time(now)}",
            "time_card": serialize_time_card(card),
            "vehicle": vehicle.display_name,
            "reminders": ["Remember to complete your pre-trip inspection"],
        }

    def clock_out(self, driver: User, signature: Optional[str]) -> dict:
        card = self.repo.get_open_card(self.db, driver.id)
        if not card:
            return {"status": "not_clocked_in", "message": "You're not currently clocked in"}

        if not signature or not signature.strip():
            return {"status": "signature_required", "message": "Your signature is required to clock out"}

        if card.vehicle_id and not self.repo.has_post_trip(self.db, card.id):
            vehicle_name = card.vehicle.display_name if card.vehicle else "the vehicle"
            return {
                "status": "post_trip_required",
                "message": f"Post-Trip Inspection required for {vehicle_name}",
            }

        now = datetime.utcnow()
        hours = shift_hours(card.clock_in_time, now)

        warnings = []
        if hours > MAX_SHIFT_HOURS:
            warnings.append(f"Warning: {hours:.2f} hours on duty exceeds {MAX_SHIFT_HOURS}-hour limit")

        window_start = now.date() - timedelta(days=ROLLING_WINDOW_DAYS - 1)
        rolling_hours = self.repo.completed_hours_since(self.db, driver.id, window_start) + hours
        if rolling_hours > MAX_ROLLING_HOURS:
            warnings.append(
                f"Warning: {rolling_hours:.2f} hours in {ROLLING_WINDOW_DAYS} days exceeds "
                f"{MAX_ROLLING_HOURS}-hour limit"
            )

        card.clock_out_time = now
        card.on_duty_hours = hours
        card.driver_signature = signature.strip()
        card.signature_timestamp = now
        card.status = "completed"
        self.db.flush()

        self._update_weekly_hos(driver.id, card.date)
        self.db.commit()
        self.db.refresh(card)

        if warnings:
            logger.warning(f"⚠️ Hours-of-service warnings for driver {driver.id}: {warnings}")
        logger.info(f"✅ Driver {driver.id} clocked out after {hours:.2f} hours")
        return {
            "status": "success",
            "message": f"Successfully clocked out at {format_clock_time(now)}",
            "time_card": serialize_time_card(card),
            "summary": shift_summary(card),
            "warnings": warnings,
        }

    def _update_weekly_hos(self, driver_id: int, day: date) -> None:
        week_start = week_start_for(day)
        total, days = self.repo.week_totals(self.db, driver_id, week_start, week_start + timedelta(days=6))
        row = self.repo.get_weekly_hos(self.db, driver_id, week_start)
        if row is None:
            row = WeeklyHos(driver_id=driver_id, week_start_date=week_start)
            self.db.add(row)
        row.total_on_duty_hours = round(total, 2)
        row.days_worked = days

    def get_status(self, driver: User) -> dict:
        card = self.repo.get_open_card(self.db, driver.id)
        if card:
            return {
                "status": "clocked_in",
                "message": f"Clocked in since {format_clock_time(card.clock_in_time)}",
                "time_card": serialize_time_card(card),
                "hours_worked": f"{shift_hours(card.clock_in_time, datetime.utcnow()):.2f}",
                "can_clock_in": False,
                "can_clock_out": True,
            }

        last = self.repo.get_last_closed_card(self.db, driver.id, datetime.utcnow().date())
        if last:
            return {
                "status": "clocked_out",
                "message": f"Last clocked out at {format_clock_time(last.clock_out_time)}",
                "last_shift": shift_summary(last),
                "can_clock_in": True,
                "can_clock_out": False,
            }
        return {
            "status": "not_clocked_in",
            "message": "Ready to start your shift",
            "can_clock_in": True,
            "can_clock_out": False,
        }

    # ========================================================================
    # VEHICLES & INSPECTIONS
    # ========================================================================

    def list_vehicles(self) -> dict:
        in_use = self.repo.vehicles_in_use(self.db)
        vehicles = [
            {
                "id": v.id,
                "vehicle_number": v.vehicle_number,
                "name": v.display_name,
                "capacity": v.capacity,
                "in_use": v.id in in_use,
                "in_use_by": in_use.get(v.id),
            }
            for v in self.repo.list_active_vehicles(self.db)
        ]
        return {"vehicles": vehicles}

    def create_inspection(self, driver: User, data: InspectionCreate) -> dict:
        card = self.repo.get_open_card(self.db, driver.id)
        if data.type == "post_trip" and not card:
            raise HTTPException(status_code=400, detail="You must be clocked in to submit a post-trip inspection")

        vehicle_id = data.vehicle_id or (card.vehicle_id if card else None)
        if not vehicle_id:
            raise HTTPException(status_code=400, detail="A vehicle is required for an inspection")
        if not self.repo.get_vehicle(self.db, vehicle_id):
            raise HTTPException(status_code=400, detail="Vehicle not found")

        inspection = Inspection(
            driver_id=driver.id,
            vehicle_id=vehicle_id,
            time_card_id=card.id if card else None,
            type=data.type,
            mileage=data.mileage,
            checklist=data.checklist,
            defects_found=data.defects_found,
            defect_notes=data.defect_notes,
            signature=data.signature,
        )
        self.db.add(inspection)
        self.db.commit()
        self.db.refresh(inspection)

        if data.defects_found:
            logger.warning(f"⚠️ Defects reported on vehicle {vehicle_id} by driver {driver.id}: {data.defect_notes}")
        logger.info(f"✅ {data.type} inspection {inspection.id} recorded for vehicle {vehicle_id}")
        return {"success": True, "inspection_id": inspection.id, "time_card_id": inspection.time_card_id}
