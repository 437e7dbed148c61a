"""
Compliance expiry notifications
Driver licenses, medical certificates, vehicle insurance and registration
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..config import STAFF_NOTIFICATION_EMAIL
from ..email_service import send_compliance_driver_alert, send_compliance_staff_alert
from ..models import User, Vehicle

logger = logging.getLogger(__name__)

LOOKAHEAD_DAYS = 40
NOTIFY_ON_DAYS = {40, 20, 10, 5, 1, 0}
SEVERITY_ORDER = ["expired", "critical", "urgent", "warning"]

DRIVER_DOCUMENTS = [("license_expiry", "Driver's license"), ("medical_cert_expiry", "Medical certificate")]
VEHICLE_DOCUMENTS = [("insurance_expiry", "Insurance"), ("registration_expiry", "Registration")]


def severity_for(days_remaining: int) -> str:
    if days_remaining <= 0:
        return "expired"
    if days_remaining <= 5:
        return "critical"
    if days_remaining <= 10:
        return "urgent"
    return "warning"


def should_notify(days_remaining: int) -> bool:
    return days_remaining in NOTIFY_ON_DAYS


def collect_expiring_items(db: Session, today: Optional[date] = None) -> list[dict[str, Any]]:
    """Every active driver or vehicle document expiring within the lookahead, expired ones included"""
    today = today or datetime.utcnow().date()
    horizon = today + timedelta(days=LOOKAHEAD_DAYS)
    items = []

    drivers = db.query(User).filter(User.role == "driver", User.is_active.is_(True)).all()
    for driver in drivers:
        for field, label in DRIVER_DOCUMENTS:
            expiry = getattr(driver, field)
            if expiry and expiry <= horizon:
                days = (expiry - today).days
                items.append(
                    {
                        "entity_type": "driver",
                        "entity_id": driver.id,
                        "name": driver.name,
                        "email": driver.email,
                        "label": label,
                        "expiry_date": expiry.isoformat(),
                        "days_remaining": days,
                        "severity": severity_for(days),
                    }
                )

    vehicles = db.query(Vehicle).filter(Vehicle.is_active.is_(True)).all()
    for vehicle in vehicles:
        for field, label in VEHICLE_DOCUMENTS:
            expiry = getattr(vehicle, field)
            if expiry and expiry <= horizon:
                days = (expiry - today).days
                items.append(
                    {
                        "entity_type": "vehicle",
                        "entity_id": vehicle.id,
                        "name": vehicle.display_name,
                        "email": None,
                        "label": label,
                        "expiry_date": expiry.isoformat(),
                        "days_remaining": days,
                        "severity": severity_for(days),
                    }
                )

    items.sort(key=lambda item: (SEVERITY_ORDER.index(item["severity"]), item["days_remaining"]))
    return items


async def run_compliance_notifications(db: Session, today: Optional[date] = None) -> dict[str, Any]:
    """Send staff and driver alerts for documents hitting a notification day"""
    items = collect_expiring_items(db, today)
    due = [item for item in items if should_notify(item["days_remaining"])]
    sent = 0
    errors = []

    by_severity: dict[str, list[dict]] = {}
    for item in due:
        by_severity.setdefault(item["severity"], []).append(item)

    for severity in SEVERITY_ORDER:
        group = by_severity.get(severity)
        if not group:
            continue
        try:
            await send_compliance_staff_alert(STAFF_NOTIFICATION_EMAIL, severity, group)
            sent += 1
        except Exception as e:
            logger.error(f"❌ Failed to send {severity} compliance alert to staff: {e}")
            errors.append(f"Staff alert ({severity}): {e}")

    for item in due:
        if item["entity_type"] != "driver":
            continue
        if not item["email"]:
            errors.append(f"Driver {item['name']} has no email address for {item['label']} alert")
            continue
        try:
            await send_compliance_driver_alert(
                to=item["email"],
                driver_name=item["name"],
                label=item["label"],
                expiry_date=item["expiry_date"],
                days_remaining=item["days_remaining"],
                severity=item["severity"],
            )
            sent += 1
        except Exception as e:
            logger.error(f"❌ Failed to send compliance alert to {item['email']}: {e}")
            errors.append(f"Driver alert ({item['name']}): {e}")

    logger.info(f"📋 Compliance check: {len(items)} expiring item(s), {sent} notification(s) sent")
    return {"checked": len(items), "notifications_sent": sent, "errors": errors}
