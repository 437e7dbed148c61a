"""Compliance expiry notifications"""

import asyncio
from datetime import date, timedelta

import pytest

from app.services import compliance_notifications
from app.services.compliance_notifications import (
    collect_expiring_items,
    run_compliance_notifications,
    severity_for,
    should_notify,
)

TODAY = date(2030, 3, 1)


@pytest.mark.parametrize(
    "days, severity",
    [(-3, "expired"), (0, "expired"), (1, "critical"), (5, "critical"), (6, "urgent"), (10, "urgent"), (11, "warning")],
)
def test_severity_for(days, severity):
    assert severity_for(days) == severity


def test_notification_days():
    assert [d for d in range(-2, 45) if should_notify(d)] == [0, 1, 5, 10, 20, 40]


class TestCollectExpiringItems:
    def test_orders_by_severity_then_days(self, db, user_factory, make_vehicle):
        user_factory(
            "ana@wallawalla.travel",
            "driver",
            license_expiry=TODAY + timedelta(days=20),
            medical_cert_expiry=TODAY - timedelta(days=2),
        )
        make_vehicle(name="Sprinter 1", insurance_expiry=TODAY + timedelta(days=3))
        make_vehicle(name="Sprinter 2", registration_expiry=TODAY + timedelta(days=90))

        items = collect_expiring_items(db, TODAY)

        assert [(i["label"], i["severity"]) for i in items] == [
            ("Medical certificate", "expired"),
            ("Insurance", "critical"),
            ("Driver's license", "warning"),
        ]
        assert items[1]["name"] == "Sprinter 1"
        assert items[1]["email"] is None

    def test_inactive_drivers_and_staff_are_ignored(self, db, user_factory):
        user_factory("gone@wallawalla.travel", "driver", is_active=False, license_expiry=TODAY)
        user_factory("office@wallawalla.travel", "staff", license_expiry=TODAY)

        assert collect_expiring_items(db, TODAY) == []


class TestRunNotifications:
    def test_sends_staff_and_driver_alerts_on_notification_days(self, db, user_factory, make_vehicle, sent_emails):
        user_factory("ana@wallawalla.travel", "driver", name="Ana Ruiz", license_expiry=TODAY + timedelta(days=5))
        user_factory("ben@wallawalla.travel", "driver", license_expiry=TODAY + timedelta(days=7))
        make_vehicle(insurance_expiry=TODAY)

        result = asyncio.run(run_compliance_notifications(db, today=TODAY))

        assert result == {"checked": 3, "notifications_sent": 3, "errors": []}
        subjects = [e["subject"] for e in sent_emails]
        assert subjects == [
            "[Compliance EXPIRED] 1 item(s) need attention",
            "[Compliance CRITICAL] 1 item(s) need attention",
            "[Critical] Your Driver's license expires in 5 days",
        ]
        assert sent_emails[2]["to"] == "ana@wallawalla.travel"

    def test_email_failures_are_collected(self, db, monkeypatch, user_factory):
        user_factory("ana@wallawalla.travel", "driver", license_expiry=TODAY)

        async def broken(*args, **kwargs):
            raise RuntimeError("resend down")

        monkeypatch.setattr(compliance_notifications, "send_compliance_staff_alert", broken)
        monkeypatch.setattr(compliance_notifications, "send_compliance_driver_alert", broken)

        result = asyncio.run(run_compliance_notifications(db, today=TODAY))

        assert result["notifications_sent"] == 0
        assert len(result["errors"]) == 2

    def test_cron_route(self, client, cron_headers):
        body = client.get("/api/cron/compliance-notifications", headers=cron_headers).json()
        assert body == {"success": True, "checked": 0, "notifications_sent": 0, "errors": []}
