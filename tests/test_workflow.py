"""Driver time clock and inspections"""

from datetime import datetime, timedelta

import pytest

from app.domain.workflow.service import format_clock_time, shift_hours, week_start_for
from app.models_workflow import TimeCard, WeeklyHos


@pytest.fixture()
def van(make_vehicle):
    return make_vehicle(name="Sprinter 1")


def clock(client, headers, **body):
    response = client.post("/api/workflow/clock", json=body, headers=headers)
    assert response.status_code == 200
    return response.json()


def test_helpers():
    assert format_clock_time(datetime(2030, 1, 1, 9, 5)) == "9:05 AM UTC"
    assert shift_hours(datetime(2030, 1, 1, 8), datetime(2030, 1, 1, 16, 30)) == 8.5
    assert shift_hours(datetime(2030, 1, 1, 8), datetime(2030, 1, 1, 7)) == 0.0
    assert week_start_for(datetime(2030, 1, 10).date()).isoformat() == "2030-01-07"


class TestClockIn:
    def test_full_shift(self, client, db, driver_headers, driver_user, van):
        assert client.get("/api/workflow/clock", headers=driver_headers).json()["status"] == "not_clocked_in"

        started = clock(client, driver_headers, action="clock_in", vehicle_id=van.id)
        assert started["status"] == "success"
        assert started["vehicle"] == "Sprinter 1"
        assert clock(client, driver_headers, action="clock_in", vehicle_id=van.id)["status"] == "already_clocked_in"

        status = client.get("/api/workflow/clock", headers=driver_headers).json()
        assert status["status"] == "clocked_in"
        assert status["can_clock_out"] is True

        assert clock(client, driver_headers, action="clock_out")["status"] == "signature_required"
        assert clock(client, driver_headers, action="clock_out", signature="MS")["status"] == "post_trip_required"

        inspection = client.post(
            "/api/inspections", json={"type": "post_trip", "mileage": 42100}, headers=driver_headers
        )
        assert inspection.status_code == 201
        assert inspection.json()["time_card_id"] == started["time_card"]["id"]

        finished = clock(client, driver_headers, action="clock_out", signature="MS")
        assert finished["status"] == "success"
        assert finished["warnings"] == []
        assert finished["time_card"]["status"] == "completed"

        hos = db.query(WeeklyHos).filter(WeeklyHos.driver_id == driver_user.id).one()
        assert hos.days_worked == 1
        assert client.get("/api/workflow/clock", headers=driver_headers).json()["status"] == "clocked_out"

    def test_vehicle_checks(self, client, driver_headers, make_vehicle):
        assert clock(client, driver_headers, action="clock_in")["status"] == "vehicle_required"
        assert clock(client, driver_headers, action="clock_in", vehicle_id=999)["status"] == "invalid_vehicle"

        parked = make_vehicle(is_active=False)
        assert clock(client, driver_headers, action="clock_in", vehicle_id=parked.id)["status"] == "vehicle_inactive"

    def test_vehicle_in_use_by_another_driver(self, client, db, driver_headers, user_factory, van):
        other = user_factory("ana@wallawalla.travel", "driver", name="Ana Ruiz")
        now = datetime.utcnow()
        db.add(TimeCard(driver_id=other.id, vehicle_id=van.id, date=now.date(), clock_in_time=now))
        db.commit()

        result = clock(client, driver_headers, action="clock_in", vehicle_id=van.id)

        assert result["status"] == "vehicle_in_use"
        assert "Ana Ruiz" in result["message"]
        vehicles = client.get("/api/workflow/vehicles", headers=driver_headers).json()["vehicles"]
        assert vehicles[0]["in_use_by"] == "Ana Ruiz"

    def test_incomplete_previous_card_needs_force(self, client, db, driver_headers, driver_user, van):
        now = datetime.utcnow()
        card = TimeCard(
            driver_id=driver_user.id,
            vehicle_id=van.id,
            date=now.date() - timedelta(days=1),
            clock_in_time=now - timedelta(hours=2),
        )
        db.add(card)
        db.commit()

        blocked = clock(client, driver_headers, action="clock_in", vehicle_id=van.id)
        assert blocked["status"] == "incomplete_previous"

        forced = clock(client, driver_headers, action="clock_in", vehicle_id=van.id, force_clock_out=True)
        assert forced["status"] == "success"
        db.refresh(card)
        assert card.status == "auto_closed"
        assert card.driver_signature == "SYSTEM_AUTO_CLOSE"

    def test_stale_card_is_closed_automatically(self, client, db, driver_headers, driver_user, van):
        opened = datetime.utcnow() - timedelta(hours=30)
        card = TimeCard(driver_id=driver_user.id, vehicle_id=van.id, date=opened.date(), clock_in_time=opened)
        db.add(card)
        db.commit()

        assert clock(client, driver_headers, action="clock_in", vehicle_id=van.id)["status"] == "success"
        db.refresh(card)
        assert card.status == "auto_closed"

    def test_unknown_action(self, client, driver_headers):
        response = client.post("/api/workflow/clock", json={"action": "break"}, headers=driver_headers)
        assert response.status_code == 400

    def test_staff_cannot_use_driver_clock(self, client, admin_headers):
        assert client.get("/api/workflow/clock", headers=admin_headers).status_code == 403


class TestHoursOfService:
    def test_long_shift_warns(self, client, db, driver_headers, driver_user):
        opened = datetime.utcnow() - timedelta(hours=16)
        db.add(TimeCard(driver_id=driver_user.id, date=opened.date(), clock_in_time=opened))
        db.commit()

        finished = clock(client, driver_headers, action="clock_out", signature="MS")

        assert finished["status"] == "success"
        assert len(finished["warnings"]) == 1
        assert finished["warnings"][0].startswith("Warning: 16.0")
        assert finished["warnings"][0].endswith("hours on duty exceeds 15-hour limit")

    def test_rolling_eight_day_total_warns(self, client, db, driver_headers, driver_user):
        now = datetime.utcnow()
        for days_ago in range(1, 7):
            started = now - timedelta(days=days_ago, hours=12)
            db.add(
                TimeCard(
                    driver_id=driver_user.id,
                    date=(now - timedelta(days=days_ago)).date(),
                    clock_in_time=started,
                    clock_out_time=started + timedelta(hours=12),
                    on_duty_hours=12,
                    status="completed",
                )
            )
        opened = now - timedelta(hours=2)
        db.add(TimeCard(driver_id=driver_user.id, date=now.date(), clock_in_time=opened))
        db.commit()

        finished = clock(client, driver_headers, action="clock_out", signature="MS")

        assert len(finished["warnings"]) == 1
        assert finished["warnings"][0].startswith("Warning: 74.0")
        assert finished["warnings"][0].endswith("hours in 8 days exceeds 70-hour limit")

    def test_cards_outside_the_window_do_not_count(self, client, db, driver_headers, driver_user):
        now = datetime.utcnow()
        old = now - timedelta(days=10)
        db.add(
            TimeCard(
                driver_id=driver_user.id,
                date=old.date(),
                clock_in_time=old,
                clock_out_time=old + timedelta(hours=14),
                on_duty_hours=80,
                status="completed",
            )
        )
        db.add(TimeCard(driver_id=driver_user.id, date=now.date(), clock_in_time=now - timedelta(hours=1)))
        db.commit()

        assert clock(client, driver_headers, action="clock_out", signature="MS")["warnings"] == []


class TestInspections:
    def test_pre_trip_needs_a_vehicle(self, client, driver_headers, van):
        missing = client.post("/api/inspections", json={"type": "pre_trip"}, headers=driver_headers)
        assert missing.status_code == 400

        response = client.post(
            "/api/inspections",
            json={"type": "pre_trip", "vehicle_id": van.id, "defects_found": True, "defect_notes": "Chipped glass"},
            headers=driver_headers,
        )
        assert response.status_code == 201
        assert response.json()["time_card_id"] is None

    def test_post_trip_requires_clock_in(self, client, driver_headers, van):
        response = client.post(
            "/api/inspections", json={"type": "post_trip", "vehicle_id": van.id}, headers=driver_headers
        )
        assert response.status_code == 400
