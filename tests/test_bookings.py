from datetime import date, timedelta

import pytest

from app.models import AvailabilityBlock, Booking


def next_weekday(weekday: int, weeks_ahead: int = 1) -> date:
    day = date.today() + timedelta(days=7 * weeks_ahead)
    while day.weekday() != weekday:
        day += timedelta(days=1)
    return day


TOUR_DATE = next_weekday(2)  # a Wednesday


def booking_payload(**overrides):
    payload = {
        "customer_name": "Jordan Lee",
        "customer_email": "jordan@example.com",
        "customer_phone": "509-555-0100",
        "tour_date": TOUR_DATE.isoformat(),
        "party_size": 4,
        "duration_hours": 6,
        "pickup_location": "Marcus Whitman Hotel",
    }
    payload.update(overrides)
    return payload


def create_booking(client, **overrides):
    response = client.post("/api/bookings", json=booking_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


def booking_id(db, number):
    return db.query(Booking).filter(Booking.booking_number == number).one().id


class TestQuotes:
    def test_single_service_quote(self, client):
        response = client.post(
            "/api/bookings/quote",
            json={"service_type": "wine_tour", "tour_date": TOUR_DATE.isoformat(), "party_size": 4, "hours": 6},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["hourly_rate"] == 95
        assert body["subtotal"] == 570
        assert body["total"] == pytest.approx(621.87)

    def test_shared_tour_quote_on_saturday_is_rejected(self, client):
        response = client.post(
            "/api/bookings/quote",
            json={"service_type": "shared_tour", "tour_date": next_weekday(5).isoformat(), "party_size": 2},
        )
        assert response.status_code == 400

    def test_multi_day_quote(self, client):
        response = client.post(
            "/api/bookings/quote/multi-day",
            json={
                "party_size": 2,
                "days": [
                    {"date": "2030-01-07", "services": [{"type": "transfer", "route": "seatac_to_walla"}]},
                    {"date": "2030-01-06", "services": [{"type": "wine_tour", "hours": 4}]},
                ],
            },
        )
        body = response.json()
        assert [d["date"] for d in body["days"]] == ["2030-01-06", "2030-01-07"]
        assert body["total"] == pytest.approx(1298.29)

    def test_payment_fee(self, client):
        body = client.get("/api/bookings/payment-fee", params={"amount": 100, "payment_method": "card"}).json()
        assert body["processing_fee"] == pytest.approx(3.2)
        assert body["total"] == pytest.approx(103.2)

        assert client.get("/api/bookings/payment-fee", params={"amount": 100, "payment_method": "cash"}).status_code == 400


class TestBookingFlow:
    def test_requires_a_free_vehicle(self, client):
        response = client.post("/api/bookings", json=booking_payload())
        assert response.status_code == 409

    def test_vehicle_must_fit_party(self, client, make_vehicle):
        make_vehicle(capacity=2)
        assert client.post("/api/bookings", json=booking_payload()).status_code == 409

    def test_creates_pending_booking_with_deposit(self, client, make_vehicle):
        make_vehicle()
        body = create_booking(client)

        assert body["status"] == "pending"
        assert body["booking_number"].startswith(f"WWT-{TOUR_DATE.year}-")
        assert body["pricing"]["total"] == pytest.approx(621.87)
        assert body["payment"]["deposit_amount"] == pytest.approx(310.94, abs=0.01)
        assert body["payment"]["payment_method"] == "card"

    def test_pending_bookings_hold_the_fleet(self, client, make_vehicle):
        make_vehicle()
        create_booking(client, party_size=8)

        response = client.post("/api/bookings", json=booking_payload(customer_email="casey@example.com", party_size=2))
        assert response.status_code == 409
        assert response.json()["detail"] == "Not enough capacity available for this date"

        other_day = next_weekday(3).isoformat()
        assert client.post("/api/bookings", json=booking_payload(tour_date=other_day)).status_code == 201

    def test_cancelled_booking_frees_capacity(self, client, db, admin_headers, make_vehicle):
        make_vehicle()
        bid = booking_id(db, create_booking(client)["booking_number"])
        client.patch(f"/api/admin/bookings/{bid}", json={"status": "cancelled"}, headers=admin_headers)

        assert client.post("/api/bookings", json=booking_payload(customer_email="casey@example.com")).status_code == 201

    def test_past_dates_and_oversized_parties_are_rejected(self, client, make_vehicle):
        make_vehicle()
        past = (date.today() - timedelta(days=1)).isoformat()
        assert client.post("/api/bookings", json=booking_payload(tour_date=past)).status_code == 400
        assert client.post("/api/bookings", json=booking_payload(party_size=15)).status_code == 400

    def test_maintenance_block_takes_vehicle_out_of_service(self, client, db, make_vehicle):
        vehicle = make_vehicle()
        db.add(AvailabilityBlock(vehicle_id=vehicle.id, block_date=TOUR_DATE, block_type="maintenance"))
        db.commit()

        assert client.post("/api/bookings", json=booking_payload()).status_code == 409

    def test_customer_lookup_keeps_stop_order(self, client, make_vehicle, make_winery):
        make_vehicle()
        first = make_winery("Leonetti Cellar")
        second = make_winery("L'Ecole No 41", slug="lecole")
        created = create_booking(client, winery_ids=[second.id, first.id])

        response = client.get(
            f"/api/bookings/{created['booking_number']}", params={"email": "JORDAN@example.com"}
        )

        assert response.status_code == 200
        assert response.json()["wineries"] == ["L'Ecole No 41", "Leonetti Cellar"]
        assert response.json()["balance_due"] == pytest.approx(621.87)

    def test_lookup_with_wrong_email_is_not_found(self, client, make_vehicle):
        make_vehicle()
        created = create_booking(client)
        response = client.get(f"/api/bookings/{created['booking_number']}", params={"email": "other@example.com"})
        assert response.status_code == 404

    def test_inactive_winery_is_rejected(self, client, make_vehicle, make_winery):
        make_vehicle()
        closed = make_winery("Closed Cellars", is_active=False)
        response = client.post("/api/bookings", json=booking_payload(winery_ids=[closed.id]))
        assert response.status_code == 400


class TestDispatch:
    def test_vehicle_assignment_blocks_the_vehicle(self, client, db, admin_headers, make_vehicle):
        van = make_vehicle(name="Sprinter A")
        make_vehicle(name="Sprinter B")
        first = booking_id(db, create_booking(client)["booking_number"])
        second = booking_id(db, create_booking(client, customer_email="casey@example.com")["booking_number"])

        assigned = client.patch(f"/api/admin/bookings/{first}", json={"vehicle_id": van.id}, headers=admin_headers)
        assert assigned.status_code == 200

        blocks = client.get("/api/admin/availability", params={"block_type": "booking"}, headers=admin_headers)
        assert blocks.json()["total"] == 1
        assert blocks.json()["blocks"][0]["end_time"] == "16:00"

        conflict = client.patch(f"/api/admin/bookings/{second}", json={"vehicle_id": van.id}, headers=admin_headers)
        assert conflict.status_code == 409

        client.patch(f"/api/admin/bookings/{first}", json={"status": "cancelled"}, headers=admin_headers)
        retry = client.patch(f"/api/admin/bookings/{second}", json={"vehicle_id": van.id}, headers=admin_headers)
        assert retry.status_code == 200

    def test_booking_blocks_cannot_be_edited_directly(self, client, db, admin_headers, make_vehicle):
        van = make_vehicle()
        bid = booking_id(db, create_booking(client)["booking_number"])
        client.patch(f"/api/admin/bookings/{bid}", json={"vehicle_id": van.id}, headers=admin_headers)
        block = db.query(AvailabilityBlock).filter(AvailabilityBlock.booking_id == bid).one()

        response = client.delete(f"/api/admin/availability/{block.id}", headers=admin_headers)
        assert response.status_code == 400

    def test_only_drivers_can_be_assigned(self, client, db, admin_headers, admin_user, make_vehicle):
        make_vehicle()
        bid = booking_id(db, create_booking(client)["booking_number"])
        response = client.patch(f"/api/admin/bookings/{bid}", json={"driver_id": admin_user.id}, headers=admin_headers)
        assert response.status_code == 400

    def test_payments_update_balance_and_deposit(self, client, db, admin_headers, make_vehicle):
        make_vehicle()
        bid = booking_id(db, create_booking(client)["booking_number"])

        partial = client.post(
            f"/api/admin/bookings/{bid}/payments", json={"amount": 100, "payment_method": "card"}, headers=admin_headers
        ).json()
        assert partial["processing_fee"] == pytest.approx(3.2)
        assert partial["deposit_paid"] is False

        deposit = client.post(
            f"/api/admin/bookings/{bid}/payments", json={"amount": 220, "payment_method": "check"}, headers=admin_headers
        ).json()
        assert deposit["deposit_paid"] is True
        assert deposit["balance_due"] == pytest.approx(301.87)

        too_much = client.post(f"/api/admin/bookings/{bid}/payments", json={"amount": 400}, headers=admin_headers)
        assert too_much.status_code == 400


class TestAvailabilityBlocks:
    def test_overlapping_blocks_conflict(self, client, admin_headers, make_vehicle):
        van = make_vehicle()
        morning = {
            "vehicle_id": van.id,
            "block_date": TOUR_DATE.isoformat(),
            "start_time": "08:00",
            "end_time": "12:00",
            "block_type": "maintenance",
        }
        assert client.post("/api/admin/availability", json=morning, headers=admin_headers).status_code == 201

        overlapping = {**morning, "start_time": "11:00", "end_time": "14:00", "block_type": "hold"}
        assert client.post("/api/admin/availability", json=overlapping, headers=admin_headers).status_code == 409

        afternoon = {**morning, "start_time": "12:00", "end_time": "15:00"}
        assert client.post("/api/admin/availability", json=afternoon, headers=admin_headers).status_code == 201

        whole_day = {"vehicle_id": van.id, "block_date": TOUR_DATE.isoformat(), "block_type": "blackout"}
        assert client.post("/api/admin/availability", json=whole_day, headers=admin_headers).status_code == 409

    def test_end_must_follow_start(self, client, admin_headers, make_vehicle):
        van = make_vehicle()
        response = client.post(
            "/api/admin/availability",
            json={
                "vehicle_id": van.id,
                "block_date": TOUR_DATE.isoformat(),
                "start_time": "15:00",
                "end_time": "09:00",
                "block_type": "hold",
            },
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_manual_booking_type_is_not_allowed(self, client, admin_headers, make_vehicle):
        van = make_vehicle()
        response = client.post(
            "/api/admin/availability",
            json={"vehicle_id": van.id, "block_date": TOUR_DATE.isoformat(), "block_type": "booking"},
            headers=admin_headers,
        )
        assert response.status_code == 422


class TestVehicles:
    def test_create_and_list(self, client, admin_headers):
        created = client.post(
            "/api/admin/vehicles",
            json={"vehicle_number": "WW-7", "name": "Sprinter 7", "capacity": 11},
            headers=admin_headers,
        )
        assert created.status_code == 201

        duplicate = client.post("/api/admin/vehicles", json={"vehicle_number": "WW-7"}, headers=admin_headers)
        assert duplicate.status_code == 409

        client.patch(f"/api/admin/vehicles/{created.json()['id']}", json={"is_active": False}, headers=admin_headers)
        assert client.get("/api/admin/vehicles", headers=admin_headers).json() == []
        assert len(client.get("/api/admin/vehicles?include_inactive=true", headers=admin_headers).json()) == 1
