"""Winery and lodging directories"""

import pytest

from app.domain.wineries.service import classify_styles


class TestWineStyles:
    def test_reds_and_whites_make_mixed(self):
        assert classify_styles(["Cabernet Sauvignon", "Chardonnay"]) == {"red", "white", "mixed"}

    def test_sparkling_only(self):
        assert classify_styles(["Blanc de Blancs"]) == {"sparkling"}

    def test_no_specialties(self):
        assert classify_styles(None) == set()


class TestWinerySearch:
    @pytest.fixture(autouse=True)
    def wineries(self, make_winery):
        make_winery("Leonetti Cellar", specialties=["Cabernet Sauvignon", "Merlot"], is_featured=True)
        make_winery("Amavi Cellars", specialties=["Syrah", "Semillon"], features=["Outdoor seating"])
        make_winery("Treveri Cellars", specialties=["Sparkling Riesling"])
        make_winery("Closed Cellars", specialties=["Merlot"], is_active=False)

    def test_lists_active_featured_first(self, client):
        body = client.get("/api/wineries").json()
        assert body["total"] == 3
        assert body["wineries"][0]["name"] == "Leonetti Cellar"

    def test_style_filter(self, client):
        names = [w["name"] for w in client.get("/api/wineries?style=white").json()["wineries"]]
        assert names == ["Amavi Cellars", "Treveri Cellars"]

        mixed = client.get("/api/wineries?style=mixed").json()["wineries"]
        assert [w["name"] for w in mixed] == ["Amavi Cellars"]

    def test_search_matches_features(self, client):
        body = client.get("/api/wineries?search=outdoor").json()
        assert [w["name"] for w in body["wineries"]] == ["Amavi Cellars"]

    def test_unknown_style(self, client):
        assert client.get("/api/wineries?style=rose").status_code == 400

    def test_inactive_winery_is_hidden(self, client):
        assert client.get("/api/wineries/closed-cellars").status_code == 404
        assert client.get("/api/wineries/amavi-cellars").json()["styles"] == ["mixed", "red", "white"]


class TestWineryAdmin:
    def test_create_generates_slug(self, client, admin_headers):
        response = client.post(
            "/api/admin/wineries",
            json={"name": "L'Ecole No 41", "specialties": [" Semillon ", ""], "tasting_fee": 25},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["slug"] == "l-ecole-no-41"
        assert response.json()["specialties"] == ["Semillon"]

        duplicate = client.post(
            "/api/admin/wineries", json={"name": "Other", "slug": "l-ecole-no-41"}, headers=admin_headers
        )
        assert duplicate.status_code == 409

    def test_deactivate(self, client, admin_headers, make_winery):
        winery = make_winery("Pepper Bridge")
        client.delete(f"/api/admin/wineries/{winery.id}", headers=admin_headers)

        assert client.get("/api/wineries").json()["total"] == 0
        admin = client.get("/api/admin/wineries", headers=admin_headers).json()
        assert admin["wineries"][0]["is_active"] is False


class TestLodging:
    @pytest.fixture()
    def property_id(self, client, admin_headers):
        response = client.post(
            "/api/admin/lodging",
            json={
                "name": "Marcus Whitman Hotel",
                "slug": "marcus-whitman",
                "email": "Front.Desk@MarcusWhitman.com",
                "phone": "509 525 2200",
                "price_range_min": 180,
                "price_range_max": 420,
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        return response.json()["id"]

    def test_public_listing_hides_admin_fields(self, client, property_id):
        body = client.get("/api/lodging").json()
        assert body["total"] == 1
        listing = body["properties"][0]
        assert listing["email"] == "front.desk@marcuswhitman.com"
        assert listing["phone"] == "+15095252200"
        assert "is_active" not in listing

    def test_price_range_must_be_ordered(self, client, admin_headers, property_id):
        response = client.patch(
            f"/api/admin/lodging/{property_id}", json={"price_range_min": 500}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_invalid_slug(self, client, admin_headers):
        response = client.post(
            "/api/admin/lodging", json={"name": "Bad", "slug": "Bad Slug"}, headers=admin_headers
        )
        assert response.status_code == 422

    def test_verify_records_staff_member(self, client, admin_headers, admin_user, property_id):
        body = client.post(f"/api/admin/lodging/{property_id}/verify", headers=admin_headers).json()
        assert body["is_verified"] is True
        assert body["verified_by"] == admin_user.id

    def test_deactivated_property_is_hidden(self, client, admin_headers, property_id):
        client.delete(f"/api/admin/lodging/{property_id}", headers=admin_headers)
        assert client.get("/api/lodging/marcus-whitman").status_code == 404
        assert client.get("/api/lodging").json()["total"] == 0

    def test_availability_upsert_replaces_dates(self, client, admin_headers, property_id):
        url = f"/api/admin/lodging/{property_id}/availability"
        first = client.put(
            url,
            json={
                "entries": [
                    {"date": "2030-06-13", "status": "available", "nightly_rate": 240},
                    {"date": "2030-06-14", "status": "available", "nightly_rate": 260},
                ]
            },
            headers=admin_headers,
        )
        assert first.json() == {"success": True, "updated": 2}

        client.put(
            url,
            json={
                "entries": [
                    {"date": "2030-06-14", "status": "tentative"},
                    {"date": "2030-06-14", "status": "booked", "nightly_rate": 300},
                ]
            },
            headers=admin_headers,
        )

        availability = client.get(url, headers=admin_headers).json()["availability"]
        assert [(a["date"], a["status"], a["nightly_rate"]) for a in availability] == [
            ("2030-06-13", "available", 240),
            ("2030-06-14", "booked", 300),
        ]

        reversed_range = client.get(
            url, params={"start_date": "2030-06-14", "end_date": "2030-06-01"}, headers=admin_headers
        )
        assert reversed_range.status_code == 400
