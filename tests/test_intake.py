"""Corporate requests and tour inquiries"""

from datetime import datetime

import pytest

from app.domain.corporate_requests.service import resolve_start_date
from app.models import CorporateRequest
from app.models_proposal import TripProposal

CORPORATE = {
    "company_name": "Blue Mountain Health",
    "contact_name": "Pat Morgan",
    "contact_email": "pat@bluemountain.org",
    "contact_phone": "509.555.0199",
    "party_size": 12,
    "preferred_dates": ["2030-09-18", " 2030-09-19 "],
    "description": "Team offsite, two wineries and lunch",
}


class TestCorporateRequests:
    def test_submit_numbers_sequentially(self, client):
        year = datetime.utcnow().year
        first = client.post("/api/corporate-request", json=CORPORATE).json()
        second = client.post("/api/corporate-request", json=CORPORATE).json()

        assert first["requestNumber"] == f"CR-{year}-0001"
        assert second["requestNumber"] == f"CR-{year}-0002"

    def test_bad_preferred_date_is_rejected(self, client):
        response = client.post("/api/corporate-request", json={**CORPORATE, "preferred_dates": ["next Friday"]})
        assert response.status_code == 422

    def test_convert_creates_corporate_proposal(self, client, db, admin_headers):
        request_id = client.post(
            "/api/corporate-request",
            json={**CORPORATE, "ai_extracted_data": {"event_name": "Fall Offsite", "event_date": "2030-10-02"}},
        ).json()["id"]

        response = client.post("/api/corporate-request/convert", json={"requestId": request_id}, headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        proposal = db.query(TripProposal).filter(TripProposal.id == body["proposalId"]).one()
        assert proposal.trip_type == "corporate"
        assert proposal.trip_title == "Fall Offsite"
        assert proposal.customer_company == "Blue Mountain Health"
        assert proposal.party_size == 12
        assert proposal.start_date.isoformat() == "2030-10-02"
        assert proposal.corporate_request_id == request_id

        listed = client.get("/api/admin/corporate-requests", headers=admin_headers).json()
        assert listed["requests"][0]["status"] == "converted"

        again = client.post("/api/corporate-request/convert", json={"requestId": request_id}, headers=admin_headers)
        assert again.status_code == 400

    def test_convert_requires_staff(self, client, driver_headers):
        response = client.post("/api/corporate-request/convert", json={"requestId": 1}, headers=driver_headers)
        assert response.status_code == 403

    @pytest.mark.parametrize(
        "extracted, preferred, expected",
        [
            ({"start_date": "2030-01-05"}, ["2030-02-01"], "2030-01-05"),
            ({"start_date": "soon", "dates": ["bad", "2030-03-03"]}, [], "2030-03-03"),
            (None, ["2030-02-01"], "2030-02-01"),
            ({}, [], None),
        ],
    )
    def test_start_date_resolution(self, extracted, preferred, expected):
        request = CorporateRequest(ai_extracted_data=extracted, preferred_dates=preferred)
        resolved = resolve_start_date(request)
        assert (resolved.isoformat() if resolved else None) == expected


class TestInquiries:
    def test_website_inquiry_notifies_office(self, client, sent_emails):
        response = client.post(
            "/api/inquiries",
            json={"name": " Alex Kim ", "email": "Alex@Example.com", "party_size": 4, "tour_date": "2030-08-08"},
        )

        assert response.status_code == 201
        inquiry = response.json()["inquiry"]
        assert inquiry["inquiry_number"] == "INQ-000001"
        assert inquiry["name"] == "Alex Kim"
        assert inquiry["source"] == "website"
        assert len(sent_emails) == 1
        assert "INQ-000001" in sent_emails[0]["subject"]
        assert sent_emails[0]["reply_to"] == "alex@example.com"

    def test_email_failure_still_saves_inquiry(self, client, monkeypatch, admin_headers):
        async def broken(**kwargs):
            raise RuntimeError("resend down")

        monkeypatch.setattr("app.domain.inquiries.service.send_inquiry_notification", broken)

        response = client.post("/api/inquiries", json={"name": "Alex", "email": "alex@example.com"})

        assert response.status_code == 201
        assert client.get("/api/admin/inquiries", headers=admin_headers).json()["total"] == 1

    def test_party_size_limit(self, client):
        response = client.post("/api/inquiries", json={"name": "Big Group", "email": "big@example.com", "party_size": 20})
        assert response.status_code == 422

    def test_admin_status_update(self, client, admin_headers):
        client.post("/api/inquiries", json={"name": "Alex", "email": "alex@example.com"})

        updated = client.patch("/api/admin/inquiries/1", json={"status": "contacted"}, headers=admin_headers)
        assert updated.json()["status"] == "contacted"

        assert client.get("/api/admin/inquiries?status=new", headers=admin_headers).json()["total"] == 0
        invalid = client.patch("/api/admin/inquiries/1", json={"status": "lost"}, headers=admin_headers)
        assert invalid.status_code == 422
