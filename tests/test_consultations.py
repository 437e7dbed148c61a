from datetime import datetime, timedelta

import pytest

from app.domain.drafts.service import age_bucket
from app.models_proposal import TripProposal


HANDOFF = {
    "owner_name": "  Riley Chen ",
    "owner_email": "Riley@Example.com",
    "owner_phone": "5095550142",
    "title": "Girls' weekend",
    "start_date": "2030-05-09",
    "end_date": "2030-05-11",
    "expected_guests": 6,
    "handoff_notes": "Loves Syrah, one guest is gluten free",
    "preferences": {"wine_styles": ["syrah"]},
}


@pytest.fixture()
def consultation_id(client):
    response = client.post("/api/consultations", json=HANDOFF)
    assert response.status_code == 201
    return response.json()["id"]


class TestHandoff:
    def test_handoff_is_normalized(self, client, admin_headers, consultation_id):
        body = client.get(f"/api/admin/consultations/{consultation_id}", headers=admin_headers).json()

        assert body["owner_name"] == "Riley Chen"
        assert body["owner_email"] == "riley@example.com"
        assert body["owner_phone"] == "+15095550142"
        assert body["status"] == "handed_off"
        assert body["queue_status"] == "pending"
        assert body["share_code"]

    def test_end_before_start_is_rejected(self, client):
        response = client.post("/api/consultations", json={**HANDOFF, "end_date": "2030-05-01"})
        assert response.status_code == 422

    def test_blank_name_is_rejected(self, client):
        assert client.post("/api/consultations", json={**HANDOFF, "owner_name": "   "}).status_code == 422


class TestQueue:
    def test_status_filters_and_counts(self, client, admin_headers, consultation_id):
        client.post("/api/consultations", json={**HANDOFF, "owner_email": "second@example.com"})
        client.post(f"/api/admin/consultations/{consultation_id}/assign", headers=admin_headers)

        pending = client.get("/api/admin/consultations", headers=admin_headers).json()
        assert len(pending["consultations"]) == 1
        assert pending["counts"] == {"pending": 1, "in_progress": 1, "completed": 0, "all": 2}

        in_progress = client.get("/api/admin/consultations?status=in_progress", headers=admin_headers).json()
        assert in_progress["consultations"][0]["assigned_staff_name"] == "Office Admin"

    def test_invalid_status_filter(self, client, admin_headers):
        response = client.get("/api/admin/consultations?status=archived", headers=admin_headers)
        assert response.status_code == 400

    def test_assignee_must_be_staff(self, client, admin_headers, consultation_id, driver_user, user_factory):
        response = client.patch(
            f"/api/admin/consultations/{consultation_id}",
            json={"assigned_staff_id": driver_user.id},
            headers=admin_headers,
        )
        assert response.status_code == 400

        staff = user_factory("concierge@wallawalla.travel", "staff")
        response = client.patch(
            f"/api/admin/consultations/{consultation_id}",
            json={"assigned_staff_id": staff.id},
            headers=admin_headers,
        )
        assert response.json()["queue_status"] == "in_progress"

    def test_convert_creates_linked_draft_proposal(self, client, db, admin_headers, consultation_id):
        response = client.post(f"/api/admin/consultations/{consultation_id}/convert", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        proposal = db.query(TripProposal).filter(TripProposal.id == body["proposal_id"]).one()
        assert proposal.status == "draft"
        assert proposal.customer_email == "riley@example.com"
        assert proposal.party_size == 6
        assert proposal.consultation_id == consultation_id
        assert proposal.internal_notes == HANDOFF["handoff_notes"]

        consultation = client.get(f"/api/admin/consultations/{consultation_id}", headers=admin_headers).json()
        assert consultation["queue_status"] == "completed"
        assert consultation["assigned_staff_name"] == "Office Admin"

        again = client.post(f"/api/admin/consultations/{consultation_id}/convert", headers=admin_headers)
        assert again.status_code == 400


class TestDrafts:
    def test_age_buckets(self):
        assert age_bucket(0) == "recent"
        assert age_bucket(7) == "recent"
        assert age_bucket(8) == "aging"
        assert age_bucket(30) == "aging"
        assert age_bucket(31) == "stale"

    def test_summary_and_listing(self, client, db, admin_headers):
        now = datetime.utcnow()
        db.add_all(
            [
                TripProposal(proposal_number="TP-2030-00001", customer_name="A", status="draft", created_at=now),
                TripProposal(
                    proposal_number="TP-2030-00002",
                    customer_name="B",
                    status="draft",
                    created_at=now - timedelta(days=12),
                ),
                TripProposal(
                    proposal_number="TP-2030-00003",
                    customer_name="C",
                    status="draft",
                    created_at=now - timedelta(days=45),
                ),
                TripProposal(proposal_number="TP-2030-00004", customer_name="D", status="sent", created_at=now),
            ]
        )
        db.commit()

        summary = client.get("/api/admin/drafts/summary", headers=admin_headers).json()
        assert summary == {"total": 3, "recent": 1, "aging": 1, "stale": 1}

        drafts = client.get("/api/admin/drafts", headers=admin_headers).json()
        assert drafts["total"] == 3
        assert {d["age_bucket"] for d in drafts["drafts"]} == {"recent", "aging", "stale"}

    def test_reminders_only_on_drafts(self, client, db, admin_headers):
        draft = TripProposal(proposal_number="TP-2030-00001", customer_name="A", status="draft")
        sent = TripProposal(proposal_number="TP-2030-00002", customer_name="B", status="sent")
        db.add_all([draft, sent])
        db.commit()

        response = client.post(f"/api/admin/drafts/{draft.id}/reminders", json={"enabled": False}, headers=admin_headers)
        assert response.json()["draft_reminders_enabled"] is False

        response = client.post(f"/api/admin/drafts/{sent.id}/reminders", json={"enabled": False}, headers=admin_headers)
        assert response.status_code == 400
