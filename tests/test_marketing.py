"""Social publishing, competitor monitoring, weekly report and the cron routes"""

import asyncio
from datetime import date, datetime, timedelta
from types import SimpleNamespace
from urllib.parse import parse_qs

import httpx
import pytest

from app.models_marketing import (
    Competitor,
    CompetitorChange,
    ContentSuggestion,
    MarketingReportLog,
    ScheduledPost,
    SocialAccount,
)
from app.services import competitor_monitoring, social_publisher, weekly_report
from app.services.competitor_monitoring import analyze_change, extract_text, pages_to_check
from app.services.weekly_report import report_period, run_weekly_report


@pytest.fixture()
def buffer_token(monkeypatch):
    monkeypatch.setattr(social_publisher, "BUFFER_ACCESS_TOKEN", "buffer-test-token")


@pytest.fixture()
def due_post(db):
    db.add(SocialAccount(platform="instagram", account_name="@wallawallatravel", buffer_profile_id="prof-1"))
    post = ScheduledPost(
        platform="instagram",
        content="Harvest is here",
        scheduled_for=datetime.utcnow() - timedelta(minutes=5),
        status="scheduled",
        retry_count=0,
    )
    db.add(post)
    db.commit()
    return post


# ============================================================================
# CRON ROUTES
# ============================================================================


class TestCronAuth:
    def test_missing_secret_is_rejected(self, client):
        assert client.get("/api/cron/expire-proposals").status_code == 401

    def test_wrong_secret_is_rejected(self, client):
        response = client.get("/api/cron/expire-proposals", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_expire_proposals(self, client, cron_headers):
        body = client.get("/api/cron/expire-proposals", headers=cron_headers).json()
        assert body == {"success": True, "checked": 0, "expired": 0, "errors": 0}

    def test_competitor_health_check(self, client, db, cron_headers):
        db.add(Competitor(name="Other Tours", website_url="https://other.example.com"))
        db.commit()

        body = client.get("/api/cron/competitor-check", headers=cron_headers).json()

        assert body == {"status": "healthy", "last_check": None, "active_competitors": 1, "unreviewed_changes": 0}

    def test_publish_without_buffer_token(self, client, cron_headers, due_post):
        body = client.get("/api/cron/publish-social-posts", headers=cron_headers).json()
        assert body["success"] is True
        assert body["processed"] == 0


# ============================================================================
# SOCIAL PUBLISHING
# ============================================================================


class TestPublishDuePosts:
    def test_publishes_due_post(self, db, monkeypatch, buffer_token, due_post):
        calls = []

        async def fake_post(profile_id, post):
            calls.append((profile_id, post.id))
            return {"success": True, "updates": [{"id": "buf-42"}]}

        monkeypatch.setattr(social_publisher, "post_to_buffer", fake_post)

        results = asyncio.run(social_publisher.publish_due_posts(db))

        assert results == {"processed": 1, "published": 1, "failed": 0, "retried": 0, "skipped": 0}
        assert calls == [("prof-1", due_post.id)]
        db.refresh(due_post)
        assert due_post.status == "published"
        assert due_post.buffer_post_id == "buf-42"
        assert due_post.published_at is not None

    def test_future_posts_are_left_alone(self, db, buffer_token, due_post):
        due_post.scheduled_for = datetime.utcnow() + timedelta(hours=2)
        db.commit()
        results = asyncio.run(social_publisher.publish_due_posts(db))
        assert results["processed"] == 0

    def test_failure_retries_then_fails(self, db, monkeypatch, buffer_token, due_post):
        async def broken(profile_id, post):
            raise social_publisher.PublishError("Buffer API error 500")

        monkeypatch.setattr(social_publisher, "post_to_buffer", broken)

        first = asyncio.run(social_publisher.publish_due_posts(db))
        assert first["retried"] == 1
        db.refresh(due_post)
        assert due_post.status == "scheduled"
        assert due_post.retry_count == 1

        asyncio.run(social_publisher.publish_due_posts(db))
        last = asyncio.run(social_publisher.publish_due_posts(db))

        assert last["failed"] == 1
        db.refresh(due_post)
        assert due_post.status == "failed"
        assert due_post.retry_count == 3
        assert due_post.error_message == "Buffer API error 500"

    def test_unexpected_error_is_recorded_and_batch_continues(self, db, monkeypatch, buffer_token, due_post):
        second = ScheduledPost(
            platform="instagram",
            content="Barrel tasting weekend",
            scheduled_for=datetime.utcnow() - timedelta(minutes=1),
            status="scheduled",
            retry_count=0,
        )
        db.add(second)
        db.commit()
        calls = []

        async def flaky(profile_id, post):
            calls.append(post.id)
            if post.id == due_post.id:
                raise KeyError("updates")
            return {"success": True, "updates": [{"id": "buf-7"}]}

        monkeypatch.setattr(social_publisher, "post_to_buffer", flaky)

        results = asyncio.run(social_publisher.publish_due_posts(db))

        assert calls == [due_post.id, second.id]
        assert results == {"processed": 2, "published": 1, "failed": 0, "retried": 1, "skipped": 0}
        db.refresh(due_post)
        assert due_post.status == "scheduled"
        assert due_post.retry_count == 1
        assert due_post.error_message.startswith("Unexpected error")
        db.refresh(second)
        assert second.status == "published"

    def test_missing_profile_counts_as_failure(self, db, buffer_token, due_post):
        db.query(SocialAccount).update({"is_active": False})
        db.commit()

        results = asyncio.run(social_publisher.publish_due_posts(db))

        assert results["retried"] == 1
        db.refresh(due_post)
        assert "No active Buffer profile" in due_post.error_message

    def test_claim_is_guarded_by_status(self, db, due_post):
        assert social_publisher.claim_post(db, due_post.id) is True
        assert social_publisher.claim_post(db, due_post.id) is False


# ============================================================================
# COMPETITOR MONITORING
# ============================================================================


class TestCompetitorAnalysis:
    def test_extract_text_drops_scripts_and_tags(self):
        page = "<html><style>p{}</style><script>var x = 1;</script><h1>Tours</h1><p>Wine &amp; Dine $99</p></html>"
        assert extract_text(page) == "Tours Wine & Dine $99"

    def test_extract_text_handles_malformed_markup(self):
        page = "<div>Harvest <b>special</b><noscript>Enable JavaScript</noscript><p>Tours from $89<div>Book"
        assert extract_text(page) == "Harvest special Tours from $89 Book"
        assert extract_text("") == ""

    def test_price_drop_is_a_high_threat(self):
        change = analyze_change("Private tours $100", "Private tours $80")
        assert change["change_type"] == "pricing"
        assert change["significance"] == "high"
        assert change["threat_level"] == "high"
        assert change["description"] == "Pricing decreased by approximately 20%"

    def test_new_prices_count_as_increase(self):
        change = analyze_change("Call for rates", "Tours from $120")
        assert change["change_type"] == "pricing"
        assert change["threat_level"] == "low"

    def test_promotion_detected(self):
        change = analyze_change("Wine tours daily", "Wine tours daily, book now and save")
        assert change["change_type"] == "promotion"

    def test_new_offering_detected(self):
        change = analyze_change("Wine tours daily", "Wine tours daily. Introducing winter tours")
        assert change["change_type"] == "new_offering"

    def test_small_edit_is_ignored(self):
        assert analyze_change("Wine tours every day of the week", "Wine tours every day of the week!") is None

    def test_pages_follow_monitor_flags(self):
        competitor = Competitor(website_url="https://tours.example.com/", monitor_pricing=True, monitor_packages=False)
        assert pages_to_check(competitor) == [
            ("homepage", "https://tours.example.com"),
            ("pricing", "https://tours.example.com/pricing"),
        ]

    def test_check_records_change_on_second_snapshot(self, db, monkeypatch):
        competitor = Competitor(
            name="Other Tours",
            website_url="https://other.example.com",
            monitor_pricing=False,
            monitor_packages=False,
        )
        db.add(competitor)
        db.commit()
        pages = iter(["Tours from $100", "Tours from $70"])

        async def fake_fetch(url):
            text = next(pages)
            return {"success": True, "status": 200, "text": text, "hash": competitor_monitoring.hash_content(text)}

        monkeypatch.setattr(competitor_monitoring, "fetch_page", fake_fetch)

        first = asyncio.run(competitor_monitoring.run_competitor_check(db))
        second = asyncio.run(competitor_monitoring.run_competitor_check(db))

        assert first["total_changes_detected"] == 0
        assert second["total_changes_detected"] == 1
        change = db.query(CompetitorChange).one()
        assert change.title == "Pricing change detected"
        assert change.status == "new"
        assert change.recommended_actions[0] == "Review your pricing strategy immediately"

    def test_content_benchmarks_are_skipped(self, db, monkeypatch):
        db.add(Competitor(name="Blog", website_url="https://blog.example.com", competitor_type="content_benchmark"))
        db.commit()

        async def fail_fetch(url):
            raise AssertionError("should not fetch")

        monkeypatch.setattr(competitor_monitoring, "fetch_page", fail_fetch)
        assert asyncio.run(competitor_monitoring.run_competitor_check(db))["competitors_checked"] == 0


# ============================================================================
# MARKETING ADMIN
# ============================================================================


class TestPostsAdmin:
    def test_schedule_requires_future_time(self, client, admin_headers):
        past = (datetime.utcnow() - timedelta(hours=1)).isoformat()
        response = client.post(
            "/api/admin/marketing/posts",
            json={"platform": "facebook", "content": "Hi", "status": "scheduled", "scheduled_for": past},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_create_edit_cancel(self, client, admin_headers):
        created = client.post(
            "/api/admin/marketing/posts", json={"platform": "facebook", "content": "Draft"}, headers=admin_headers
        )
        assert created.status_code == 201
        post_id = created.json()["id"]
        assert created.json()["status"] == "draft"

        future = (datetime.utcnow() + timedelta(days=1)).isoformat()
        scheduled = client.patch(
            f"/api/admin/marketing/posts/{post_id}",
            json={"status": "scheduled", "scheduled_for": future},
            headers=admin_headers,
        ).json()
        assert scheduled["status"] == "scheduled"

        cancelled = client.post(f"/api/admin/marketing/posts/{post_id}/cancel", headers=admin_headers).json()
        assert cancelled["status"] == "cancelled"

        again = client.patch(f"/api/admin/marketing/posts/{post_id}", json={"content": "x"}, headers=admin_headers)
        assert again.status_code == 400

    def test_retry_only_failed_posts(self, client, db, admin_headers):
        post = ScheduledPost(platform="facebook", content="x", status="failed", retry_count=3, error_message="boom")
        db.add(post)
        db.commit()

        body = client.post(f"/api/admin/marketing/posts/{post.id}/retry", headers=admin_headers).json()
        assert body["status"] == "scheduled"
        assert body["retry_count"] == 0
        assert body["error_message"] is None

        again = client.post(f"/api/admin/marketing/posts/{post.id}/retry", headers=admin_headers)
        assert again.status_code == 400

    def test_requires_admin(self, client, driver_headers):
        assert client.get("/api/admin/marketing/posts", headers=driver_headers).status_code == 403

    def test_accounts_and_suggestions(self, client, db, admin_headers):
        client.post(
            "/api/admin/marketing/accounts",
            json={"platform": "instagram", "account_name": "@wwt", "buffer_profile_id": "p1"},
            headers=admin_headers,
        )
        assert client.get("/api/admin/marketing/accounts", headers=admin_headers).json()[0]["account_name"] == "@wwt"

        db.add(ContentSuggestion(suggestion_date=date(2030, 1, 1), platform="instagram", content="Idea"))
        db.commit()
        suggestion_id = client.get("/api/admin/marketing/suggestions", headers=admin_headers).json()[0]["id"]
        updated = client.patch(
            f"/api/admin/marketing/suggestions/{suggestion_id}", json={"status": "accepted"}, headers=admin_headers
        )
        assert updated.json() == {"id": suggestion_id, "status": "accepted"}


class TestCompetitorAdmin:
    @pytest.fixture()
    def change_id(self, db):
        competitor = Competitor(name="Other Tours", website_url="https://other.example.com")
        db.add(competitor)
        db.flush()
        change = CompetitorChange(
            competitor_id=competitor.id,
            change_type="pricing",
            significance="high",
            title="Pricing change detected",
            threat_level="high",
            status="new",
            detected_at=datetime.utcnow(),
        )
        db.add(change)
        db.commit()
        return change.id

    def test_create_validates_url(self, client, admin_headers):
        bad = client.post(
            "/api/admin/marketing/competitors", json={"name": "X", "website_url": "other.com"}, headers=admin_headers
        )
        assert bad.status_code == 422

        good = client.post(
            "/api/admin/marketing/competitors",
            json={"name": "X", "website_url": " https://x.example.com "},
            headers=admin_headers,
        )
        assert good.status_code == 201
        assert good.json()["website_url"] == "https://x.example.com"

    def test_review_and_dismiss(self, client, admin_headers, admin_user, change_id):
        base = "/api/admin/marketing/competitors/changes"
        assert client.get(f"{base}/unreviewed-count", headers=admin_headers).json() == {"count": 1}

        reviewed = client.post(
            f"{base}/{change_id}/review", json={"action_taken": "Matched price"}, headers=admin_headers
        ).json()
        assert reviewed["status"] == "actioned"
        assert reviewed["reviewed_by"] == admin_user.id
        assert client.get(f"{base}/unreviewed-count", headers=admin_headers).json() == {"count": 0}

        dismissed = client.post(f"{base}/{change_id}/dismiss", json={}, headers=admin_headers).json()
        assert dismissed["status"] == "dismissed"

        assert client.post(f"{base}/999/review", json={}, headers=admin_headers).status_code == 404

    def test_swot(self, client, db, admin_headers, change_id):
        competitor_id = db.query(Competitor).one().id
        url = f"/api/admin/marketing/competitors/{competitor_id}/swot"

        created = client.post(url, json={"category": "threat", "title": "Lower prices"}, headers=admin_headers)
        assert created.status_code == 201
        assert [i["title"] for i in client.get(url, headers=admin_headers).json()] == ["Lower prices"]

        client.delete(f"{url}/{created.json()['id']}", headers=admin_headers)
        assert client.get(url, headers=admin_headers).json() == []


# ============================================================================
# WEEKLY REPORT
# ============================================================================


class TestWeeklyReport:
    @pytest.mark.parametrize(
        "today, expected_start",
        [
            (date(2030, 1, 7), date(2029, 12, 31)),  # Monday
            (date(2030, 1, 9), date(2029, 12, 31)),
            (date(2030, 1, 13), date(2030, 1, 7)),  # Sunday
        ],
    )
    def test_report_period_is_last_full_week(self, today, expected_start):
        start, end = report_period(today)
        assert start.date() == expected_start
        assert end.date() == expected_start + timedelta(days=6)

    def test_report_without_ai_key(self, db, monkeypatch, sent_emails):
        monkeypatch.setattr(weekly_report, "ANTHROPIC_API_KEY", None)
        published_at = datetime(2030, 1, 2, 15, 0)
        db.add_all(
            [
                ScheduledPost(
                    platform="instagram",
                    content="Top",
                    status="published",
                    published_at=published_at,
                    engagement=40,
                    impressions=900,
                    clicks=12,
                ),
                ScheduledPost(
                    platform="instagram", content="Other", status="published", published_at=published_at, engagement=5
                ),
                ScheduledPost(platform="facebook", content="Old", status="published", published_at=datetime(2029, 1, 1)),
            ]
        )
        db.commit()

        result = asyncio.run(run_weekly_report(db, today=date(2030, 1, 7)))

        assert result["email_sent"] is True
        assert result["metrics"] == {
            "posts_published": 2,
            "total_engagement": 45,
            "total_impressions": 900,
            "total_clicks": 12,
        }
        assert sent_emails[0]["subject"].startswith("Weekly Marketing Report")
        log = db.query(MarketingReportLog).one()
        assert log.content == weekly_report.SUMMARY_NO_KEY
        assert log.sent_at is not None

    def test_failed_email_is_logged_as_unsent(self, db, monkeypatch):
        async def mail_down(**kwargs):
            raise RuntimeError("Resend unavailable")

        monkeypatch.setattr(weekly_report, "ANTHROPIC_API_KEY", None)
        monkeypatch.setattr(weekly_report, "send_weekly_marketing_report", mail_down)

        result = asyncio.run(run_weekly_report(db, today=date(2030, 1, 7)))

        assert result["success"] is True
        assert result["email_sent"] is False
        log = db.query(MarketingReportLog).one()
        assert log.sent_at is None
        assert log.report_date == date(2030, 1, 6)

    def test_content_gaps(self, db):
        db.add(ScheduledPost(platform="facebook", content="x", status="published", published_at=datetime(2030, 1, 2)))
        db.commit()
        start, end = report_period(date(2030, 1, 7))
        data = weekly_report.gather_metrics(db, start, end)
        assert data["content_gaps"] == ["instagram", "linkedin"]
        assert data["top_post"] is None

    def test_ai_summary_from_claude(self, db, monkeypatch):
        prompts = []

        class FakeMessages:
            async def create(self, **kwargs):
                prompts.append(kwargs)
                return SimpleNamespace(content=[SimpleNamespace(type="text", text=" Post more reels. ")])

        class FakeAnthropic:
            def __init__(self, api_key):
                self.messages = FakeMessages()

        monkeypatch.setattr(weekly_report, "ANTHROPIC_API_KEY", "test-key")
        monkeypatch.setattr(weekly_report, "AsyncAnthropic", FakeAnthropic)

        asyncio.run(run_weekly_report(db, today=date(2030, 1, 7)))

        assert db.query(MarketingReportLog).one().content == "Post more reels."
        assert prompts[0]["max_tokens"] == 800
        assert "Dec 31, 2029 - Jan 06, 2030" in prompts[0]["messages"][0]["content"]


class TestBufferClient:
    @pytest.fixture()
    def buffer_responses(self, monkeypatch, buffer_token):
        requests = []
        replies = []
        real_client = httpx.AsyncClient

        def handler(request):
            requests.append(request)
            return replies.pop(0)

        def client_factory(**kwargs):
            return real_client(transport=httpx.MockTransport(handler), **kwargs)

        monkeypatch.setattr(social_publisher.httpx, "AsyncClient", client_factory)
        return requests, replies

    def test_posts_form_to_buffer(self, buffer_responses):
        requests, replies = buffer_responses
        replies.append(httpx.Response(200, json={"success": True, "updates": [{"id": "u1"}]}))
        post = ScheduledPost(content="Harvest", link_url="https://wallawalla.travel", media_urls=[])

        data = asyncio.run(social_publisher.post_to_buffer("prof-1", post))

        assert data["updates"][0]["id"] == "u1"
        assert requests[0].url.path.endswith("/updates/create.json")
        form = parse_qs(requests[0].content.decode())
        assert form["profile_ids[]"] == ["prof-1"]
        assert form["now"] == ["true"]
        assert form["media[link]"] == ["https://wallawalla.travel"]

    def test_error_status_raises_publish_error(self, buffer_responses):
        _, replies = buffer_responses
        replies.append(httpx.Response(500, text="upstream down"))

        with pytest.raises(social_publisher.PublishError, match="Buffer API error 500"):
            asyncio.run(social_publisher.post_to_buffer("prof-1", ScheduledPost(content="x")))

    def test_rejected_update_raises_publish_error(self, buffer_responses):
        _, replies = buffer_responses
        replies.append(httpx.Response(200, json={"success": False, "message": "Profile disconnected"}))

        with pytest.raises(social_publisher.PublishError, match="Profile disconnected"):
            asyncio.run(social_publisher.post_to_buffer("prof-1", ScheduledPost(content="x")))

    def test_non_object_body_fails_each_post(self, db, buffer_responses, due_post):
        requests, replies = buffer_responses
        second = ScheduledPost(
            platform="instagram",
            content="Barrel tasting weekend",
            scheduled_for=datetime.utcnow() - timedelta(minutes=1),
            status="scheduled",
            retry_count=0,
        )
        db.add(second)
        db.commit()
        replies.extend([httpx.Response(200, json=[]), httpx.Response(200, json=[])])

        results = asyncio.run(social_publisher.publish_due_posts(db))

        assert len(requests) == 2
        assert results["retried"] == 2
        for post in (due_post, second):
            db.refresh(post)
            assert post.status == "scheduled"
            assert post.retry_count == 1
            assert post.error_message == "Buffer returned an unexpected response"
