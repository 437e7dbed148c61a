"""
Shared pytest fixtures for the Walla Walla Travel API test suite.

Provides:
    - db: SQLAlchemy session on a fresh in-memory database (tables recreated per test)
    - client: FastAPI TestClient with rate limiting disabled
    - sent_emails: every email the code tried to send (Resend is never called)
    - cron_headers: scheduler authorization header
    - admin_user / driver_user / user_factory and the auth header fixtures
    - winery / vehicle factories
"""

import os

# Must be set before the app (and app.config) is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

import pytest
from fastapi.testclient import TestClient

from app import email_service
from app.auth import create_session_token
from app.cache import cache
from app.database import Base, SessionLocal, engine
from app.main import app
from app.models import User, Vehicle, Winery
from app.rate_limiter import gpt_rate_limit, login_rate_limit, public_form_rate_limit
from app.security_utils import hash_password_bcrypt

TEST_PASSWORD = "correct-horse-battery"


# ── Database & app ───────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _no_redis(monkeypatch):
    monkeypatch.setattr(cache, "_get_client", lambda: None)


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Capture outgoing email instead of calling Resend"""
    outbox = []

    async def fake_send_email(to, subject, mjml_content, from_address=None, reply_to=None):
        outbox.append({"to": to, "subject": subject, "reply_to": reply_to})
        return {"id": f"test-{len(outbox)}"}

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return outbox


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client():
    async def no_limit():
        return None

    for limiter in (gpt_rate_limit, login_rate_limit, public_form_rate_limit):
        app.dependency_overrides[limiter] = no_limit
    yield TestClient(app)
    app.dependency_overrides.clear()


# ── Users ────────────────────────────────────────────────────────────────


def make_user(db, email, role, name=None, **extra):
    user = User(
        name=name or email.split("@")[0].title(),
        email=email,
        role=role,
        password_hash=hash_password_bcrypt(TEST_PASSWORD),
        is_active=extra.pop("is_active", True),
        **extra,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def user_factory(db):
    def _make(email, role, **extra):
        return make_user(db, email, role, **extra)

    return _make


@pytest.fixture()
def admin_user(db):
    return make_user(db, "admin@wallawalla.travel", "admin", name="Office Admin")


@pytest.fixture()
def driver_user(db):
    return make_user(db, "driver@wallawalla.travel", "driver", name="Mike Smith", phone="509-555-5678")


@pytest.fixture()
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_session_token(admin_user)}"}


@pytest.fixture()
def driver_headers(driver_user):
    return {"Authorization": f"Bearer {create_session_token(driver_user)}"}


# ── Fleet & wineries ─────────────────────────────────────────────────────


@pytest.fixture()
def make_vehicle(db):
    counter = {"n": 0}

    def _make(capacity=14, **extra):
        counter["n"] += 1
        vehicle = Vehicle(
            vehicle_number=f"V-{counter['n']:03d}",
            name=extra.pop("name", f"Sprinter {counter['n']}"),
            capacity=capacity,
            is_active=extra.pop("is_active", True),
            **extra,
        )
        db.add(vehicle)
        db.commit()
        db.refresh(vehicle)
        return vehicle

    return _make


@pytest.fixture()
def make_winery(db):
    def _make(name, **extra):
        winery = Winery(
            name=name,
            slug=extra.pop("slug", name.lower().replace(" ", "-")),
            city="Walla Walla",
            is_active=extra.pop("is_active", True),
            average_visit_duration=extra.pop("average_visit_duration", 60),
            specialties=extra.pop("specialties", []),
            features=extra.pop("features", []),
            **extra,
        )
        db.add(winery)
        db.commit()
        db.refresh(winery)
        return winery

    return _make


@pytest.fixture()
def cron_headers():
    return {"Authorization": "Bearer test-cron-secret"}
