"""Staff and driver sessions"""

import pytest

from app.auth import create_session_token
from app.security_utils import hash_password_bcrypt, verify_jwt_token, verify_password_bcrypt

# Matches the password the user fixtures are created with
PASSWORD = "correct-horse-battery"


def test_password_hashing():
    hashed = hash_password_bcrypt("s3cret-pass")
    assert hashed != "s3cret-pass"
    assert verify_password_bcrypt("s3cret-pass", hashed)
    assert not verify_password_bcrypt("wrong", hashed)


def test_session_token_carries_role(admin_user):
    payload = verify_jwt_token(create_session_token(admin_user))
    assert payload["sub"] == str(admin_user.id)
    assert payload["role"] == "admin"


class TestStaffLogin:
    def test_login_returns_token_and_cookie(self, client, admin_user):
        response = client.post("/api/auth/login", json={"email": " ADMIN@wallawalla.travel ", "password": PASSWORD})

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["role"] == "admin"
        assert "set-cookie" in response.headers

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.json()["email"] == "admin@wallawalla.travel"

    def test_wrong_password(self, client, admin_user):
        response = client.post("/api/auth/login", json={"email": admin_user.email, "password": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_unknown_email_looks_the_same(self, client):
        response = client.post("/api/auth/login", json={"email": "who@example.com", "password": PASSWORD})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_inactive_user(self, client, user_factory):
        user_factory("old@wallawalla.travel", "staff", is_active=False)
        response = client.post("/api/auth/login", json={"email": "old@wallawalla.travel", "password": PASSWORD})
        assert response.status_code == 401

    def test_driver_must_use_driver_portal(self, client, driver_user):
        response = client.post("/api/auth/login", json={"email": driver_user.email, "password": PASSWORD})
        assert response.status_code == 403


class TestDriverLogin:
    def test_driver_login(self, client, driver_user):
        response = client.post("/api/auth/driver/login", json={"email": driver_user.email, "password": PASSWORD})
        assert response.status_code == 200
        assert response.json()["user"]["phone"] == "509-555-5678"

    def test_staff_rejected(self, client, admin_user):
        response = client.post("/api/auth/driver/login", json={"email": admin_user.email, "password": PASSWORD})
        assert response.status_code == 403


class TestSession:
    def test_me_requires_auth(self, client):
        assert client.get("/api/auth/me").status_code == 401

    @pytest.mark.parametrize("token", ["garbage", "a.b.c"])
    def test_bad_token(self, client, token):
        assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 401

    def test_deactivated_user_loses_access(self, client, db, admin_user, admin_headers):
        admin_user.is_active = False
        db.commit()
        assert client.get("/api/auth/me", headers=admin_headers).status_code == 401

    def test_logout(self, client):
        assert client.post("/api/auth/logout").json() == {"success": True}
