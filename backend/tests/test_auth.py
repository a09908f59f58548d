"""
Tests for login, token handling and the error envelope.
"""
from datetime import timedelta

from sahl.core.config import settings
from sahl.core.security import create_user_token, decode_access_token
from sahl.models import LoginLog, User

PASSWORD = "secret123"


class TestLogin:
    def test_login_success(self, client, employee, db):
        resp = client.post("/api/auth/login", json={"email": "ahmed@sahl.sa", "password": PASSWORD})

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "ahmed@sahl.sa"
        assert data["user"]["role"] == "employee"
        assert data["user"]["branch_id"] == employee.branch_id
        assert "requests_create" in data["user"]["permissions"]
        assert "access_token" in resp.cookies

        claims = decode_access_token(data["access_token"])
        assert claims["sub"] == str(employee.id)
        assert claims["email"] == "ahmed@sahl.sa"
        assert claims["role"] == "employee"
        assert claims["branch_id"] == employee.branch_id

        db.expire_all()
        assert db.get(User, employee.id).last_login is not None
        log = db.query(LoginLog).one()
        assert log.success is True
        assert log.user_id == employee.id

    def test_email_is_case_insensitive(self, client, employee):
        resp = client.post("/api/auth/login", json={"email": "Ahmed@SAHL.sa", "password": PASSWORD})
        assert resp.status_code == 200

    def test_wrong_password(self, client, employee, db):
        resp = client.post("/api/auth/login", json={"email": "ahmed@sahl.sa", "password": "nope"})

        assert resp.status_code == 401
        assert resp.json() == {"success": False, "error": "Invalid credentials"}
        log = db.query(LoginLog).one()
        assert log.success is False
        assert log.user_id == employee.id
        assert log.email == "ahmed@sahl.sa"

    def test_unknown_email(self, client, branches, db):
        resp = client.post("/api/auth/login", json={"email": "ghost@sahl.sa", "password": PASSWORD})
        assert resp.status_code == 401
        assert db.query(LoginLog).one().user_id is None

    def test_inactive_user(self, client, make_user):
        make_user("Former", "former@sahl.sa", is_active=False)
        resp = client.post("/api/auth/login", json={"email": "former@sahl.sa", "password": PASSWORD})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid credentials"

    def test_missing_fields(self, client, branches):
        resp = client.post("/api/auth/login", json={"email": "ahmed@sahl.sa"})
        assert resp.status_code == 400
        assert resp.json()["success"] is False
        assert resp.json()["details"][0]["field"] == "password"

    def test_wrong_method(self, client):
        resp = client.get("/api/auth/login")
        assert resp.status_code == 405
        assert resp.json()["success"] is False


class TestCurrentUser:
    def test_me(self, client, manager, manager_headers):
        resp = client.get("/api/auth/me", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json()["email"] == "manager@sahl.sa"
        assert resp.json()["branch_code"] == "laban"

    def test_cookie_token(self, client, manager):
        client.cookies.set("access_token", create_user_token(manager))
        resp = client.get("/api/auth/me")
        assert resp.status_code == 200

    def test_garbage_token(self, client, branches):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid or expired token"

    def test_expired_token(self, client, manager):
        token = create_user_token(manager, expires_delta=timedelta(minutes=-1))
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_disabled_user_token(self, client, manager, manager_headers, db):
        manager.is_active = False
        db.commit()
        resp = client.get("/api/auth/me", headers=manager_headers)
        assert resp.status_code == 403

    def test_logout_clears_cookie(self, client, manager_headers):
        resp = client.post("/api/auth/logout", headers=manager_headers)
        assert resp.status_code == 200
        assert "access_token" in resp.headers.get("set-cookie", "")


class TestRateLimit:
    def test_login_is_throttled(self, client, employee, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
        body = {"email": "ahmed@sahl.sa", "password": "wrong-password"}

        statuses = [client.post("/api/auth/login", json=body).status_code for _ in range(6)]

        assert statuses[:5] == [401] * 5
        assert statuses[5] == 429


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
