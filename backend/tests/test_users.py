"""
Tests for admin-only user management.
"""
import pytest

from sahl.models import AuditLog

PASSWORD = "secret123"


def _payload(**overrides):
    data = {
        "name": "Sara Al-Harbi",
        "email": "sara@sahl.sa",
        "password": "welcome1",
        "role": "employee",
    }
    data.update(overrides)
    return data


class TestCreateUser:
    def test_create_with_role_defaults(self, client, admin_headers, branches, db):
        body = _payload(branch_id=branches["tuwaiq"].id)
        resp = client.post("/api/users", json=body, headers=admin_headers)

        assert resp.status_code == 201
        data = resp.json()
        assert data["email"] == "sara@sahl.sa"
        assert data["branch_code"] == "tuwaiq"
        assert "requests_create" in data["permissions"]
        assert "revenues_edit" not in data["permissions"]
        assert "password" not in data and "hashed_password" not in data
        assert db.query(AuditLog).filter(AuditLog.action == "USER_CREATED").count() == 1

    def test_explicit_permissions(self, client, admin_headers, branches):
        body = _payload(branch_id=branches["laban"].id, permissions=["revenues_view", "revenues_edit"])
        resp = client.post("/api/users", json=body, headers=admin_headers)
        assert resp.json()["permissions"] == ["revenues_view", "revenues_edit"]

    def test_unknown_permission(self, client, admin_headers, branches):
        body = _payload(branch_id=branches["laban"].id, permissions=["fly"])
        resp = client.post("/api/users", json=body, headers=admin_headers)
        assert resp.status_code == 400
        assert "Unknown permission" in resp.json()["error"]

    def test_duplicate_email_ignores_case(self, client, admin_headers, employee, branches):
        body = _payload(email="AHMED@sahl.sa", branch_id=branches["laban"].id)
        resp = client.post("/api/users", json=body, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Email already registered"

    def test_non_admin_needs_branch(self, client, admin_headers):
        resp = client.post("/api/users", json=_payload(), headers=admin_headers)
        assert resp.status_code == 400

    @pytest.mark.parametrize("override", [
        {"email": "not-an-email"},
        {"password": "123"},
        {"role": "owner"},
    ])
    def test_invalid_body(self, client, admin_headers, branches, override):
        body = _payload(branch_id=branches["laban"].id, **override)
        assert client.post("/api/users", json=body, headers=admin_headers).status_code == 400

    def test_manager_forbidden(self, client, manager_headers, branches):
        resp = client.post("/api/users", json=_payload(branch_id=branches["laban"].id), headers=manager_headers)
        assert resp.status_code == 403
        assert resp.json() == {"success": False, "error": "Permission denied", "required": "admin"}


class TestManageUsers:
    def test_list_filters(self, client, admin_headers, manager, employee, branches):
        users = client.get("/api/users", params={"role": "employee"}, headers=admin_headers).json()
        assert [u["email"] for u in users] == ["ahmed@sahl.sa"]

        laban = client.get("/api/users", params={"branch_id": branches["laban"].id}, headers=admin_headers).json()
        assert {u["email"] for u in laban} == {"manager@sahl.sa", "ahmed@sahl.sa"}

    def test_update(self, client, admin_headers, employee):
        resp = client.put(
            f"/api/users/{employee.id}",
            json={"title": "Barista", "permissions": ["revenues_view", "revenues_edit"]},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["title"] == "Barista"
        assert "revenues_edit" in resp.json()["permissions"]

    def test_update_unknown(self, client, admin_headers):
        assert client.put("/api/users/999", json={"title": "X"}, headers=admin_headers).status_code == 404

    def test_deactivate_blocks_login(self, client, admin_headers, employee):
        resp = client.delete(f"/api/users/{employee.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["is_active"] is False

        login = client.post("/api/auth/login", json={"email": "ahmed@sahl.sa", "password": PASSWORD})
        assert login.status_code == 401

    def test_cannot_deactivate_self(self, client, admin, admin_headers):
        resp = client.delete(f"/api/users/{admin.id}", headers=admin_headers)
        assert resp.status_code == 400


class TestBranches:
    def test_admin_sees_all(self, client, admin_headers, branches):
        codes = [b["code"] for b in client.get("/api/branches", headers=admin_headers).json()]
        assert codes == ["laban", "tuwaiq"]

    def test_manager_sees_own(self, client, manager_headers, branches):
        codes = [b["code"] for b in client.get("/api/branches", headers=manager_headers).json()]
        assert codes == ["laban"]

    def test_create_branch(self, client, admin_headers, branches):
        resp = client.post("/api/branches", json={"code": "malqa", "name": "Malqa"}, headers=admin_headers)
        assert resp.status_code == 201
        dup = client.post("/api/branches", json={"code": "malqa", "name": "Malqa"}, headers=admin_headers)
        assert dup.status_code == 400
