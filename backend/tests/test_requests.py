"""
Tests for HR requests and their review workflow.
"""
import pytest

from sahl.models import EmployeeRequest


def _leave(**overrides):
    data = {
        "type": "leave",
        "reason": "Family visit",
        "start_date": "2025-02-01",
        "end_date": "2025-02-05",
    }
    data.update(overrides)
    return data


class TestCreateRequest:
    def test_employee_submits_leave(self, client, employee, employee_headers, branches):
        resp = client.post("/api/requests", json=_leave(), headers=employee_headers)
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "pending"
        assert data["user_id"] == employee.id
        assert data["employee_name"] == "Ahmed"
        assert data["branch_id"] == branches["laban"].id

    @pytest.mark.parametrize("body", [
        _leave(end_date="2025-01-30"),
        _leave(start_date=None),
        {"type": "advance", "amount": 0},
        {"type": "advance"},
        {"type": "resignation"},
        {"type": "overtime", "overtime_date": "2025-02-01", "hours": 25},
        {"type": "overtime", "overtime_date": "2025-02-01", "hours": 0},
        {"type": "overtime", "hours": 3},
    ])
    def test_type_specific_validation(self, client, employee_headers, body):
        resp = client.post("/api/requests", json=body, headers=employee_headers)
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    @pytest.mark.parametrize("body", [
        {"type": "advance", "amount": 1500},
        {"type": "resignation", "last_working_day": "2025-03-31"},
        {"type": "overtime", "overtime_date": "2025-02-01", "hours": 24},
        _leave(end_date="2025-02-01"),
    ])
    def test_valid_types(self, client, employee_headers, body):
        assert client.post("/api/requests", json=body, headers=employee_headers).status_code == 201

    def test_unknown_type(self, client, employee_headers):
        resp = client.post("/api/requests", json={"type": "vacation"}, headers=employee_headers)
        assert resp.status_code == 400


class TestListRequests:
    def test_employees_only_see_their_own(self, client, headers_for, employee, other_employee, manager_headers):
        client.post("/api/requests", json=_leave(), headers=headers_for(employee))
        client.post("/api/requests", json=_leave(), headers=headers_for(other_employee))

        own = client.get("/api/requests", headers=headers_for(employee)).json()
        assert [r["user_id"] for r in own] == [employee.id]

        # A user_id filter cannot widen an employee's view
        filtered = client.get(
            "/api/requests", params={"user_id": other_employee.id}, headers=headers_for(employee)
        ).json()
        assert [r["user_id"] for r in filtered] == [employee.id]

        assert len(client.get("/api/requests", headers=manager_headers).json()) == 2

    def test_employee_cannot_open_colleague_request(self, client, headers_for, employee, other_employee):
        created = client.post("/api/requests", json=_leave(), headers=headers_for(other_employee)).json()
        resp = client.get(f"/api/requests/{created['id']}", headers=headers_for(employee))
        assert resp.status_code == 404

    def test_filters(self, client, employee_headers, admin_headers):
        client.post("/api/requests", json=_leave(), headers=employee_headers)
        client.post("/api/requests", json={"type": "advance", "amount": 300}, headers=employee_headers)

        advances = client.get("/api/requests", params={"type": "advance"}, headers=admin_headers).json()
        assert [r["type"] for r in advances] == ["advance"]

        pending = client.get("/api/requests", params={"status": "pending"}, headers=admin_headers).json()
        assert len(pending) == 2


class TestReview:
    def _create(self, client, headers):
        return client.post("/api/requests", json=_leave(), headers=headers).json()["id"]

    def test_full_flow(self, client, admin, admin_headers, employee_headers):
        request_id = self._create(client, employee_headers)

        resp = client.patch(
            f"/api/requests/{request_id}",
            json={"status": "in_review", "admin_notes": "Checking the rota"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "in_review"
        assert resp.json()["admin_notes"] == "Checking the rota"
        assert resp.json()["reviewed_by_id"] == admin.id
        assert resp.json()["reviewed_at"] is not None

        resp = client.post(f"/api/requests/{request_id}/approve", json={"admin_notes": "Enjoy"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["status"] == "approved"

        resp = client.post(f"/api/requests/{request_id}/approve", headers=admin_headers)
        assert resp.status_code == 400
        assert "approved" in resp.json()["error"]

    def test_reject_without_body(self, client, admin_headers, employee_headers):
        request_id = self._create(client, employee_headers)
        resp = client.post(f"/api/requests/{request_id}/reject", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["status"] == "rejected"

    def test_review_endpoint(self, client, admin_headers, employee_headers):
        request_id = self._create(client, employee_headers)
        resp = client.post(f"/api/requests/{request_id}/review", headers=admin_headers)
        assert resp.json()["status"] == "in_review"

    def test_rejected_cannot_be_approved(self, client, admin_headers, employee_headers):
        request_id = self._create(client, employee_headers)
        client.post(f"/api/requests/{request_id}/reject", headers=admin_headers)
        resp = client.patch(f"/api/requests/{request_id}", json={"status": "approved"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_only_admin_reviews(self, client, manager_headers, employee_headers):
        request_id = self._create(client, employee_headers)
        for headers in (manager_headers, employee_headers):
            resp = client.patch(f"/api/requests/{request_id}", json={"status": "approved"}, headers=headers)
            assert resp.status_code == 403
            assert resp.json()["required"] == "admin"

    def test_unknown_request(self, client, admin_headers):
        resp = client.post("/api/requests/999/approve", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Request not found"}


class TestDeleteRequest:
    def test_owner_deletes_pending(self, client, employee_headers, db):
        request_id = client.post("/api/requests", json=_leave(), headers=employee_headers).json()["id"]
        assert client.delete(f"/api/requests/{request_id}", headers=employee_headers).status_code == 200
        assert db.query(EmployeeRequest).count() == 0

    def test_owner_cannot_delete_reviewed(self, client, admin_headers, employee_headers):
        request_id = client.post("/api/requests", json=_leave(), headers=employee_headers).json()["id"]
        client.post(f"/api/requests/{request_id}/approve", headers=admin_headers)
        assert client.delete(f"/api/requests/{request_id}", headers=employee_headers).status_code == 403
        assert client.delete(f"/api/requests/{request_id}", headers=admin_headers).status_code == 200

    def test_colleague_cannot_delete(self, client, headers_for, employee, other_employee):
        request_id = client.post("/api/requests", json=_leave(), headers=headers_for(employee)).json()["id"]
        assert client.delete(f"/api/requests/{request_id}", headers=headers_for(other_employee)).status_code == 403
