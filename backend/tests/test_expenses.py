"""
Tests for expense recording and summaries.
"""
import pytest

from sahl.models import AuditLog


def _payload(**overrides):
    data = {
        "expense_date": "2025-01-20",
        "category": "Utilities",
        "description": "Electricity bill for January",
        "amount": 250,
        "payment_method": "network",
    }
    data.update(overrides)
    return data


class TestExpenses:
    def test_create(self, client, admin, admin_headers, branches):
        body = _payload(branch_id=branches["laban"].id)
        resp = client.post("/api/expenses", json=body, headers=admin_headers)

        assert resp.status_code == 201
        data = resp.json()
        assert data["receipt_number"] == "EXP-00001"
        assert data["amount"] == 250
        assert data["payment_method"] == "network"
        assert data["created_by_id"] == admin.id

    @pytest.mark.parametrize("override", [
        {"description": "tiny"},
        {"amount": 0},
        {"category": "x"},
        {"payment_method": "cheque"},
    ])
    def test_invalid(self, client, admin_headers, branches, override):
        body = _payload(branch_id=branches["laban"].id, **override)
        resp = client.post("/api/expenses", json=body, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_manager_cannot_record(self, client, manager_headers):
        resp = client.post("/api/expenses", json=_payload(), headers=manager_headers)
        assert resp.status_code == 403
        assert resp.json()["required"] == "expenses_edit"

    def test_categories(self, client, admin_headers, branches):
        resp = client.get("/api/expenses/categories", headers=admin_headers)
        assert "Rent" in resp.json()["categories"]

        laban = branches["laban"].id
        client.post("/api/expenses", json=_payload(branch_id=laban, category="Rent"), headers=admin_headers)
        client.post("/api/expenses", json=_payload(branch_id=laban), headers=admin_headers)
        resp = client.get("/api/expenses/categories", headers=admin_headers)
        assert resp.json()["categories"] == ["Rent", "Utilities"]

    def test_summary_and_filters(self, client, admin_headers, manager_headers, branches):
        laban, tuwaiq = branches["laban"].id, branches["tuwaiq"].id
        client.post("/api/expenses", json=_payload(branch_id=laban), headers=admin_headers)
        client.post("/api/expenses", json=_payload(
            branch_id=laban, category="Supplies", amount=50, payment_method="cash"
        ), headers=admin_headers)
        client.post("/api/expenses", json=_payload(branch_id=tuwaiq, amount=999), headers=admin_headers)

        data = client.get("/api/expenses/summary", headers=manager_headers).json()
        assert data["count"] == 2
        assert data["total"] == 300
        assert data["by_category"] == [
            {"category": "Supplies", "amount": 50},
            {"category": "Utilities", "amount": 250},
        ]
        assert data["by_payment_method"] == {"cash": 50, "network": 250}

        supplies = client.get("/api/expenses", params={"category": "supp"}, headers=manager_headers).json()
        assert [e["category"] for e in supplies] == ["Supplies"]

    def test_delete(self, client, admin_headers, manager_headers, branches):
        created = client.post(
            "/api/expenses", json=_payload(branch_id=branches["laban"].id), headers=admin_headers
        ).json()
        assert client.get(f"/api/expenses/{created['id']}", headers=manager_headers).status_code == 200
        assert client.delete(f"/api/expenses/{created['id']}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/expenses/{created['id']}", headers=admin_headers).status_code == 404


class TestUpdateExpense:
    def _create(self, client, headers, branch_id):
        return client.post("/api/expenses", json=_payload(branch_id=branch_id), headers=headers).json()

    def test_update_changes_sent_fields(self, client, admin_headers, branches, db):
        created = self._create(client, admin_headers, branches["laban"].id)

        resp = client.put(
            f"/api/expenses/{created['id']}",
            json={"amount": 275.5, "payment_method": "cash", "description": "  Electricity and water bill  "},
            headers=admin_headers,
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["receipt_number"] == created["receipt_number"]
        assert data["amount"] == 275.5
        assert data["payment_method"] == "cash"
        assert data["description"] == "Electricity and water bill"
        assert data["category"] == "Utilities"
        assert db.query(AuditLog).filter(
            AuditLog.resource_type == "Expense", AuditLog.action == "UPDATE"
        ).count() == 1

    @pytest.mark.parametrize("body", [
        {"amount": 0},
        {"description": "tiny"},
        {"description": "   ab   "},
        {"amount": None},
        {"payment_method": "cheque"},
    ])
    def test_invalid_update(self, client, admin_headers, branches, body):
        created = self._create(client, admin_headers, branches["laban"].id)
        resp = client.put(f"/api/expenses/{created['id']}", json=body, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_update_unknown(self, client, admin_headers, branches):
        assert client.put("/api/expenses/999", json={"amount": 10}, headers=admin_headers).status_code == 404

    def test_other_branch_is_forbidden(self, client, admin_headers, make_user, headers_for, branches):
        created = self._create(client, admin_headers, branches["laban"].id)
        editor = make_user(
            "Tuwaiq Accountant", "acc@sahl.sa", role="manager", branch="tuwaiq",
            permissions=["expenses_view", "expenses_edit"],
        )
        resp = client.put(f"/api/expenses/{created['id']}", json={"amount": 10}, headers=headers_for(editor))
        assert resp.status_code == 403
        assert resp.json()["error"] == "Cannot access this branch"

    def test_manager_without_flag(self, client, admin_headers, manager_headers, branches):
        created = self._create(client, admin_headers, branches["laban"].id)
        resp = client.put(f"/api/expenses/{created['id']}", json={"amount": 10}, headers=manager_headers)
        assert resp.status_code == 403
        assert resp.json()["required"] == "expenses_edit"
