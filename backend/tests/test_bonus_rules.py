"""
Tests for the per-branch bonus rule set.
"""


class TestBonusRules:
    def test_new_branch_gets_default_tiers(self, client, admin_headers, branches):
        rules = client.get(
            "/api/bonus-rules", params={"branch_id": branches["laban"].id}, headers=admin_headers
        ).json()
        thresholds = [r["weekly_income_threshold"] for r in rules]
        assert thresholds == [50000, 40000, 30000, 20000, 10000, 0]
        assert rules[0]["bonus_amount"] == 1000

    def test_manager_reads_own_branch(self, client, manager_headers, branches):
        rules = client.get("/api/bonus-rules", headers=manager_headers).json()
        assert {r["branch_id"] for r in rules} == {branches["laban"].id}

    def test_create_and_duplicate(self, client, admin_headers, branches):
        body = {"branch_id": branches["laban"].id, "weekly_income_threshold": 60000, "bonus_amount": 1500}
        resp = client.post("/api/bonus-rules", json=body, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json()["bonus_amount"] == 1500

        resp = client.post("/api/bonus-rules", json=body, headers=admin_headers)
        assert resp.status_code == 400
        assert "already exists" in resp.json()["error"]

    def test_replace(self, client, admin_headers, branches):
        laban = branches["laban"].id
        body = {"branch_id": laban, "rules": [
            {"weekly_income_threshold": 5000, "bonus_amount": 100},
            {"weekly_income_threshold": 15000, "bonus_amount": 300},
        ]}
        resp = client.put("/api/bonus-rules", json=body, headers=admin_headers)
        assert resp.status_code == 200
        assert [r["weekly_income_threshold"] for r in resp.json()] == [15000, 5000]

        body["rules"].append({"weekly_income_threshold": 5000, "bonus_amount": 50})
        resp = client.put("/api/bonus-rules", json=body, headers=admin_headers)
        assert resp.status_code == 400

        # The rejected replacement left the previous set in place
        rules = client.get("/api/bonus-rules", params={"branch_id": laban}, headers=admin_headers).json()
        assert len(rules) == 2

    def test_update_and_delete(self, client, admin_headers, branches):
        rules = client.get(
            "/api/bonus-rules", params={"branch_id": branches["laban"].id}, headers=admin_headers
        ).json()
        top, second = rules[0], rules[1]

        resp = client.put(f"/api/bonus-rules/{top['id']}", json={"bonus_amount": 1200}, headers=admin_headers)
        assert resp.json()["bonus_amount"] == 1200

        resp = client.put(
            f"/api/bonus-rules/{top['id']}",
            json={"weekly_income_threshold": second["weekly_income_threshold"]},
            headers=admin_headers,
        )
        assert resp.status_code == 400

        assert client.delete(f"/api/bonus-rules/{top['id']}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/bonus-rules/{top['id']}", headers=admin_headers).status_code == 404

    def test_manager_cannot_edit(self, client, manager_headers, branches):
        body = {"branch_id": branches["laban"].id, "weekly_income_threshold": 60000, "bonus_amount": 1500}
        resp = client.post("/api/bonus-rules", json=body, headers=manager_headers)
        assert resp.status_code == 403
        assert resp.json()["required"] == "bonus_edit"
