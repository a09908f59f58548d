"""
Tests for the weekly bonus calculation and the bonus endpoints.
"""
from decimal import Decimal

import pytest

from sahl.services.bonus_service import calculate_bonus, calculate_monthly_bonus, sort_rules
from sahl.services.branch_service import DEFAULT_BONUS_TIERS


class TestCalculateBonus:
    @pytest.mark.parametrize("income, expected", [
        (Decimal("55000"), Decimal("1000")),
        (Decimal("50000"), Decimal("1000")),
        (Decimal("49999.99"), Decimal("800")),
        (Decimal("35000"), Decimal("600")),
        (Decimal("10000"), Decimal("200")),
        (Decimal("9999"), Decimal("0")),
        (Decimal("0"), Decimal("0")),
    ])
    def test_default_tiers(self, income, expected):
        assert calculate_bonus(income, DEFAULT_BONUS_TIERS) == expected

    def test_empty_rules_pay_nothing(self):
        assert calculate_bonus(Decimal("100000"), []) == Decimal("0")

    def test_below_every_threshold(self):
        rules = [(Decimal("20000"), Decimal("400")), (Decimal("10000"), Decimal("200"))]
        assert calculate_bonus(Decimal("5000"), rules) == Decimal("0")

    def test_first_matching_rule_wins_in_given_order(self):
        # Unsorted input: the lower tier is reached first
        rules = [(Decimal("10000"), Decimal("200")), (Decimal("20000"), Decimal("400"))]
        assert calculate_bonus(Decimal("25000"), rules) == Decimal("200")
        assert calculate_bonus(Decimal("25000"), sort_rules(rules)) == Decimal("400")

    def test_accepts_dict_rules(self):
        rules = [{"weekly_income_threshold": 1000, "bonus_amount": 50}]
        assert calculate_bonus(1500, rules) == Decimal("50")


class TestMonthlyBonus:
    def test_four_fixed_weeks(self):
        daily = {1: Decimal("6000"), 7: Decimal("4000"), 8: Decimal("25000"), 22: Decimal("50000")}
        result = calculate_monthly_bonus(daily, 2025, 2, DEFAULT_BONUS_TIERS)

        periods = result["periods"]
        assert [p["period"] for p in periods] == ["week_1", "week_2", "week_3", "week_4"]
        assert [p["income"] for p in periods] == [
            Decimal("10000"), Decimal("25000"), Decimal("0"), Decimal("50000")
        ]
        assert [p["bonus"] for p in periods] == [
            Decimal("200"), Decimal("400"), Decimal("0"), Decimal("1000")
        ]
        assert result["total_bonus"] == Decimal("1600")
        assert result["total_income"] == Decimal("85000")

    def test_february_has_no_remainder(self):
        result = calculate_monthly_bonus({}, 2025, 2, DEFAULT_BONUS_TIERS)
        assert len(result["periods"]) == 4

    def test_leap_february_has_one_remaining_day(self):
        result = calculate_monthly_bonus({29: Decimal("2000")}, 2024, 2, DEFAULT_BONUS_TIERS)
        remainder = result["periods"][-1]
        assert remainder["start_day"] == 29
        assert remainder["end_day"] == 29
        # 2000 a day is 14000 a week: tier 200, one day of it
        assert remainder["bonus"] == Decimal("29")

    def test_remainder_is_prorated(self):
        result = calculate_monthly_bonus({30: Decimal("6000")}, 2025, 1, DEFAULT_BONUS_TIERS)
        remainder = result["periods"][-1]
        assert remainder["period"] == "remaining_days"
        assert remainder["prorated"] is True
        assert (remainder["start_day"], remainder["end_day"]) == (29, 31)
        # 6000 over 3 days -> 14000 weekly -> tier 200 -> 200 / 7 * 3 = 85.71
        assert remainder["bonus"] == Decimal("86")
        assert result["total_bonus"] == Decimal("86")

    def test_remainder_rounds_half_up(self):
        rules = [(Decimal("0.01"), Decimal("7"))]
        # Two remaining days in a 30-day month: 7 / 7 * 2 = 2 exactly
        result = calculate_monthly_bonus({29: Decimal("1")}, 2025, 4, rules)
        assert result["periods"][-1]["bonus"] == Decimal("2")

        rules = [(Decimal("0.01"), Decimal("3.5"))]
        # 3.5 / 7 * 1 = 0.5 rounds up to 1
        result = calculate_monthly_bonus({29: Decimal("1")}, 2024, 2, rules)
        assert result["periods"][-1]["bonus"] == Decimal("1")

    def test_remainder_without_income_pays_nothing(self):
        result = calculate_monthly_bonus({1: Decimal("60000")}, 2025, 1, DEFAULT_BONUS_TIERS)
        assert result["periods"][-1]["bonus"] == Decimal("0")
        assert result["total_bonus"] == Decimal("1000")


def _revenue(branch, day, name, amount):
    return {
        "revenue_date": f"2025-01-{day:02d}",
        "total_amount": amount,
        "cash_amount": amount,
        "network_amount": 0,
        "employee_contributions": [{"name": name, "amount": amount}],
        "branch_id": branch.id,
    }


class TestBonusApi:
    def test_calculation_from_revenues(self, client, admin_headers, branches):
        laban = branches["laban"]
        for payload in (
            _revenue(laban, 2, "Ahmed", 12000),
            _revenue(laban, 9, "Ahmed", 21000),
            _revenue(laban, 3, "Sara", 5000),
        ):
            assert client.post("/api/revenues", json=payload, headers=admin_headers).status_code == 201

        resp = client.get(
            "/api/bonus",
            params={"branch_id": laban.id, "month": 1, "year": 2025},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_revenue"] == 38000
        assert data["total_bonus"] == 600

        by_name = {e["employee_name"]: e for e in data["employees"]}
        assert set(by_name) == {"Ahmed", "Sara"}
        assert [p["bonus"] for p in by_name["Ahmed"]["periods"][:2]] == [200, 400]
        assert by_name["Sara"]["total_bonus"] == 0

    def test_filter_by_employee(self, client, admin_headers, branches):
        laban = branches["laban"]
        client.post("/api/revenues", json=_revenue(laban, 2, "Ahmed", 12000), headers=admin_headers)
        client.post("/api/revenues", json=_revenue(laban, 2, "Sara", 12000), headers=admin_headers)

        resp = client.get(
            "/api/bonus",
            params={"branch_id": laban.id, "month": 1, "year": 2025, "employee_name": "Sara"},
            headers=admin_headers,
        )
        assert [e["employee_name"] for e in resp.json()["employees"]] == ["Sara"]

    def test_invalid_month(self, client, admin_headers, branches):
        resp = client.get(
            "/api/bonus",
            params={"branch_id": branches["laban"].id, "month": 13, "year": 2025},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_employee_without_flag_is_denied(self, client, employee_headers, branches):
        resp = client.get("/api/bonus", params={"month": 1, "year": 2025}, headers=employee_headers)
        assert resp.status_code == 403
        assert resp.json() == {"success": False, "error": "Permission denied", "required": "bonus_view"}

    def test_save_records_is_idempotent_per_period(self, client, admin_headers, branches):
        laban = branches["laban"]
        client.post("/api/revenues", json=_revenue(laban, 2, "Ahmed", 12000), headers=admin_headers)
        body = {"branch_id": laban.id, "year": 2025, "month": 1}

        first = client.post("/api/bonus", json=body, headers=admin_headers)
        assert first.status_code == 201
        assert first.json()[0]["amount"] == 200
        assert first.json()[0]["breakdown"][0]["bonus"] == 200

        client.post("/api/revenues", json=_revenue(laban, 10, "Ahmed", 21000), headers=admin_headers)
        second = client.post("/api/bonus", json=body, headers=admin_headers)
        assert second.json()[0]["id"] == first.json()[0]["id"]
        assert second.json()[0]["amount"] == 600

        records = client.get("/api/bonus/records", params={"branch_id": laban.id}, headers=admin_headers)
        assert len(records.json()) == 1
