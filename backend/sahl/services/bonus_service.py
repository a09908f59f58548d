"""
Bonus Service - weekly threshold bonuses computed from revenue contributions

A month is split into four fixed weeks (days 1-7, 8-14, 15-21, 22-28) and a
remainder (day 29 to month end). Each week pays the bonus of the first rule
whose threshold its income reaches. The remainder is paid pro rata: its income
is extrapolated to a weekly figure, the matching tier is looked up and a
daily share of that tier is paid for each remaining day.
"""
import calendar
from collections import defaultdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from sahl.models import BonusRule, BonusRecord, Revenue, RevenueContribution

FULL_WEEKS = 4
DAYS_PER_WEEK = 7
REMAINDER_START_DAY = FULL_WEEKS * DAYS_PER_WEEK + 1

ZERO = Decimal("0")


def _to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _rule_values(rule):
    if isinstance(rule, dict):
        return rule["weekly_income_threshold"], rule["bonus_amount"]
    if isinstance(rule, (tuple, list)):
        return rule[0], rule[1]
    return rule.weekly_income_threshold, rule.bonus_amount


def calculate_bonus(income, rules: Sequence) -> Decimal:
    """
    Bonus for one week's income.

    Rules are (threshold, bonus) pairs, BonusRule rows or dicts, already sorted
    by threshold descending; the first one reached wins.
    """
    income = _to_decimal(income)
    for rule in rules:
        threshold, bonus = _rule_values(rule)
        if income >= _to_decimal(threshold):
            return _to_decimal(bonus)
    return ZERO


def sort_rules(rules: Iterable) -> List:
    return sorted(rules, key=lambda r: _to_decimal(_rule_values(r)[0]), reverse=True)


def calculate_monthly_bonus(daily_income: Dict[int, Decimal], year: int, month: int,
                            rules: Sequence) -> Dict:
    """
    Bonus breakdown for one employee and month.

    daily_income maps day of month to the income earned that day.
    """
    days_in_month = calendar.monthrange(year, month)[1]
    periods = []

    for week in range(FULL_WEEKS):
        start_day = week * DAYS_PER_WEEK + 1
        end_day = start_day + DAYS_PER_WEEK - 1
        income = sum((_to_decimal(daily_income.get(day)) for day in range(start_day, end_day + 1)), ZERO)
        periods.append({
            "period": f"week_{week + 1}",
            "start_day": start_day,
            "end_day": end_day,
            "income": income,
            "bonus": calculate_bonus(income, rules) if income > 0 else ZERO,
            "prorated": False,
        })

    if days_in_month >= REMAINDER_START_DAY:
        remaining_days = days_in_month - REMAINDER_START_DAY + 1
        income = sum(
            (_to_decimal(daily_income.get(day)) for day in range(REMAINDER_START_DAY, days_in_month + 1)),
            ZERO
        )
        bonus = ZERO
        if income > 0:
            weekly_equivalent = income / remaining_days * DAYS_PER_WEEK
            tier = calculate_bonus(weekly_equivalent, rules)
            bonus = (tier / DAYS_PER_WEEK * remaining_days).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        periods.append({
            "period": "remaining_days",
            "start_day": REMAINDER_START_DAY,
            "end_day": days_in_month,
            "income": income,
            "bonus": bonus,
            "prorated": True,
        })

    return {
        "total_income": sum((p["income"] for p in periods), ZERO),
        "total_bonus": sum((p["bonus"] for p in periods), ZERO),
        "periods": periods,
    }


class BonusRuleService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, rule_id: int) -> Optional[BonusRule]:
        return self.db.query(BonusRule).filter(BonusRule.id == rule_id).first()

    def get_by_branch(self, branch_id: int) -> List[BonusRule]:
        """Rules sorted by threshold, highest first"""
        return self.db.query(BonusRule).filter(
            BonusRule.branch_id == branch_id
        ).order_by(BonusRule.weekly_income_threshold.desc()).all()

    def _threshold_taken(self, branch_id: int, threshold: Decimal, exclude_id: int = None) -> bool:
        query = self.db.query(BonusRule).filter(
            BonusRule.branch_id == branch_id,
            BonusRule.weekly_income_threshold == threshold
        )
        if exclude_id:
            query = query.filter(BonusRule.id != exclude_id)
        return query.first() is not None

    def create(self, branch_id: int, threshold: Decimal, bonus_amount: Decimal) -> BonusRule:
        if self._threshold_taken(branch_id, threshold):
            raise ValueError(f"A rule with threshold {threshold} already exists for this branch")
        rule = BonusRule(
            branch_id=branch_id,
            weekly_income_threshold=threshold,
            bonus_amount=bonus_amount
        )
        self.db.add(rule)
        self.db.flush()
        return rule

    def update(self, rule_id: int, threshold: Decimal = None, bonus_amount: Decimal = None) -> Optional[BonusRule]:
        rule = self.get_by_id(rule_id)
        if not rule:
            return None
        if threshold is not None:
            if self._threshold_taken(rule.branch_id, threshold, exclude_id=rule.id):
                raise ValueError(f"A rule with threshold {threshold} already exists for this branch")
            rule.weekly_income_threshold = threshold
        if bonus_amount is not None:
            rule.bonus_amount = bonus_amount
        self.db.flush()
        return rule

    def replace(self, branch_id: int, rules) -> List[BonusRule]:
        """Replace the whole rule set of a branch"""
        thresholds = [r.weekly_income_threshold for r in rules]
        if len(set(thresholds)) != len(thresholds):
            raise ValueError("Thresholds must be unique within a branch")

        self.db.query(BonusRule).filter(BonusRule.branch_id == branch_id).delete()
        self.db.flush()
        for r in rules:
            self.db.add(BonusRule(
                branch_id=branch_id,
                weekly_income_threshold=r.weekly_income_threshold,
                bonus_amount=r.bonus_amount
            ))
        self.db.flush()
        return self.get_by_branch(branch_id)

    def delete(self, rule_id: int) -> bool:
        rule = self.get_by_id(rule_id)
        if not rule:
            return False
        self.db.delete(rule)
        return True


class BonusService:
    def __init__(self, db: Session):
        self.db = db
        self.rules = BonusRuleService(db)

    def get_daily_income_by_employee(self, branch_id: int, year: int, month: int) -> Dict[str, Dict[int, Decimal]]:
        """employee name -> day of month -> contributed income"""
        first_day = date(year, month, 1)
        last_day = date(year, month, calendar.monthrange(year, month)[1])

        rows = self.db.query(
            RevenueContribution.employee_name,
            RevenueContribution.amount,
            Revenue.revenue_date
        ).join(Revenue).filter(
            Revenue.branch_id == branch_id,
            Revenue.revenue_date >= first_day,
            Revenue.revenue_date <= last_day
        ).all()

        income: Dict[str, Dict[int, Decimal]] = defaultdict(lambda: defaultdict(lambda: ZERO))
        for name, amount, revenue_date in rows:
            income[name][revenue_date.day] += _to_decimal(amount)
        return income

    def get_total_revenue(self, branch_id: int, year: int, month: int) -> Decimal:
        first_day = date(year, month, 1)
        last_day = date(year, month, calendar.monthrange(year, month)[1])
        revenues = self.db.query(Revenue).filter(
            Revenue.branch_id == branch_id,
            Revenue.revenue_date >= first_day,
            Revenue.revenue_date <= last_day
        ).all()
        return sum((_to_decimal(r.total_after_discount) for r in revenues), ZERO)

    def calculate_for_branch(self, branch_id: int, year: int, month: int,
                             employee_name: str = None) -> Dict:
        rules = self.rules.get_by_branch(branch_id)
        income_by_employee = self.get_daily_income_by_employee(branch_id, year, month)

        names = sorted(income_by_employee)
        if employee_name:
            names = [employee_name]

        employees = []
        for name in names:
            result = calculate_monthly_bonus(income_by_employee.get(name, {}), year, month, rules)
            employees.append({"employee_name": name, **result})

        return {
            "branch_id": branch_id,
            "year": year,
            "month": month,
            "total_revenue": self.get_total_revenue(branch_id, year, month),
            "total_bonus": sum((e["total_bonus"] for e in employees), ZERO),
            "employees": employees,
        }

    def save_records(self, branch_id: int, year: int, month: int, employee_name: str = None,
                     created_by_id: int = None) -> List[BonusRecord]:
        """Store (or refresh) the computed monthly bonus of each employee"""
        calculation = self.calculate_for_branch(branch_id, year, month, employee_name)

        records = []
        for employee in calculation["employees"]:
            record = self.db.query(BonusRecord).filter(
                BonusRecord.branch_id == branch_id,
                BonusRecord.employee_name == employee["employee_name"],
                BonusRecord.year == year,
                BonusRecord.month == month
            ).first()
            if record is None:
                record = BonusRecord(
                    branch_id=branch_id,
                    employee_name=employee["employee_name"],
                    year=year,
                    month=month,
                    created_by_id=created_by_id
                )
                self.db.add(record)
            record.total_income = employee["total_income"]
            record.amount = employee["total_bonus"]
            record.breakdown = [
                {**p, "income": float(p["income"]), "bonus": float(p["bonus"])}
                for p in employee["periods"]
            ]
            records.append(record)

        self.db.flush()
        return records

    def get_records(self, branch_id: int = None, year: int = None, month: int = None) -> List[BonusRecord]:
        query = self.db.query(BonusRecord)
        if branch_id:
            query = query.filter(BonusRecord.branch_id == branch_id)
        if year:
            query = query.filter(BonusRecord.year == year)
        if month:
            query = query.filter(BonusRecord.month == month)
        return query.order_by(BonusRecord.year.desc(), BonusRecord.month.desc(), BonusRecord.employee_name).all()
