"""
Daily Closing Service - end-of-day reconciliation of cash and bank takings
"""
from datetime import date
from decimal import Decimal
from typing import Optional, List, Dict, Tuple
from sqlalchemy.orm import Session
import logging

from sahl.core.config import settings
from sahl.models import DailyClosing, ClosingStatus
from sahl.schemas import DailyClosingCreate, DailyClosingUpdate
from sahl.services.revenue_service import RevenueService
from sahl.services.expense_service import ExpenseService

logger = logging.getLogger(__name__)


def closing_status(difference: Decimal, tolerance: Decimal = None) -> str:
    if tolerance is None:
        tolerance = Decimal(str(settings.AMOUNT_TOLERANCE))
    if abs(difference) <= tolerance:
        return ClosingStatus.BALANCED.value
    if difference > 0:
        return ClosingStatus.SURPLUS.value
    return ClosingStatus.SHORTAGE.value


class DailyClosingService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, closing_id: int) -> Optional[DailyClosing]:
        return self.db.query(DailyClosing).filter(DailyClosing.id == closing_id).first()

    def get_for_day(self, branch_id: int, closing_date: date) -> Optional[DailyClosing]:
        return self.db.query(DailyClosing).filter(
            DailyClosing.branch_id == branch_id,
            DailyClosing.closing_date == closing_date
        ).first()

    def get_all(self, branch_id: int = None, closing_date: date = None, limit: int = 30) -> List[DailyClosing]:
        """Latest closings first"""
        query = self.db.query(DailyClosing)
        if branch_id:
            query = query.filter(DailyClosing.branch_id == branch_id)
        if closing_date:
            query = query.filter(DailyClosing.closing_date == closing_date)
        return query.order_by(DailyClosing.closing_date.desc(), DailyClosing.id.desc()).limit(limit).all()

    def get_system_totals(self, branch_id: int, closing_date: date) -> Dict:
        """What the books say for the day, before anything is counted"""
        revenue = RevenueService(self.db).get_daily_totals(branch_id, closing_date)
        total_expenses = ExpenseService(self.db).get_daily_total(branch_id, closing_date)
        return {
            "closing_date": closing_date,
            "branch_id": branch_id,
            "total_revenue": revenue["total"],
            "total_expenses": total_expenses,
            "net_profit": revenue["total"] - total_expenses,
            "system_cash": revenue["cash"],
            "system_bank": revenue["network"],
        }

    def _reconcile(self, closing: DailyClosing):
        totals = self.get_system_totals(closing.branch_id, closing.closing_date)
        closing.total_revenue = totals["total_revenue"]
        closing.total_expenses = totals["total_expenses"]
        closing.net_profit = totals["net_profit"]
        closing.system_cash = totals["system_cash"]
        closing.system_bank = totals["system_bank"]

        actual = Decimal(str(closing.actual_cash or 0)) + Decimal(str(closing.actual_bank or 0))
        difference = actual - (totals["system_cash"] + totals["system_bank"])
        closing.difference = difference
        closing.status = closing_status(difference)

    def save(self, closing_data: DailyClosingCreate, branch_id: int,
             created_by_id: int = None) -> Tuple[DailyClosing, bool]:
        """Create or refresh the closing of a day; returns (closing, created)"""
        closing = self.get_for_day(branch_id, closing_data.closing_date)
        created = closing is None
        if created:
            closing = DailyClosing(
                closing_date=closing_data.closing_date,
                branch_id=branch_id,
                created_by_id=created_by_id
            )
            self.db.add(closing)

        closing.actual_cash = closing_data.actual_cash
        closing.actual_bank = closing_data.actual_bank
        closing.notes = closing_data.notes
        self._reconcile(closing)
        self.db.flush()

        if closing.status != ClosingStatus.BALANCED.value:
            logger.warning(
                f"Daily closing {closing.closing_date} branch {branch_id}: "
                f"{closing.status} of {float(closing.difference):,.2f}"
            )
        return closing, created

    def update(self, closing_id: int, closing_data: DailyClosingUpdate) -> Optional[DailyClosing]:
        closing = self.get_by_id(closing_id)
        if not closing:
            return None

        update_data = closing_data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            if key in ("actual_cash", "actual_bank") and value is None:
                continue
            setattr(closing, key, value)

        self._reconcile(closing)
        self.db.flush()
        return closing
