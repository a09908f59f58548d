"""
Report Service - period summaries across revenues and expenses
"""
from datetime import date
from decimal import Decimal
from typing import Dict
from sqlalchemy.orm import Session
from sqlalchemy import func

from sahl.models import Branch, Revenue
from sahl.services.revenue_service import RevenueService
from sahl.services.expense_service import ExpenseService


class ReportService:
    def __init__(self, db: Session):
        self.db = db

    def get_revenue_by_branch(self, branch_id: int = None, start_date: date = None,
                              end_date: date = None) -> Dict[str, Decimal]:
        query = self.db.query(
            Branch.code,
            func.coalesce(func.sum(Revenue.total_after_discount), 0)
        ).join(Revenue, Revenue.branch_id == Branch.id)
        if branch_id:
            query = query.filter(Branch.id == branch_id)
        if start_date:
            query = query.filter(Revenue.revenue_date >= start_date)
        if end_date:
            query = query.filter(Revenue.revenue_date <= end_date)
        return {code: Decimal(str(total)) for code, total in query.group_by(Branch.code).all()}

    def get_summary(self, branch_id: int = None, start_date: date = None, end_date: date = None) -> Dict:
        """
        Financial summary for a period.

        branch_id None covers every branch.
        """
        if start_date and end_date and end_date < start_date:
            raise ValueError("End date cannot be before start date")

        revenue = RevenueService(self.db).get_summary(
            branch_id=branch_id, start_date=start_date, end_date=end_date
        )
        expenses = ExpenseService(self.db).get_summary(
            branch_id=branch_id, start_date=start_date, end_date=end_date
        )

        return {
            "start_date": start_date,
            "end_date": end_date,
            "branch_id": branch_id,
            "revenue_count": revenue["count"],
            "total_revenue": revenue["total"],
            "total_discount": revenue["discount"],
            "total_cash": revenue["cash"],
            "total_network": revenue["network"],
            "expense_count": expenses["count"],
            "total_expenses": expenses["total"],
            "net_profit": revenue["total"] - expenses["total"],
            "expenses_by_category": expenses["by_category"],
            "expenses_by_payment_method": expenses["by_payment_method"],
            "revenue_by_branch": self.get_revenue_by_branch(branch_id, start_date, end_date),
            "revenue_by_employee": revenue["by_employee"],
        }
