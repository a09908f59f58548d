"""
Expense Service - Manage branch expenses
"""
from typing import Optional, List, Dict
from sqlalchemy.orm import Session
from sqlalchemy import func
from decimal import Decimal
from datetime import date
import logging

from sahl.models import Expense, PaymentMethod
from sahl.schemas import ExpenseCreate, ExpenseUpdate

logger = logging.getLogger(__name__)


class ExpenseService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, expense_id: int) -> Optional[Expense]:
        """Get expense by ID"""
        return self.db.query(Expense).filter(Expense.id == expense_id).first()

    def get_all(self, branch_id: int = None, category: str = None,
                start_date: date = None, end_date: date = None) -> List[Expense]:
        """Get expenses with optional filters"""
        query = self.db.query(Expense)

        if branch_id:
            query = query.filter(Expense.branch_id == branch_id)
        if category:
            query = query.filter(Expense.category.ilike(f"%{category}%"))
        if start_date:
            query = query.filter(Expense.expense_date >= start_date)
        if end_date:
            query = query.filter(Expense.expense_date <= end_date)

        return query.order_by(Expense.expense_date.desc(), Expense.id.desc()).all()

    def get_next_number(self) -> str:
        """Get next expense receipt number"""
        last_expense = self.db.query(Expense).order_by(Expense.id.desc()).first()

        if last_expense:
            try:
                num = int(last_expense.receipt_number.replace("EXP-", ""))
                return f"EXP-{num + 1:05d}"
            except ValueError:
                pass

        return "EXP-00001"

    def create(self, expense_data: ExpenseCreate, branch_id: int, created_by_id: int = None) -> Expense:
        expense = Expense(
            receipt_number=self.get_next_number(),
            expense_date=expense_data.expense_date,
            category=expense_data.category.strip(),
            description=expense_data.description.strip(),
            amount=expense_data.amount,
            payment_method=expense_data.payment_method.value,
            branch_id=branch_id,
            created_by_id=created_by_id
        )
        self.db.add(expense)
        self.db.flush()
        logger.info(f"Expense {expense.receipt_number} recorded for branch {branch_id}: {float(expense.amount):,.2f}")
        return expense

    def update(self, expense_id: int, expense_data: ExpenseUpdate) -> Optional[Expense]:
        """Change the fields that were sent; the receipt number stays"""
        expense = self.get_by_id(expense_id)
        if not expense:
            return None

        update_data = expense_data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            if value is None:
                raise ValueError(f"{key} cannot be empty")
            if key in ("category", "description"):
                value = value.strip()
                if key == "description" and len(value) < 5:
                    raise ValueError("Description must be at least 5 characters")
            elif key == "payment_method":
                value = value.value
            setattr(expense, key, value)

        self.db.flush()
        return expense

    def delete(self, expense_id: int) -> bool:
        expense = self.get_by_id(expense_id)
        if not expense:
            return False
        self.db.delete(expense)
        return True

    def get_categories(self, branch_id: int = None) -> List[str]:
        """Distinct categories already in use"""
        query = self.db.query(Expense.category).distinct()
        if branch_id:
            query = query.filter(Expense.branch_id == branch_id)
        return sorted(row[0] for row in query.all())

    def get_daily_total(self, branch_id: int, on_date: date) -> Decimal:
        total = self.db.query(func.coalesce(func.sum(Expense.amount), 0)).filter(
            Expense.branch_id == branch_id,
            Expense.expense_date == on_date
        ).scalar()
        return Decimal(str(total))

    def get_summary(self, branch_id: int = None, start_date: date = None, end_date: date = None) -> Dict:
        """Expense totals grouped by category and payment method"""
        query = self.db.query(
            Expense.category,
            Expense.payment_method,
            func.count(Expense.id),
            func.coalesce(func.sum(Expense.amount), 0)
        )
        if branch_id:
            query = query.filter(Expense.branch_id == branch_id)
        if start_date:
            query = query.filter(Expense.expense_date >= start_date)
        if end_date:
            query = query.filter(Expense.expense_date <= end_date)

        by_category: Dict[str, Decimal] = {}
        by_payment_method = {m.value: Decimal("0") for m in PaymentMethod}
        count = 0
        total = Decimal("0")
        for category, method, n, amount in query.group_by(Expense.category, Expense.payment_method).all():
            amount = Decimal(str(amount))
            by_category[category] = by_category.get(category, Decimal("0")) + amount
            by_payment_method[method] = by_payment_method.get(method, Decimal("0")) + amount
            count += n
            total += amount

        return {
            "count": count,
            "total": total,
            "by_category": by_category,
            "by_payment_method": by_payment_method,
        }
