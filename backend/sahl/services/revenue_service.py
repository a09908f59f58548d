"""
Revenue Service - daily revenue documents and their employee contributions
"""
from typing import Optional, List, Dict
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func
from decimal import Decimal
from datetime import date
import logging

from sahl.core.config import settings
from sahl.models import Revenue, RevenueContribution
from sahl.schemas import RevenueCreate

logger = logging.getLogger(__name__)


def validate_revenue(data: RevenueCreate, tolerance: Decimal = None,
                     min_reason_length: int = None) -> Optional[str]:
    """
    Check the money fields of a revenue document against each other.

    Contributions must add up to the total. Cash plus network must add up to
    the total too, unless a mismatch reason is given. Returns the mismatch
    reason to store (None when the payments match).
    """
    if tolerance is None:
        tolerance = Decimal(str(settings.AMOUNT_TOLERANCE))
    if min_reason_length is None:
        min_reason_length = settings.MISMATCH_REASON_MIN_LENGTH

    total = data.total_amount
    contributions_total = sum((c.amount for c in data.employee_contributions), Decimal("0"))
    if abs(contributions_total - total) > tolerance:
        raise ValueError(
            f"Employee contributions ({float(contributions_total):,.2f}) "
            f"must equal the total amount ({float(total):,.2f})"
        )

    payments_total = data.cash_amount + data.network_amount
    if abs(payments_total - total) <= tolerance:
        return None

    reason = (data.mismatch_reason or "").strip()
    if len(reason) < min_reason_length:
        raise ValueError(
            f"Cash and network ({float(payments_total):,.2f}) do not match the total amount "
            f"({float(total):,.2f}); a mismatch reason of at least {min_reason_length} characters is required"
        )
    return reason


class RevenueService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, revenue_id: int) -> Optional[Revenue]:
        return self.db.query(Revenue)\
            .options(joinedload(Revenue.employee_contributions))\
            .filter(Revenue.id == revenue_id)\
            .first()

    def get_all(self, branch_id: int = None, on_date: date = None,
                start_date: date = None, end_date: date = None) -> List[Revenue]:
        """Revenues, newest first, optionally for one branch and date range"""
        query = self.db.query(Revenue).options(joinedload(Revenue.employee_contributions))
        if branch_id:
            query = query.filter(Revenue.branch_id == branch_id)
        if on_date:
            query = query.filter(Revenue.revenue_date == on_date)
        if start_date:
            query = query.filter(Revenue.revenue_date >= start_date)
        if end_date:
            query = query.filter(Revenue.revenue_date <= end_date)
        return query.order_by(Revenue.revenue_date.desc(), Revenue.id.desc()).all()

    def get_next_number(self) -> str:
        """
        Get next revenue document number.

        Follows the highest numeric REV- suffix in use; hand-entered numbers
        such as REV-A7 are skipped.
        """
        numbers = self.db.query(Revenue.document_number).filter(
            Revenue.document_number.like("REV-%")
        ).all()

        highest = 0
        for (document_number,) in numbers:
            suffix = document_number[len("REV-"):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))

        return f"REV-{highest + 1:05d}"

    def create(self, revenue_data: RevenueCreate, branch_id: int, created_by_id: int = None) -> Revenue:
        mismatch_reason = validate_revenue(revenue_data)

        document_number = revenue_data.document_number or self.get_next_number()
        if self.db.query(Revenue).filter(Revenue.document_number == document_number).first():
            raise ValueError(f"Document number '{document_number}' already exists")

        total = revenue_data.total_amount
        revenue = Revenue(
            document_number=document_number,
            revenue_date=revenue_data.revenue_date,
            amount=total + revenue_data.discount,
            discount=revenue_data.discount,
            total_after_discount=total,
            cash_amount=revenue_data.cash_amount,
            network_amount=revenue_data.network_amount,
            description=revenue_data.description,
            mismatch_reason=mismatch_reason,
            branch_id=branch_id,
            created_by_id=created_by_id
        )
        for contribution in revenue_data.employee_contributions:
            revenue.employee_contributions.append(RevenueContribution(
                employee_name=contribution.name,
                amount=contribution.amount
            ))

        self.db.add(revenue)
        self.db.flush()
        logger.info(f"Revenue {revenue.document_number} recorded for branch {branch_id}: {float(total):,.2f}")
        return revenue

    def update(self, revenue_id: int, revenue_data: RevenueCreate) -> Optional[Revenue]:
        """Replace the money fields and contributions of an existing document"""
        revenue = self.get_by_id(revenue_id)
        if not revenue:
            return None

        mismatch_reason = validate_revenue(revenue_data)

        if revenue_data.document_number and revenue_data.document_number != revenue.document_number:
            taken = self.db.query(Revenue).filter(
                Revenue.document_number == revenue_data.document_number,
                Revenue.id != revenue.id
            ).first()
            if taken:
                raise ValueError(f"Document number '{revenue_data.document_number}' already exists")
            revenue.document_number = revenue_data.document_number

        total = revenue_data.total_amount
        revenue.revenue_date = revenue_data.revenue_date
        revenue.amount = total + revenue_data.discount
        revenue.discount = revenue_data.discount
        revenue.total_after_discount = total
        revenue.cash_amount = revenue_data.cash_amount
        revenue.network_amount = revenue_data.network_amount
        revenue.description = revenue_data.description
        revenue.mismatch_reason = mismatch_reason

        revenue.employee_contributions.clear()
        self.db.flush()
        for contribution in revenue_data.employee_contributions:
            revenue.employee_contributions.append(RevenueContribution(
                employee_name=contribution.name,
                amount=contribution.amount
            ))

        self.db.flush()
        return revenue

    def delete(self, revenue_id: int) -> bool:
        revenue = self.get_by_id(revenue_id)
        if not revenue:
            return False
        self.db.delete(revenue)
        return True

    def get_daily_totals(self, branch_id: int, on_date: date) -> Dict[str, Decimal]:
        """Revenue, cash and network sums for one branch and day"""
        row = self.db.query(
            func.coalesce(func.sum(Revenue.total_after_discount), 0),
            func.coalesce(func.sum(Revenue.cash_amount), 0),
            func.coalesce(func.sum(Revenue.network_amount), 0)
        ).filter(
            Revenue.branch_id == branch_id,
            Revenue.revenue_date == on_date
        ).one()
        return {
            "total": Decimal(str(row[0])),
            "cash": Decimal(str(row[1])),
            "network": Decimal(str(row[2])),
        }

    def get_summary(self, branch_id: int = None, on_date: date = None,
                    start_date: date = None, end_date: date = None) -> Dict:
        """
        Totals over the matching revenues.

        is_mismatched is set when cash plus network differs from the total by
        more than the configured tolerance.
        """
        tolerance = Decimal(str(settings.AMOUNT_TOLERANCE))
        revenues = self.get_all(branch_id=branch_id, on_date=on_date, start_date=start_date, end_date=end_date)

        total = Decimal("0")
        discount = Decimal("0")
        cash = Decimal("0")
        network = Decimal("0")
        by_employee: Dict[str, Decimal] = {}
        for revenue in revenues:
            total += revenue.total_after_discount or 0
            discount += revenue.discount or 0
            cash += revenue.cash_amount or 0
            network += revenue.network_amount or 0
            for contribution in revenue.employee_contributions:
                by_employee[contribution.employee_name] = \
                    by_employee.get(contribution.employee_name, Decimal("0")) + contribution.amount

        return {
            "count": len(revenues),
            "total": total,
            "discount": discount,
            "cash": cash,
            "network": network,
            "is_mismatched": abs(cash + network - total) > tolerance,
            "by_employee": by_employee,
        }
