"""
Expenses API Routes
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from datetime import date

from sahl.core.database import get_db
from sahl.core.security import (
    get_current_user, PermissionChecker, resolve_branch_scope, resolve_target_branch, ensure_branch_access
)
from sahl.schemas import ExpenseCreate, ExpenseUpdate, ExpenseResponse, MessageResponse
from sahl.services.expense_service import ExpenseService
from sahl.services.audit_service import AuditService, AuditAction

router = APIRouter(prefix="/expenses", tags=["Expenses"])

DEFAULT_CATEGORIES = [
    "Rent",
    "Utilities",
    "Salaries",
    "Supplies",
    "Maintenance",
    "Transport",
    "Miscellaneous",
]


@router.get("", response_model=List[ExpenseResponse], dependencies=[Depends(PermissionChecker("expenses", "view"))])
async def list_expenses(
    branch_id: int = None,
    category: str = None,
    start_date: date = None,
    end_date: date = None,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """List expenses, newest first"""
    return ExpenseService(db).get_all(
        branch_id=resolve_branch_scope(current_user, branch_id),
        category=category,
        start_date=start_date,
        end_date=end_date
    )


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(PermissionChecker("expenses", "edit"))])
async def create_expense(
    expense_data: ExpenseCreate,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Create a new expense"""
    branch_id = resolve_target_branch(current_user, expense_data.branch_id)

    expense_service = ExpenseService(db)
    try:
        expense = expense_service.create(expense_data, branch_id, created_by_id=current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log(
        action=AuditAction.EXPENSE_RECORDED,
        resource_type="Expense",
        resource_id=expense.id,
        description=f"Expense {expense.receipt_number} recorded",
        new_values={
            "category": expense.category,
            "amount": float(expense.amount),
            "payment_method": expense.payment_method,
        },
        user=current_user,
        branch_id=branch_id
    )
    db.commit()
    db.refresh(expense)
    return expense


@router.get("/categories", dependencies=[Depends(PermissionChecker("expenses", "view"))])
async def list_expense_categories(
    branch_id: int = None,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """List expense categories"""
    categories = ExpenseService(db).get_categories(resolve_branch_scope(current_user, branch_id))

    # Suggest common categories until some are in use
    if not categories:
        categories = DEFAULT_CATEGORIES

    return {"categories": categories}


@router.get("/summary", dependencies=[Depends(PermissionChecker("expenses", "view"))])
async def get_expense_summary(
    branch_id: int = None,
    start_date: date = None,
    end_date: date = None,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Get expense summary by category"""
    summary = ExpenseService(db).get_summary(
        branch_id=resolve_branch_scope(current_user, branch_id),
        start_date=start_date,
        end_date=end_date
    )
    return {
        "count": summary["count"],
        "total": float(summary["total"]),
        "by_category": [
            {"category": category, "amount": float(amount)}
            for category, amount in sorted(summary["by_category"].items())
        ],
        "by_payment_method": {k: float(v) for k, v in summary["by_payment_method"].items()},
    }


@router.get("/{expense_id}", response_model=ExpenseResponse,
            dependencies=[Depends(PermissionChecker("expenses", "view"))])
async def get_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    expense = ExpenseService(db).get_by_id(expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    ensure_branch_access(current_user, expense.branch_id)
    return expense


@router.put("/{expense_id}", response_model=ExpenseResponse,
            dependencies=[Depends(PermissionChecker("expenses", "edit"))])
async def update_expense(
    expense_id: int,
    expense_data: ExpenseUpdate,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Update an expense"""
    expense_service = ExpenseService(db)
    expense = expense_service.get_by_id(expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    ensure_branch_access(current_user, expense.branch_id)

    old_values = {
        "category": expense.category,
        "amount": float(expense.amount),
        "payment_method": expense.payment_method,
    }
    try:
        expense = expense_service.update(expense_id, expense_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log(
        action=AuditAction.UPDATE,
        resource_type="Expense",
        resource_id=expense.id,
        description=f"Expense {expense.receipt_number} updated",
        old_values=old_values,
        new_values=expense_data.model_dump(exclude_unset=True),
        user=current_user,
        branch_id=expense.branch_id
    )
    db.commit()
    db.refresh(expense)
    return expense


@router.delete("/{expense_id}", response_model=MessageResponse,
               dependencies=[Depends(PermissionChecker("expenses", "edit"))])
async def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Delete an expense"""
    expense_service = ExpenseService(db)
    expense = expense_service.get_by_id(expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    ensure_branch_access(current_user, expense.branch_id)

    AuditService(db).log(
        action=AuditAction.DELETE,
        resource_type="Expense",
        resource_id=expense.id,
        description=f"Expense {expense.receipt_number} deleted",
        old_values={"category": expense.category, "amount": float(expense.amount)},
        user=current_user,
        branch_id=expense.branch_id
    )
    expense_service.delete(expense_id)
    db.commit()
    return {"success": True, "message": "Expense deleted successfully"}
