"""
Revenues API Routes
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List
from datetime import date

from sahl.core.database import get_db
from sahl.core.security import (
    get_current_user, PermissionChecker, resolve_branch_scope, resolve_target_branch, ensure_branch_access
)
from sahl.schemas import RevenueCreate, RevenueResponse, MessageResponse
from sahl.services.revenue_service import RevenueService
from sahl.services.audit_service import AuditService, AuditAction

router = APIRouter(prefix="/revenues", tags=["Revenues"])


def _audit_values(revenue) -> dict:
    return {
        "document_number": revenue.document_number,
        "revenue_date": revenue.revenue_date,
        "total_amount": float(revenue.total_after_discount),
        "cash_amount": float(revenue.cash_amount),
        "network_amount": float(revenue.network_amount),
        "employee_contributions": [
            {"name": c.employee_name, "amount": float(c.amount)} for c in revenue.employee_contributions
        ],
    }


@router.get("", response_model=List[RevenueResponse], dependencies=[Depends(PermissionChecker("revenues", "view"))])
async def list_revenues(
    branch_id: int = None,
    on_date: date = Query(None, alias="date"),
    start_date: date = None,
    end_date: date = None,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """List revenues, newest first"""
    return RevenueService(db).get_all(
        branch_id=resolve_branch_scope(current_user, branch_id),
        on_date=on_date,
        start_date=start_date,
        end_date=end_date
    )


@router.get("/summary", dependencies=[Depends(PermissionChecker("revenues", "view"))])
async def get_revenue_summary(
    branch_id: int = None,
    on_date: date = Query(None, alias="date"),
    start_date: date = None,
    end_date: date = None,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Totals, payment split and per-employee income"""
    summary = RevenueService(db).get_summary(
        branch_id=resolve_branch_scope(current_user, branch_id),
        on_date=on_date,
        start_date=start_date,
        end_date=end_date
    )
    return {
        "count": summary["count"],
        "total": float(summary["total"]),
        "discount": float(summary["discount"]),
        "cash": float(summary["cash"]),
        "network": float(summary["network"]),
        "is_mismatched": summary["is_mismatched"],
        "by_employee": [
            {"employee_name": name, "amount": float(amount)}
            for name, amount in sorted(summary["by_employee"].items())
        ],
    }


@router.get("/{revenue_id}", response_model=RevenueResponse,
            dependencies=[Depends(PermissionChecker("revenues", "view"))])
async def get_revenue(
    revenue_id: int,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    revenue = RevenueService(db).get_by_id(revenue_id)
    if not revenue:
        raise HTTPException(status_code=404, detail="Revenue not found")
    ensure_branch_access(current_user, revenue.branch_id)
    return revenue


@router.post("", response_model=RevenueResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(PermissionChecker("revenues", "edit"))])
async def create_revenue(
    revenue_data: RevenueCreate,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Record a revenue document"""
    branch_id = resolve_target_branch(current_user, revenue_data.branch_id)

    revenue_service = RevenueService(db)
    try:
        revenue = revenue_service.create(revenue_data, branch_id, created_by_id=current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log(
        action=AuditAction.REVENUE_RECORDED,
        resource_type="Revenue",
        resource_id=revenue.id,
        description=f"Revenue {revenue.document_number} recorded",
        new_values=_audit_values(revenue),
        user=current_user,
        branch_id=branch_id
    )
    db.commit()
    return revenue_service.get_by_id(revenue.id)


@router.put("/{revenue_id}", response_model=RevenueResponse,
            dependencies=[Depends(PermissionChecker("revenues", "edit"))])
async def update_revenue(
    revenue_id: int,
    revenue_data: RevenueCreate,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Replace a revenue document; contributions are replaced as a whole"""
    revenue_service = RevenueService(db)
    revenue = revenue_service.get_by_id(revenue_id)
    if not revenue:
        raise HTTPException(status_code=404, detail="Revenue not found")
    ensure_branch_access(current_user, revenue.branch_id)

    old_values = _audit_values(revenue)
    try:
        revenue = revenue_service.update(revenue_id, revenue_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log(
        action=AuditAction.UPDATE,
        resource_type="Revenue",
        resource_id=revenue.id,
        description=f"Revenue {revenue.document_number} updated",
        old_values=old_values,
        new_values=_audit_values(revenue),
        user=current_user,
        branch_id=revenue.branch_id
    )
    db.commit()
    return revenue_service.get_by_id(revenue.id)


@router.delete("/{revenue_id}", response_model=MessageResponse,
               dependencies=[Depends(PermissionChecker("revenues", "edit"))])
async def delete_revenue(
    revenue_id: int,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    revenue_service = RevenueService(db)
    revenue = revenue_service.get_by_id(revenue_id)
    if not revenue:
        raise HTTPException(status_code=404, detail="Revenue not found")
    ensure_branch_access(current_user, revenue.branch_id)

    AuditService(db).log(
        action=AuditAction.DELETE,
        resource_type="Revenue",
        resource_id=revenue.id,
        description=f"Revenue {revenue.document_number} deleted",
        old_values=_audit_values(revenue),
        user=current_user,
        branch_id=revenue.branch_id
    )
    revenue_service.delete(revenue_id)
    db.commit()
    return {"success": True, "message": "Revenue deleted successfully"}
