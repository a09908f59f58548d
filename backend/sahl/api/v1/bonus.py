"""
Bonus API Routes - monthly bonus calculation and saved bonus records
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List
from datetime import date

from sahl.core.database import get_db
from sahl.core.security import get_current_user, PermissionChecker, resolve_branch_scope, resolve_target_branch
from sahl.schemas import BonusCalculationResponse, BonusRecordCreate, BonusRecordResponse
from sahl.services.bonus_service import BonusService
from sahl.services.branch_service import BranchService
from sahl.services.audit_service import AuditService, AuditAction

router = APIRouter(prefix="/bonus", tags=["Bonus"])


def _check_branch(db: Session, branch_id: int):
    if not BranchService(db).get_by_id(branch_id):
        raise HTTPException(status_code=404, detail="Branch not found")


@router.get("", response_model=BonusCalculationResponse,
            dependencies=[Depends(PermissionChecker("bonus", "view"))])
async def calculate_bonus(
    branch_id: int = None,
    month: int = Query(None, ge=1, le=12),
    year: int = Query(None, ge=2000, le=2100),
    employee_name: str = None,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Weekly bonus breakdown per employee for one branch and month"""
    today = date.today()
    branch_id = resolve_target_branch(current_user, branch_id)
    _check_branch(db, branch_id)

    return BonusService(db).calculate_for_branch(
        branch_id=branch_id,
        year=year or today.year,
        month=month or today.month,
        employee_name=employee_name.strip() if employee_name else None
    )


@router.post("", response_model=List[BonusRecordResponse], status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(PermissionChecker("bonus", "edit"))])
async def save_bonus(
    record_data: BonusRecordCreate,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Compute and store the monthly bonus of every employee (or one)"""
    branch_id = resolve_target_branch(current_user, record_data.branch_id)
    _check_branch(db, branch_id)

    records = BonusService(db).save_records(
        branch_id=branch_id,
        year=record_data.year,
        month=record_data.month,
        employee_name=record_data.employee_name,
        created_by_id=current_user.id
    )

    AuditService(db).log(
        action=AuditAction.BONUS_SAVED,
        resource_type="BonusRecord",
        description=f"Bonus saved for {record_data.year}-{record_data.month:02d} ({len(records)} employees)",
        new_values={r.employee_name: float(r.amount) for r in records},
        user=current_user,
        branch_id=branch_id
    )
    db.commit()
    for record in records:
        db.refresh(record)
    return records


@router.get("/records", response_model=List[BonusRecordResponse],
            dependencies=[Depends(PermissionChecker("bonus", "view"))])
async def list_bonus_records(
    branch_id: int = None,
    year: int = None,
    month: int = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Saved bonus records, latest period first"""
    return BonusService(db).get_records(
        branch_id=resolve_branch_scope(current_user, branch_id),
        year=year,
        month=month
    )
