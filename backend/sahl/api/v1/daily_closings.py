"""
Daily Closings API Routes
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session
from typing import List
from datetime import date

from sahl.core.database import get_db
from sahl.core.security import (
    get_current_user, PermissionChecker, resolve_branch_scope, resolve_target_branch, ensure_branch_access
)
from sahl.schemas import DailyClosingCreate, DailyClosingUpdate, DailyClosingResponse, DailyTotals
from sahl.services.daily_closing_service import DailyClosingService
from sahl.services.audit_service import AuditService, AuditAction

router = APIRouter(prefix="/daily-closings", tags=["Daily Closings"])


def _closing_values(closing) -> dict:
    return {
        "actual_cash": float(closing.actual_cash),
        "actual_bank": float(closing.actual_bank),
        "difference": float(closing.difference),
        "status": closing.status,
    }


@router.get("", response_model=List[DailyClosingResponse],
            dependencies=[Depends(PermissionChecker("daily_closings", "view"))])
async def list_daily_closings(
    branch_id: int = None,
    closing_date: date = Query(None, alias="date"),
    limit: int = Query(30, ge=1, le=366),
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Latest closings first"""
    return DailyClosingService(db).get_all(
        branch_id=resolve_branch_scope(current_user, branch_id),
        closing_date=closing_date,
        limit=limit
    )


@router.get("/preview", response_model=DailyTotals,
            dependencies=[Depends(PermissionChecker("daily_closings", "view"))])
async def preview_daily_closing(
    closing_date: date = Query(None, alias="date"),
    branch_id: int = None,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """System totals for a day before the actual figures are entered"""
    branch_id = resolve_target_branch(current_user, branch_id)
    return DailyClosingService(db).get_system_totals(branch_id, closing_date or date.today())


@router.get("/{closing_id}", response_model=DailyClosingResponse,
            dependencies=[Depends(PermissionChecker("daily_closings", "view"))])
async def get_daily_closing(
    closing_id: int,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    closing = DailyClosingService(db).get_by_id(closing_id)
    if not closing:
        raise HTTPException(status_code=404, detail="Daily closing not found")
    ensure_branch_access(current_user, closing.branch_id)
    return closing


@router.post("", response_model=DailyClosingResponse,
             dependencies=[Depends(PermissionChecker("daily_closings", "edit"))])
async def save_daily_closing(
    closing_data: DailyClosingCreate,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Create the closing of a day, or refresh it when one already exists"""
    branch_id = resolve_target_branch(current_user, closing_data.branch_id)

    closing, created = DailyClosingService(db).save(closing_data, branch_id, created_by_id=current_user.id)

    AuditService(db).log(
        action=AuditAction.DAILY_CLOSING,
        resource_type="DailyClosing",
        resource_id=closing.id,
        description=f"Daily closing {closing.closing_date} {'created' if created else 'updated'}: {closing.status}",
        new_values=_closing_values(closing),
        user=current_user,
        branch_id=branch_id
    )
    db.commit()
    db.refresh(closing)

    return JSONResponse(
        status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        content=jsonable_encoder(DailyClosingResponse.model_validate(closing))
    )


@router.put("/{closing_id}", response_model=DailyClosingResponse,
            dependencies=[Depends(PermissionChecker("daily_closings", "edit"))])
async def update_daily_closing(
    closing_id: int,
    closing_data: DailyClosingUpdate,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Correct the counted figures; system totals are recomputed"""
    closing_service = DailyClosingService(db)
    closing = closing_service.get_by_id(closing_id)
    if not closing:
        raise HTTPException(status_code=404, detail="Daily closing not found")
    ensure_branch_access(current_user, closing.branch_id)

    old_values = _closing_values(closing)
    closing = closing_service.update(closing_id, closing_data)

    AuditService(db).log(
        action=AuditAction.UPDATE,
        resource_type="DailyClosing",
        resource_id=closing.id,
        old_values=old_values,
        new_values=_closing_values(closing),
        user=current_user,
        branch_id=closing.branch_id
    )
    db.commit()
    db.refresh(closing)
    return closing
