"""
HR Requests API Routes - leave, advance, resignation and overtime requests
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from sahl.core.database import get_db
from sahl.core.security import (
    get_current_user, PermissionChecker, require_admin,
    resolve_branch_scope, resolve_target_branch, ensure_branch_access
)
from sahl.models import RequestStatus
from sahl.schemas import (
    EmployeeRequestCreate, EmployeeRequestResponse, RequestReview, ReviewNotes,
    RequestStatusEnum, RequestTypeEnum, MessageResponse
)
from sahl.services.request_service import RequestService
from sahl.services.audit_service import AuditService, AuditAction

router = APIRouter(prefix="/requests", tags=["HR Requests"])


def _change_status(db: Session, request_id: int, target: str, reviewer, admin_notes: Optional[str]):
    request_service = RequestService(db)
    request = request_service.get_by_id(request_id)
    if not request:
        raise HTTPException(status_code=404, detail="Request not found")

    old_status = request.status
    try:
        request = request_service.change_status(request_id, target, reviewer, admin_notes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log(
        action=AuditAction.STATUS_CHANGED,
        resource_type="EmployeeRequest",
        resource_id=request.id,
        description=f"{request.type} request of {request.employee_name}: {old_status} -> {target}",
        old_values={"status": old_status},
        new_values={"status": target, "admin_notes": admin_notes},
        user=reviewer,
        branch_id=request.branch_id
    )
    db.commit()
    db.refresh(request)
    return request


@router.get("", response_model=List[EmployeeRequestResponse],
            dependencies=[Depends(PermissionChecker("requests", "view"))])
async def list_requests(
    branch_id: int = None,
    status: RequestStatusEnum = None,
    type: RequestTypeEnum = None,
    user_id: int = None,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """List requests; employees only see their own"""
    return RequestService(db).get_visible(
        current_user,
        branch_id=resolve_branch_scope(current_user, branch_id),
        status=status.value if status else None,
        request_type=type.value if type else None,
        user_id=user_id
    )


@router.get("/{request_id}", response_model=EmployeeRequestResponse,
            dependencies=[Depends(PermissionChecker("requests", "view"))])
async def get_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    request_service = RequestService(db)
    request = request_service.get_by_id(request_id)
    if not request:
        raise HTTPException(status_code=404, detail="Request not found")
    ensure_branch_access(current_user, request.branch_id)
    if not request_service.can_view(current_user, request):
        raise HTTPException(status_code=404, detail="Request not found")
    return request


@router.post("", response_model=EmployeeRequestResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(PermissionChecker("requests", "create"))])
async def create_request(
    request_data: EmployeeRequestCreate,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Submit a request on behalf of the caller"""
    branch_id = resolve_target_branch(current_user, request_data.branch_id)

    try:
        request = RequestService(db).create(request_data, current_user, branch_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log(
        action=AuditAction.CREATE,
        resource_type="EmployeeRequest",
        resource_id=request.id,
        description=f"{request.type} request submitted by {request.employee_name}",
        user=current_user,
        branch_id=branch_id
    )
    db.commit()
    db.refresh(request)
    return request


@router.patch("/{request_id}", response_model=EmployeeRequestResponse)
async def review_request(
    request_id: int,
    review: RequestReview,
    db: Session = Depends(get_db),
    current_user = Depends(require_admin)
):
    """Move a request to another status"""
    return _change_status(db, request_id, review.status.value, current_user, review.admin_notes)


@router.post("/{request_id}/review", response_model=EmployeeRequestResponse)
async def mark_in_review(
    request_id: int,
    notes: ReviewNotes = None,
    db: Session = Depends(get_db),
    current_user = Depends(require_admin)
):
    return _change_status(
        db, request_id, RequestStatus.IN_REVIEW.value, current_user, notes.admin_notes if notes else None
    )


@router.post("/{request_id}/approve", response_model=EmployeeRequestResponse)
async def approve_request(
    request_id: int,
    notes: ReviewNotes = None,
    db: Session = Depends(get_db),
    current_user = Depends(require_admin)
):
    return _change_status(
        db, request_id, RequestStatus.APPROVED.value, current_user, notes.admin_notes if notes else None
    )


@router.post("/{request_id}/reject", response_model=EmployeeRequestResponse)
async def reject_request(
    request_id: int,
    notes: ReviewNotes = None,
    db: Session = Depends(get_db),
    current_user = Depends(require_admin)
):
    return _change_status(
        db, request_id, RequestStatus.REJECTED.value, current_user, notes.admin_notes if notes else None
    )


@router.delete("/{request_id}", response_model=MessageResponse)
async def delete_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Admins may delete any request, owners only while it is pending"""
    request_service = RequestService(db)
    request = request_service.get_by_id(request_id)
    if not request:
        raise HTTPException(status_code=404, detail="Request not found")
    if not request_service.can_delete(current_user, request):
        raise HTTPException(status_code=403, detail="Only pending requests can be deleted by their owner")

    AuditService(db).log(
        action=AuditAction.DELETE,
        resource_type="EmployeeRequest",
        resource_id=request.id,
        description=f"{request.type} request of {request.employee_name} deleted",
        old_values={"status": request.status},
        user=current_user,
        branch_id=request.branch_id
    )
    request_service.delete(request_id)
    db.commit()
    return {"success": True, "message": "Request deleted successfully"}
