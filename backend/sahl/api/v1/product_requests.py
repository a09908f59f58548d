"""
Product Requests API Routes
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
    ProductRequestCreate, ProductRequestResponse, RequestReview, ReviewNotes,
    RequestStatusEnum, MessageResponse
)
from sahl.services.product_request_service import ProductRequestService
from sahl.services.audit_service import AuditService, AuditAction

router = APIRouter(prefix="/product-requests", tags=["Product Requests"])


def _change_status(db: Session, request_id: int, target: str, reviewer, admin_notes: Optional[str]):
    request_service = ProductRequestService(db)
    request = request_service.get_by_id(request_id)
    if not request:
        raise HTTPException(status_code=404, detail="Product request not found")

    old_status = request.status
    try:
        request = request_service.change_status(request_id, target, reviewer, admin_notes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log(
        action=AuditAction.STATUS_CHANGED,
        resource_type="ProductRequest",
        resource_id=request.id,
        description=f"Product request {request.request_number}: {old_status} -> {target}",
        old_values={"status": old_status},
        new_values={"status": target, "admin_notes": admin_notes},
        user=reviewer,
        branch_id=request.branch_id
    )
    db.commit()
    return request_service.get_by_id(request_id)


@router.get("", response_model=List[ProductRequestResponse],
            dependencies=[Depends(PermissionChecker("product_requests", "view"))])
async def list_product_requests(
    branch_id: int = None,
    status: RequestStatusEnum = None,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return ProductRequestService(db).get_visible(
        current_user,
        branch_id=resolve_branch_scope(current_user, branch_id),
        status=status.value if status else None
    )


@router.get("/{request_id}", response_model=ProductRequestResponse,
            dependencies=[Depends(PermissionChecker("product_requests", "view"))])
async def get_product_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    request_service = ProductRequestService(db)
    request = request_service.get_by_id(request_id)
    if not request:
        raise HTTPException(status_code=404, detail="Product request not found")
    ensure_branch_access(current_user, request.branch_id)
    if not request_service.can_view(current_user, request):
        raise HTTPException(status_code=404, detail="Product request not found")
    return request


@router.post("", response_model=ProductRequestResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(PermissionChecker("product_requests", "create"))])
async def create_product_request(
    request_data: ProductRequestCreate,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Raise a product request with its line items"""
    branch_id = resolve_target_branch(current_user, request_data.branch_id)

    request_service = ProductRequestService(db)
    try:
        request = request_service.create(request_data, current_user, branch_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log(
        action=AuditAction.CREATE,
        resource_type="ProductRequest",
        resource_id=request.id,
        description=f"Product request {request.request_number} raised",
        new_values={"grand_total": float(request.grand_total), "items": len(request.items)},
        user=current_user,
        branch_id=branch_id
    )
    db.commit()
    return request_service.get_by_id(request.id)


@router.patch("/{request_id}", response_model=ProductRequestResponse)
async def review_product_request(
    request_id: int,
    review: RequestReview,
    db: Session = Depends(get_db),
    current_user = Depends(require_admin)
):
    return _change_status(db, request_id, review.status.value, current_user, review.admin_notes)


@router.post("/{request_id}/review", response_model=ProductRequestResponse)
async def mark_in_review(
    request_id: int,
    notes: ReviewNotes = None,
    db: Session = Depends(get_db),
    current_user = Depends(require_admin)
):
    return _change_status(
        db, request_id, RequestStatus.IN_REVIEW.value, current_user, notes.admin_notes if notes else None
    )


@router.post("/{request_id}/approve", response_model=ProductRequestResponse)
async def approve_product_request(
    request_id: int,
    notes: ReviewNotes = None,
    db: Session = Depends(get_db),
    current_user = Depends(require_admin)
):
    return _change_status(
        db, request_id, RequestStatus.APPROVED.value, current_user, notes.admin_notes if notes else None
    )


@router.post("/{request_id}/reject", response_model=ProductRequestResponse)
async def reject_product_request(
    request_id: int,
    notes: ReviewNotes = None,
    db: Session = Depends(get_db),
    current_user = Depends(require_admin)
):
    return _change_status(
        db, request_id, RequestStatus.REJECTED.value, current_user, notes.admin_notes if notes else None
    )


@router.delete("/{request_id}", response_model=MessageResponse)
async def delete_product_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    request_service = ProductRequestService(db)
    request = request_service.get_by_id(request_id)
    if not request:
        raise HTTPException(status_code=404, detail="Product request not found")
    if not request_service.can_delete(current_user, request):
        raise HTTPException(status_code=403, detail="Only pending requests can be deleted by their owner")

    AuditService(db).log(
        action=AuditAction.DELETE,
        resource_type="ProductRequest",
        resource_id=request.id,
        description=f"Product request {request.request_number} deleted",
        user=current_user,
        branch_id=request.branch_id
    )
    request_service.delete(request_id)
    db.commit()
    return {"success": True, "message": "Product request deleted successfully"}
