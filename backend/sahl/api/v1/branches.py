"""
Branches API Routes
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from sahl.core.database import get_db
from sahl.core.security import get_current_user, require_admin
from sahl.schemas import BranchCreate, BranchResponse
from sahl.services.branch_service import BranchService
from sahl.services.audit_service import AuditService, AuditAction

router = APIRouter(prefix="/branches", tags=["Branches"])


@router.get("", response_model=List[BranchResponse])
async def list_branches(
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """List branches accessible to the current user"""
    if current_user.is_admin:
        return BranchService(db).get_active()
    return [current_user.branch] if current_user.branch else []


@router.post("", response_model=BranchResponse, status_code=status.HTTP_201_CREATED)
async def create_branch(
    branch_data: BranchCreate,
    db: Session = Depends(get_db),
    current_user = Depends(require_admin)
):
    """Create a branch with the default bonus tiers"""
    try:
        branch = BranchService(db).create(code=branch_data.code, name=branch_data.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log(
        action=AuditAction.CREATE,
        resource_type="Branch",
        resource_id=branch.id,
        description=f"Branch '{branch.code}' created",
        user=current_user,
        branch_id=branch.id
    )
    db.commit()
    db.refresh(branch)
    return branch
