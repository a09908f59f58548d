"""
Users API Routes - admin-only account management
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from sahl.core.database import get_db
from sahl.core.security import require_admin
from sahl.schemas import UserCreate, UserUpdate, UserResponse, UserRoleEnum
from sahl.services.user_service import UserService
from sahl.services.audit_service import AuditService, AuditAction

router = APIRouter(prefix="/users", tags=["Users"], dependencies=[Depends(require_admin)])


@router.get("", response_model=List[UserResponse])
async def list_users(
    branch_id: int = None,
    role: UserRoleEnum = None,
    is_active: bool = None,
    db: Session = Depends(get_db)
):
    """List users"""
    return UserService(db).get_all(
        branch_id=branch_id,
        role=role.value if role else None,
        is_active=is_active
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: Session = Depends(get_db)
):
    user = UserService(db).get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user = Depends(require_admin)
):
    """Create a new user"""
    user_service = UserService(db)
    try:
        user = user_service.create(user_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log(
        action=AuditAction.USER_CREATED,
        resource_type="User",
        resource_id=user.id,
        description=f"User '{user.email}' created with role '{user.role}'",
        new_values={"email": user.email, "role": user.role, "branch_id": user.branch_id},
        user=current_user,
        branch_id=user.branch_id
    )
    db.commit()
    db.refresh(user)
    return user


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user = Depends(require_admin)
):
    """Update a user"""
    user_service = UserService(db)
    try:
        user = user_service.update(user_id, user_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    AuditService(db).log(
        action=AuditAction.USER_UPDATED,
        resource_type="User",
        resource_id=user.id,
        description=f"User '{user.email}' updated",
        new_values=user_data.model_dump(exclude_unset=True, exclude={"password"}),
        user=current_user,
        branch_id=user.branch_id
    )
    db.commit()
    db.refresh(user)
    return user


@router.delete("/{user_id}", response_model=UserResponse)
async def deactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user = Depends(require_admin)
):
    """Deactivate a user; accounts are never hard-deleted"""
    if user_id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")

    user = UserService(db).deactivate(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    AuditService(db).log(
        action=AuditAction.USER_DEACTIVATED,
        resource_type="User",
        resource_id=user.id,
        description=f"User '{user.email}' deactivated",
        user=current_user,
        branch_id=user.branch_id
    )
    db.commit()
    db.refresh(user)
    return user
