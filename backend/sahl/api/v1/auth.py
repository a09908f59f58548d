"""
Authentication API Routes
"""
from fastapi import APIRouter, Depends, status, Response, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from datetime import timedelta

from sahl.core.database import get_db
from sahl.core.security import create_user_token, get_current_user
from sahl.core.config import settings
from sahl.schemas import LoginRequest, LoginResponse, LoginUser, UserResponse, MessageResponse
from sahl.services.user_service import UserService
from sahl.services.audit_service import AuditService, AuditAction

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_client_info(request: Request) -> tuple:
    """Extract client IP and user agent from request"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    elif request.client:
        ip_address = request.client.host
    else:
        ip_address = "unknown"

    user_agent = request.headers.get("User-Agent", "")[:500]
    return ip_address, user_agent


@router.post("/login", response_model=LoginResponse)
async def login(
    login_data: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """Login and get access token"""
    user_service = UserService(db)
    audit_service = AuditService(db)

    ip_address, user_agent = get_client_info(request)

    user = user_service.get_by_email(login_data.email)

    if not user or not user.is_active or not user_service.verify_password(user, login_data.password):
        audit_service.log_login_attempt(
            email=login_data.email,
            user_id=user.id if user else None,
            ip_address=ip_address,
            user_agent=user_agent,
            success=False
        )
        db.commit()

        # Same answer for unknown email, disabled account and wrong password
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"success": False, "error": "Invalid credentials"}
        )

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_user_token(user, expires_delta=access_token_expires)

    user_service.record_login(user)
    audit_service.log_login_attempt(
        email=user.email,
        user_id=user.id,
        ip_address=ip_address,
        user_agent=user_agent,
        success=True
    )
    audit_service.log(
        action=AuditAction.LOGIN,
        resource_type="User",
        resource_id=user.id,
        description=f"User '{user.email}' logged in",
        user=user,
        branch_id=user.branch_id
    )

    db.commit()

    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        max_age=int(access_token_expires.total_seconds()),
        samesite="lax",
        secure=settings.is_production
    )

    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        user=LoginUser.model_validate(user)
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Logout and clear token"""
    AuditService(db).log(
        action=AuditAction.LOGOUT,
        resource_type="User",
        resource_id=current_user.id,
        description=f"User '{current_user.email}' logged out",
        user=current_user,
        branch_id=current_user.branch_id
    )
    db.commit()

    response.delete_cookie(key="access_token")
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user = Depends(get_current_user)
):
    """Get current user info"""
    return current_user
