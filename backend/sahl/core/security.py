"""
Security Module - Authentication & Authorization
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from sahl.core.config import settings
from sahl.core.database import get_db

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token scheme
bearer_scheme = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password"""
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_user_token(user, expires_delta: Optional[timedelta] = None) -> str:
    """Token carrying the claims the API needs to identify the caller"""
    return create_access_token(
        data={
            "sub": str(user.id),
            "email": user.email,
            "role": user.role,
            "branch_id": user.branch_id,
        },
        expires_delta=expires_delta
    )


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT token"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db)
):
    """
    Dependency to get the current authenticated user from JWT token.
    Supports both Authorization header and cookies.
    """
    from sahl.services.user_service import UserService

    token = None

    if credentials:
        token = credentials.credentials

    if not token:
        token = request.cookies.get("access_token")

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = UserService(db).get_by_id(user_id)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled"
        )

    return user


def _parse_branch_param(raw: Optional[str]) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="branch_id must be an integer"
        )


class PermissionChecker:
    """
    Dependency guarding a (resource, action) pair.

    Admins pass unconditionally. Everyone else needs the matching permission
    flag and, when the request names a branch_id, it has to be their own.
    """

    def __init__(self, resource: str, action: str):
        self.resource = resource
        self.action = action

    def __call__(self, request: Request, user=Depends(get_current_user)):
        from sahl.services.permission_service import check_access

        branch_id = _parse_branch_param(request.query_params.get("branch_id"))
        decision = check_access(user, self.resource, self.action, branch_id)

        if not decision.allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"error": decision.error, **decision.detail}
            )
        return user


async def require_admin(user=Depends(get_current_user)):
    """Dependency for admin-only operations"""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Permission denied", "required": "admin"}
        )
    return user


def resolve_branch_scope(user, branch_id: Optional[int]) -> Optional[int]:
    """
    Branch a query should be restricted to.

    Admins get what they asked for (None means every branch); everyone else
    is pinned to their own branch.
    """
    if user.is_admin:
        return branch_id
    return user.branch_id


def resolve_target_branch(user, branch_id: Optional[int]) -> int:
    """Branch a new record is written to"""
    from sahl.services.permission_service import can_access_branch

    if branch_id is None:
        if user.branch_id is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="branch_id is required"
            )
        return user.branch_id

    if not can_access_branch(user, branch_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Cannot access this branch",
                "userBranch": user.branch_id,
                "requestedBranch": branch_id,
            }
        )
    return branch_id


def ensure_branch_access(user, record_branch_id: int):
    """403 when a non-admin touches a record of another branch"""
    from sahl.services.permission_service import can_access_branch

    if not can_access_branch(user, record_branch_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Cannot access this branch",
                "userBranch": user.branch_id,
                "requestedBranch": record_branch_id,
            }
        )
