"""
Permission Service - role/flag based authorization and branch isolation

Everything here is a pure function of the user record: no database access.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from sahl.models import UserRole


# Permission ids are "<resource>_<action>"
PERMISSIONS: Dict[str, str] = {
    "revenues_view": "View revenues",
    "revenues_edit": "Create, edit and delete revenues",
    "expenses_view": "View expenses",
    "expenses_edit": "Create, edit and delete expenses",
    "bonus_view": "View bonus calculations and rules",
    "bonus_edit": "Edit bonus rules and save bonus records",
    "reports_view": "View and export reports",
    "users_manage": "Manage users",
    "requests_view": "View HR requests",
    "requests_create": "Submit HR requests",
    "product_requests_view": "View product requests",
    "product_requests_create": "Submit product requests",
    "daily_closings_view": "View daily closings",
    "daily_closings_edit": "Record daily closings",
}

DEFAULT_ROLE_PERMISSIONS: Dict[str, List[str]] = {
    UserRole.ADMIN.value: list(PERMISSIONS),
    UserRole.MANAGER.value: [
        "revenues_view", "revenues_edit",
        "expenses_view",
        "bonus_view",
        "reports_view",
        "requests_view", "requests_create",
        "product_requests_view", "product_requests_create",
        "daily_closings_view", "daily_closings_edit",
    ],
    UserRole.EMPLOYEE.value: [
        "revenues_view",
        "expenses_view",
        "requests_view", "requests_create",
        "product_requests_view", "product_requests_create",
    ],
}


@dataclass
class AccessDecision:
    allowed: bool
    error: Optional[str] = None
    detail: Dict = field(default_factory=dict)


def permission_id(resource: str, action: str) -> str:
    return f"{resource}_{action}"


def is_admin(user) -> bool:
    return user.role == UserRole.ADMIN.value


def has_permission(user, resource: str, action: str) -> bool:
    """Check if user holds the permission flag for (resource, action)"""
    if is_admin(user):
        return True
    return permission_id(resource, action) in (user.permissions or [])


def can_access_branch(user, branch_id: Optional[int]) -> bool:
    """Admins reach every branch, everyone else only their own"""
    if is_admin(user):
        return True
    return branch_id is not None and user.branch_id == branch_id


def check_access(user, resource: str, action: str, branch_id: Optional[int] = None) -> AccessDecision:
    """Combined permission and branch check"""
    if is_admin(user):
        return AccessDecision(allowed=True)

    if not has_permission(user, resource, action):
        return AccessDecision(
            allowed=False,
            error="Permission denied",
            detail={"required": permission_id(resource, action)}
        )

    if branch_id is not None and not can_access_branch(user, branch_id):
        return AccessDecision(
            allowed=False,
            error="Cannot access this branch",
            detail={"userBranch": user.branch_id, "requestedBranch": branch_id}
        )

    return AccessDecision(allowed=True)


def default_permissions_for(role: str) -> List[str]:
    return list(DEFAULT_ROLE_PERMISSIONS.get(role, []))


def normalize_permissions(permissions: Iterable[str]) -> List[str]:
    """De-duplicate while keeping order; unknown ids are an error"""
    result = []
    for perm in permissions:
        if perm not in PERMISSIONS:
            raise ValueError(f"Unknown permission: {perm}")
        if perm not in result:
            result.append(perm)
    return result
