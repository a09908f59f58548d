"""
User Service - Business Logic for User Operations
"""
from datetime import datetime
from typing import Optional, List
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from sahl.models import User, Branch, UserRole
from sahl.schemas import UserCreate, UserUpdate
from sahl.core.security import get_password_hash, verify_password
from sahl.services.permission_service import default_permissions_for, normalize_permissions


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User)\
            .options(joinedload(User.branch))\
            .filter(User.id == user_id)\
            .first()

    def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup"""
        return self.db.query(User)\
            .filter(func.lower(User.email) == email.strip().lower())\
            .first()

    def get_all(self, branch_id: int = None, role: str = None, is_active: bool = None) -> List[User]:
        query = self.db.query(User).options(joinedload(User.branch))
        if branch_id:
            query = query.filter(User.branch_id == branch_id)
        if role:
            query = query.filter(User.role == role)
        if is_active is not None:
            query = query.filter(User.is_active == is_active)
        return query.order_by(User.name).all()

    def count(self) -> int:
        return self.db.query(func.count(User.id)).scalar() or 0

    def _check_branch(self, branch_id: Optional[int]):
        if branch_id is None:
            return
        if not self.db.query(Branch).filter(Branch.id == branch_id).first():
            raise ValueError("Branch not found")

    def create(self, user_data: UserCreate) -> User:
        if self.get_by_email(user_data.email):
            raise ValueError("Email already registered")

        role = user_data.role.value
        if role != UserRole.ADMIN.value and user_data.branch_id is None:
            raise ValueError("branch_id is required for non-admin users")
        self._check_branch(user_data.branch_id)

        if user_data.permissions is None:
            permissions = default_permissions_for(role)
        else:
            permissions = normalize_permissions(user_data.permissions)

        user = User(
            name=user_data.name,
            email=user_data.email.lower(),
            hashed_password=get_password_hash(user_data.password),
            role=role,
            branch_id=user_data.branch_id,
            permissions=permissions,
            title=user_data.title,
            phone=user_data.phone,
            is_active=user_data.is_active
        )
        self.db.add(user)
        self.db.flush()
        return user

    def update(self, user_id: int, user_data: UserUpdate) -> Optional[User]:
        user = self.get_by_id(user_id)
        if not user:
            return None

        update_data = user_data.model_dump(exclude_unset=True)

        if "email" in update_data and update_data["email"]:
            existing = self.get_by_email(update_data["email"])
            if existing and existing.id != user.id:
                raise ValueError("Email already registered")
            update_data["email"] = update_data["email"].lower()

        if "branch_id" in update_data:
            self._check_branch(update_data["branch_id"])

        password = update_data.pop("password", None)
        if password:
            user.hashed_password = get_password_hash(password)

        role = update_data.pop("role", None)
        if role is not None:
            user.role = role.value
            # Role change without explicit flags resets them to the role defaults
            if update_data.get("permissions") is None:
                update_data["permissions"] = default_permissions_for(user.role)

        if update_data.get("permissions") is not None:
            update_data["permissions"] = normalize_permissions(update_data["permissions"])
        else:
            update_data.pop("permissions", None)

        for key, value in update_data.items():
            setattr(user, key, value)

        if user.role != UserRole.ADMIN.value and user.branch_id is None:
            raise ValueError("branch_id is required for non-admin users")

        self.db.flush()
        return user

    def deactivate(self, user_id: int) -> Optional[User]:
        user = self.get_by_id(user_id)
        if not user:
            return None
        user.is_active = False
        self.db.flush()
        return user

    def verify_password(self, user: User, password: str) -> bool:
        return verify_password(password, user.hashed_password)

    def record_login(self, user: User):
        user.last_login = datetime.utcnow()
        self.db.flush()

    def ensure_admin(self, email: str, password: str, name: str) -> Optional[User]:
        """Create the bootstrap admin when the users table is empty"""
        if self.count() > 0:
            return None
        user = User(
            name=name,
            email=email.lower(),
            hashed_password=get_password_hash(password),
            role=UserRole.ADMIN.value,
            permissions=default_permissions_for(UserRole.ADMIN.value),
            is_active=True
        )
        self.db.add(user)
        self.db.flush()
        return user
