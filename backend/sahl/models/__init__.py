"""
SQLAlchemy Models for Sahl
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Date, Numeric,
    ForeignKey, Index, UniqueConstraint, JSON
)
from sqlalchemy.orm import relationship
import enum

from sahl.core.database import Base


# ==================== ENUMS ====================

class UserRole(enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class RequestType(enum.Enum):
    LEAVE = "leave"
    ADVANCE = "advance"
    RESIGNATION = "resignation"
    OVERTIME = "overtime"


class RequestStatus(enum.Enum):
    PENDING = "pending"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentMethod(enum.Enum):
    CASH = "cash"
    NETWORK = "network"


class ClosingStatus(enum.Enum):
    BALANCED = "balanced"
    SURPLUS = "surplus"
    SHORTAGE = "shortage"


# ==================== CORE MODELS ====================

class Branch(Base):
    """Retail location, the unit of data isolation"""
    __tablename__ = 'branches'

    id = Column(Integer, primary_key=True)
    code = Column(String(50), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    users = relationship("User", back_populates="branch")
    revenues = relationship("Revenue", back_populates="branch")
    expenses = relationship("Expense", back_populates="branch")
    bonus_rules = relationship("BonusRule", back_populates="branch", cascade="all, delete-orphan")


class User(Base):
    """User account"""
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.EMPLOYEE.value)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='SET NULL'), nullable=True)
    permissions = Column(JSON, nullable=False, default=list)
    title = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    branch = relationship("Branch", back_populates="users")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def branch_code(self):
        return self.branch.code if self.branch else None


class LoginLog(Base):
    """Every login attempt, successful or not"""
    __tablename__ = 'login_logs'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    email = Column(String(255), nullable=True)
    ip_address = Column(String(50), nullable=True)
    user_agent = Column(String(500), nullable=True)
    success = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User")

    __table_args__ = (
        Index('ix_login_logs_user_id', 'user_id'),
    )


# ==================== FINANCIAL MODELS ====================

class Revenue(Base):
    """Daily revenue document"""
    __tablename__ = 'revenues'

    id = Column(Integer, primary_key=True)
    document_number = Column(String(50), nullable=False, unique=True)
    revenue_date = Column(Date, nullable=False)
    amount = Column(Numeric(15, 2), default=Decimal("0.00"))  # gross, before discount
    discount = Column(Numeric(15, 2), default=Decimal("0.00"))
    total_after_discount = Column(Numeric(15, 2), default=Decimal("0.00"))
    cash_amount = Column(Numeric(15, 2), default=Decimal("0.00"))
    network_amount = Column(Numeric(15, 2), default=Decimal("0.00"))
    description = Column(Text, nullable=True)
    mismatch_reason = Column(Text, nullable=True)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    created_by_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    branch = relationship("Branch", back_populates="revenues")
    created_by = relationship("User")
    employee_contributions = relationship(
        "RevenueContribution",
        back_populates="revenue",
        cascade="all, delete-orphan",
        order_by="RevenueContribution.id"
    )

    __table_args__ = (
        Index('ix_revenues_branch_date', 'branch_id', 'revenue_date'),
    )

    @property
    def total_amount(self):
        return self.total_after_discount


class RevenueContribution(Base):
    """A named employee's share of a revenue document"""
    __tablename__ = 'revenue_contributions'

    id = Column(Integer, primary_key=True)
    revenue_id = Column(Integer, ForeignKey('revenues.id', ondelete='CASCADE'), nullable=False)
    employee_name = Column(String(255), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)

    revenue = relationship("Revenue", back_populates="employee_contributions")

    @property
    def name(self):
        return self.employee_name


class Expense(Base):
    """Expense record"""
    __tablename__ = 'expenses'

    id = Column(Integer, primary_key=True)
    receipt_number = Column(String(50), nullable=False, unique=True)
    expense_date = Column(Date, nullable=False)
    category = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    amount = Column(Numeric(15, 2), default=Decimal("0.00"))
    payment_method = Column(String(20), default=PaymentMethod.CASH.value)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    created_by_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    branch = relationship("Branch", back_populates="expenses")
    created_by = relationship("User")

    __table_args__ = (
        Index('ix_expenses_branch_date', 'branch_id', 'expense_date'),
    )


class DailyClosing(Base):
    """End-of-day cash/bank reconciliation for a branch"""
    __tablename__ = 'daily_closings'

    id = Column(Integer, primary_key=True)
    closing_date = Column(Date, nullable=False)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    total_revenue = Column(Numeric(15, 2), default=Decimal("0.00"))
    total_expenses = Column(Numeric(15, 2), default=Decimal("0.00"))
    net_profit = Column(Numeric(15, 2), default=Decimal("0.00"))
    system_cash = Column(Numeric(15, 2), default=Decimal("0.00"))
    system_bank = Column(Numeric(15, 2), default=Decimal("0.00"))
    actual_cash = Column(Numeric(15, 2), default=Decimal("0.00"))
    actual_bank = Column(Numeric(15, 2), default=Decimal("0.00"))
    difference = Column(Numeric(15, 2), default=Decimal("0.00"))
    status = Column(String(20), default=ClosingStatus.BALANCED.value)
    notes = Column(Text, nullable=True)
    created_by_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    branch = relationship("Branch")
    created_by = relationship("User")

    __table_args__ = (
        UniqueConstraint('closing_date', 'branch_id', name='uq_daily_closing_branch_date'),
    )


# ==================== BONUS MODELS ====================

class BonusRule(Base):
    """Weekly income threshold and the bonus it pays"""
    __tablename__ = 'bonus_rules'

    id = Column(Integer, primary_key=True)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    weekly_income_threshold = Column(Numeric(15, 2), nullable=False)
    bonus_amount = Column(Numeric(15, 2), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    branch = relationship("Branch", back_populates="bonus_rules")

    __table_args__ = (
        UniqueConstraint('branch_id', 'weekly_income_threshold', name='uq_bonus_rule_threshold'),
    )


class BonusRecord(Base):
    """Saved monthly bonus for one employee"""
    __tablename__ = 'bonus_records'

    id = Column(Integer, primary_key=True)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    employee_name = Column(String(255), nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    total_income = Column(Numeric(15, 2), default=Decimal("0.00"))
    amount = Column(Numeric(15, 2), default=Decimal("0.00"))
    breakdown = Column(JSON, nullable=True)
    status = Column(String(20), default=RequestStatus.PENDING.value)
    created_by_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    branch = relationship("Branch")

    __table_args__ = (
        UniqueConstraint('branch_id', 'employee_name', 'year', 'month', name='uq_bonus_record_period'),
    )


# ==================== REQUEST MODELS ====================

class EmployeeRequest(Base):
    """HR request: leave, advance, resignation or overtime"""
    __tablename__ = 'employee_requests'

    id = Column(Integer, primary_key=True)
    type = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default=RequestStatus.PENDING.value)
    reason = Column(Text, nullable=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    employee_name = Column(String(255), nullable=False)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)

    # Type-specific fields
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    amount = Column(Numeric(15, 2), nullable=True)
    last_working_day = Column(Date, nullable=True)
    overtime_date = Column(Date, nullable=True)
    hours = Column(Numeric(5, 2), nullable=True)

    # Review
    admin_notes = Column(Text, nullable=True)
    reviewed_by_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)

    submitted_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", foreign_keys=[user_id])
    reviewed_by = relationship("User", foreign_keys=[reviewed_by_id])
    branch = relationship("Branch")

    __table_args__ = (
        Index('ix_employee_requests_branch_status', 'branch_id', 'status'),
    )


class ProductRequest(Base):
    """Purchase request for products raised by a branch"""
    __tablename__ = 'product_requests'

    id = Column(Integer, primary_key=True)
    request_number = Column(String(50), nullable=False, unique=True)
    request_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=RequestStatus.PENDING.value)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    employee_name = Column(String(255), nullable=False)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    total_quantity = Column(Numeric(15, 2), default=Decimal("0.00"))
    grand_total = Column(Numeric(15, 2), default=Decimal("0.00"))
    notes = Column(Text, nullable=True)

    admin_notes = Column(Text, nullable=True)
    reviewed_by_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", foreign_keys=[user_id])
    reviewed_by = relationship("User", foreign_keys=[reviewed_by_id])
    branch = relationship("Branch")
    items = relationship(
        "ProductRequestItem",
        back_populates="product_request",
        cascade="all, delete-orphan",
        order_by="ProductRequestItem.id"
    )


class ProductRequestItem(Base):
    """Line item of a product request"""
    __tablename__ = 'product_request_items'

    id = Column(Integer, primary_key=True)
    product_request_id = Column(Integer, ForeignKey('product_requests.id', ondelete='CASCADE'), nullable=False)
    product_name = Column(String(255), nullable=False)
    quantity = Column(Numeric(15, 2), nullable=False)
    price = Column(Numeric(15, 2), nullable=False)
    total = Column(Numeric(15, 2), nullable=False)

    product_request = relationship("ProductRequest", back_populates="items")


# ==================== AUDIT ====================

class AuditLog(Base):
    """Audit trail for sensitive operations"""
    __tablename__ = 'audit_logs'

    id = Column(Integer, primary_key=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Who performed the action
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    user_email = Column(String(255), nullable=True)  # kept in case the user row goes away

    # What action was performed
    action = Column(String(50), nullable=False)
    resource_type = Column(String(100), nullable=False)
    resource_id = Column(Integer, nullable=True)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='SET NULL'), nullable=True)

    # Details
    description = Column(Text, nullable=True)
    old_values = Column(Text, nullable=True)  # JSON string
    new_values = Column(Text, nullable=True)  # JSON string

    status = Column(String(20), default='success')  # success, failure
    error_message = Column(Text, nullable=True)

    __table_args__ = (
        Index('ix_audit_logs_timestamp', 'timestamp'),
        Index('ix_audit_logs_resource', 'resource_type', 'resource_id'),
    )


# ==================== EXPORT ALL MODELS ====================

__all__ = [
    # Enums
    'UserRole', 'RequestType', 'RequestStatus', 'PaymentMethod', 'ClosingStatus',
    # Core
    'Branch', 'User', 'LoginLog',
    # Financial
    'Revenue', 'RevenueContribution', 'Expense', 'DailyClosing',
    # Bonus
    'BonusRule', 'BonusRecord',
    # Requests
    'EmployeeRequest', 'ProductRequest', 'ProductRequestItem',
    # Audit
    'AuditLog',
]
