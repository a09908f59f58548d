"""
Pydantic Schemas for API Validation
"""
from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator
from typing import List, Optional
from datetime import datetime, date
from decimal import Decimal
from enum import Enum


# ==================== ENUMS ====================

class UserRoleEnum(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class RequestTypeEnum(str, Enum):
    LEAVE = "leave"
    ADVANCE = "advance"
    RESIGNATION = "resignation"
    OVERTIME = "overtime"


class RequestStatusEnum(str, Enum):
    PENDING = "pending"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentMethodEnum(str, Enum):
    CASH = "cash"
    NETWORK = "network"


# ==================== COMMON ====================

class MessageResponse(BaseModel):
    success: bool = True
    message: str


# ==================== AUTH SCHEMAS ====================

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginUser(BaseModel):
    id: int
    email: str
    name: str
    role: str
    branch_id: Optional[int] = None
    permissions: List[str] = []

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    user: LoginUser


# ==================== BRANCH SCHEMAS ====================

class BranchCreate(BaseModel):
    code: str = Field(..., min_length=2, max_length=50, pattern=r"^[a-z0-9_-]+$")
    name: str = Field(..., min_length=2, max_length=255)


class BranchResponse(BaseModel):
    id: int
    code: str
    name: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


# ==================== USER SCHEMAS ====================

class UserBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    role: UserRoleEnum = UserRoleEnum.EMPLOYEE
    branch_id: Optional[int] = None
    title: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)


class UserCreate(UserBase):
    password: str = Field(..., min_length=6)
    permissions: Optional[List[str]] = None
    is_active: bool = True


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    role: Optional[UserRoleEnum] = None
    branch_id: Optional[int] = None
    title: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    permissions: Optional[List[str]] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(None, min_length=6)


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    branch_id: Optional[int] = None
    branch_code: Optional[str] = None
    permissions: List[str] = []
    title: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== REVENUE SCHEMAS ====================

class EmployeeContribution(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Employee name is required")
        return value


class RevenueCreate(BaseModel):
    document_number: Optional[str] = Field(None, max_length=50)
    revenue_date: date
    total_amount: Decimal = Field(..., gt=0)
    discount: Decimal = Field(default=Decimal("0.00"), ge=0)
    cash_amount: Decimal = Field(default=Decimal("0.00"), ge=0)
    network_amount: Decimal = Field(default=Decimal("0.00"), ge=0)
    employee_contributions: List[EmployeeContribution] = Field(..., min_length=1, max_length=5)
    description: Optional[str] = None
    mismatch_reason: Optional[str] = None
    branch_id: Optional[int] = None


class ContributionResponse(BaseModel):
    name: str
    amount: float

    model_config = ConfigDict(from_attributes=True)


class RevenueResponse(BaseModel):
    id: int
    document_number: str
    revenue_date: date
    amount: float
    discount: float
    total_amount: float
    total_after_discount: float
    cash_amount: float
    network_amount: float
    employee_contributions: List[ContributionResponse] = []
    description: Optional[str] = None
    mismatch_reason: Optional[str] = None
    branch_id: int
    created_by_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== EXPENSE SCHEMAS ====================

class ExpenseBase(BaseModel):
    expense_date: date
    category: str = Field(..., min_length=2, max_length=100)
    description: str = Field(..., min_length=5)
    amount: Decimal = Field(..., gt=0)
    payment_method: PaymentMethodEnum = PaymentMethodEnum.CASH


class ExpenseCreate(ExpenseBase):
    branch_id: Optional[int] = None


class ExpenseUpdate(BaseModel):
    expense_date: Optional[date] = None
    category: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, min_length=5)
    amount: Optional[Decimal] = Field(None, gt=0)
    payment_method: Optional[PaymentMethodEnum] = None


class ExpenseResponse(BaseModel):
    id: int
    receipt_number: str
    expense_date: date
    category: str
    description: Optional[str] = None
    amount: float
    payment_method: str
    branch_id: int
    created_by_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== BONUS SCHEMAS ====================

class BonusRuleBase(BaseModel):
    weekly_income_threshold: Decimal = Field(..., ge=0)
    bonus_amount: Decimal = Field(..., ge=0)


class BonusRuleCreate(BonusRuleBase):
    branch_id: int


class BonusRuleUpdate(BaseModel):
    weekly_income_threshold: Optional[Decimal] = Field(None, ge=0)
    bonus_amount: Optional[Decimal] = Field(None, ge=0)


class BonusRuleSetReplace(BaseModel):
    branch_id: int
    rules: List[BonusRuleBase]


class BonusRuleResponse(BaseModel):
    id: int
    branch_id: int
    weekly_income_threshold: float
    bonus_amount: float

    model_config = ConfigDict(from_attributes=True)


class BonusPeriod(BaseModel):
    period: str
    start_day: int
    end_day: int
    income: float
    bonus: float
    prorated: bool = False


class EmployeeBonus(BaseModel):
    employee_name: str
    total_income: float
    total_bonus: float
    periods: List[BonusPeriod]


class BonusCalculationResponse(BaseModel):
    branch_id: int
    year: int
    month: int
    total_revenue: float
    total_bonus: float
    employees: List[EmployeeBonus]


class BonusRecordCreate(BaseModel):
    branch_id: int
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    employee_name: Optional[str] = None


class BonusRecordResponse(BaseModel):
    id: int
    branch_id: int
    employee_name: str
    year: int
    month: int
    total_income: float
    amount: float
    breakdown: Optional[list] = None
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== REQUEST SCHEMAS ====================

class EmployeeRequestCreate(BaseModel):
    type: RequestTypeEnum
    reason: Optional[str] = None
    branch_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    amount: Optional[Decimal] = None
    last_working_day: Optional[date] = None
    overtime_date: Optional[date] = None
    hours: Optional[Decimal] = None


class RequestReview(BaseModel):
    status: RequestStatusEnum
    admin_notes: Optional[str] = None


class ReviewNotes(BaseModel):
    admin_notes: Optional[str] = None


class EmployeeRequestResponse(BaseModel):
    id: int
    type: str
    status: str
    reason: Optional[str] = None
    user_id: Optional[int] = None
    employee_name: str
    branch_id: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    amount: Optional[float] = None
    last_working_day: Optional[date] = None
    overtime_date: Optional[date] = None
    hours: Optional[float] = None
    admin_notes: Optional[str] = None
    reviewed_by_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    submitted_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== PRODUCT REQUEST SCHEMAS ====================

class ProductRequestItemCreate(BaseModel):
    product_name: str = Field(..., min_length=1, max_length=255)
    quantity: Decimal = Field(..., gt=0)
    price: Decimal = Field(..., ge=0)


class ProductRequestCreate(BaseModel):
    request_date: Optional[date] = None
    branch_id: Optional[int] = None
    items: List[ProductRequestItemCreate] = Field(..., min_length=1)
    notes: Optional[str] = None


class ProductRequestItemResponse(BaseModel):
    id: int
    product_name: str
    quantity: float
    price: float
    total: float

    model_config = ConfigDict(from_attributes=True)


class ProductRequestResponse(BaseModel):
    id: int
    request_number: str
    request_date: date
    status: str
    user_id: Optional[int] = None
    employee_name: str
    branch_id: int
    total_quantity: float
    grand_total: float
    notes: Optional[str] = None
    items: List[ProductRequestItemResponse] = []
    admin_notes: Optional[str] = None
    reviewed_by_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== DAILY CLOSING SCHEMAS ====================

class DailyClosingCreate(BaseModel):
    closing_date: date
    branch_id: Optional[int] = None
    actual_cash: Decimal = Field(default=Decimal("0.00"), ge=0)
    actual_bank: Decimal = Field(default=Decimal("0.00"), ge=0)
    notes: Optional[str] = None


class DailyClosingUpdate(BaseModel):
    actual_cash: Optional[Decimal] = Field(None, ge=0)
    actual_bank: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None


class DailyTotals(BaseModel):
    closing_date: date
    branch_id: int
    total_revenue: float
    total_expenses: float
    net_profit: float
    system_cash: float
    system_bank: float


class DailyClosingResponse(BaseModel):
    id: int
    closing_date: date
    branch_id: int
    total_revenue: float
    total_expenses: float
    net_profit: float
    system_cash: float
    system_bank: float
    actual_cash: float
    actual_bank: float
    difference: float
    status: str
    notes: Optional[str] = None
    created_by_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
