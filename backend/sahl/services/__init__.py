# Services Package
from sahl.services.user_service import UserService
from sahl.services.branch_service import BranchService, seed_branches
from sahl.services.audit_service import AuditService, AuditAction
from sahl.services.revenue_service import RevenueService, validate_revenue
from sahl.services.expense_service import ExpenseService
from sahl.services.bonus_service import (
    BonusService, BonusRuleService, calculate_bonus, calculate_monthly_bonus
)
from sahl.services.workflow import InvalidTransitionError, apply_transition
from sahl.services.request_service import RequestService
from sahl.services.product_request_service import ProductRequestService
from sahl.services.daily_closing_service import DailyClosingService
from sahl.services.report_service import ReportService

__all__ = [
    'UserService',
    'BranchService',
    'seed_branches',
    'AuditService',
    'AuditAction',
    'RevenueService',
    'validate_revenue',
    'ExpenseService',
    'BonusService',
    'BonusRuleService',
    'calculate_bonus',
    'calculate_monthly_bonus',
    'InvalidTransitionError',
    'apply_transition',
    'RequestService',
    'ProductRequestService',
    'DailyClosingService',
    'ReportService',
]
