# API v1 Package
from sahl.api.v1 import (
    auth, users, branches, revenues, expenses, bonus, bonus_rules,
    requests, product_requests, daily_closings, reports
)

__all__ = [
    'auth',
    'users',
    'branches',
    'revenues',
    'expenses',
    'bonus',
    'bonus_rules',
    'requests',
    'product_requests',
    'daily_closings',
    'reports',
]
