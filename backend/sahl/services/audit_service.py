"""
Audit Logging Service
Provides an audit trail for sensitive operations and login attempts
"""
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional, Dict
import json
import logging

from sahl.models import AuditLog, LoginLog

logger = logging.getLogger(__name__)


class AuditAction:
    """Constants for audit actions"""
    # Authentication
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"

    # CRUD Operations
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    # Workflow
    STATUS_CHANGED = "STATUS_CHANGED"

    # Finance
    REVENUE_RECORDED = "REVENUE_RECORDED"
    EXPENSE_RECORDED = "EXPENSE_RECORDED"
    DAILY_CLOSING = "DAILY_CLOSING"
    BONUS_SAVED = "BONUS_SAVED"

    # User Management
    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DEACTIVATED = "USER_DEACTIVATED"


class AuditService:
    """Service for recording and retrieving audit logs"""

    def __init__(self, db: Session):
        self.db = db

    def log(
        self,
        action: str,
        resource_type: str,
        resource_id: Optional[int] = None,
        description: Optional[str] = None,
        old_values: Optional[Dict] = None,
        new_values: Optional[Dict] = None,
        user=None,
        branch_id: Optional[int] = None,
        status: str = "success",
        error_message: Optional[str] = None
    ) -> Optional[AuditLog]:
        """
        Create an audit log entry.

        Args:
            action: The action being performed (use AuditAction constants)
            resource_type: Type of resource being affected (e.g. 'Revenue')
            resource_id: ID of the affected resource
            description: Human-readable description of the action
            old_values: Values before the change (for updates)
            new_values: Values after the change
            user: The acting user, if any
            branch_id: Branch context
            status: 'success' or 'failure'
            error_message: Error message if status is not success

        Returns:
            The created AuditLog instance, or None when it could not be written
        """
        try:
            audit_log = AuditLog(
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                description=description,
                old_values=json.dumps(old_values, default=str) if old_values else None,
                new_values=json.dumps(new_values, default=str) if new_values else None,
                user_id=user.id if user else None,
                user_email=user.email if user else None,
                branch_id=branch_id,
                status=status,
                error_message=error_message
            )
            # Savepoint: a failed insert only rolls back the audit row
            with self.db.begin_nested():
                self.db.add(audit_log)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create audit log: {e}")
            return None

        logger.info(
            f"Audit: {action} {resource_type}(id={resource_id}) "
            f"by user={user.email if user else None} branch={branch_id} status={status}"
        )
        return audit_log

    def log_login_attempt(
        self,
        email: Optional[str],
        user_id: Optional[int],
        ip_address: Optional[str],
        user_agent: Optional[str],
        success: bool
    ) -> LoginLog:
        """Record a login attempt"""
        entry = LoginLog(
            email=email,
            user_id=user_id,
            ip_address=ip_address,
            user_agent=(user_agent or "")[:500],
            success=success
        )
        self.db.add(entry)
        self.db.flush()

        if success:
            logger.info(f"Login succeeded for user_id={user_id} ip={ip_address}")
        else:
            logger.warning(f"Login failed for email={email} ip={ip_address}")
        return entry
