"""
Request Service - HR requests (leave, advance, resignation, overtime)
"""
from decimal import Decimal
from typing import Optional, List
from sqlalchemy.orm import Session

from sahl.models import EmployeeRequest, RequestStatus, RequestType, User, UserRole
from sahl.schemas import EmployeeRequestCreate
from sahl.services.workflow import apply_transition

MAX_OVERTIME_HOURS = Decimal("24")


def validate_request(data: EmployeeRequestCreate):
    """Check the fields each request type needs"""
    request_type = data.type.value

    if request_type == RequestType.LEAVE.value:
        if not data.start_date or not data.end_date:
            raise ValueError("Leave requests need a start date and an end date")
        if data.end_date < data.start_date:
            raise ValueError("End date cannot be before start date")

    elif request_type == RequestType.ADVANCE.value:
        if data.amount is None or data.amount <= 0:
            raise ValueError("Advance requests need an amount greater than zero")

    elif request_type == RequestType.RESIGNATION.value:
        if not data.last_working_day:
            raise ValueError("Resignation requests need a last working day")

    elif request_type == RequestType.OVERTIME.value:
        if not data.overtime_date:
            raise ValueError("Overtime requests need an overtime date")
        if data.hours is None or data.hours <= 0 or data.hours > MAX_OVERTIME_HOURS:
            raise ValueError("Overtime hours must be greater than 0 and at most 24")


class RequestService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, request_id: int) -> Optional[EmployeeRequest]:
        return self.db.query(EmployeeRequest).filter(EmployeeRequest.id == request_id).first()

    def get_all(self, branch_id: int = None, user_id: int = None, status: str = None,
                request_type: str = None) -> List[EmployeeRequest]:
        query = self.db.query(EmployeeRequest)
        if branch_id:
            query = query.filter(EmployeeRequest.branch_id == branch_id)
        if user_id:
            query = query.filter(EmployeeRequest.user_id == user_id)
        if status:
            query = query.filter(EmployeeRequest.status == status)
        if request_type:
            query = query.filter(EmployeeRequest.type == request_type)
        return query.order_by(EmployeeRequest.submitted_at.desc(), EmployeeRequest.id.desc()).all()

    def get_visible(self, user: User, branch_id: int = None, status: str = None,
                    request_type: str = None, user_id: int = None) -> List[EmployeeRequest]:
        """Employees only ever see their own requests"""
        if user.role == UserRole.EMPLOYEE.value:
            user_id = user.id
        return self.get_all(branch_id=branch_id, user_id=user_id, status=status, request_type=request_type)

    def can_view(self, user: User, request: EmployeeRequest) -> bool:
        if user.role == UserRole.EMPLOYEE.value:
            return request.user_id == user.id
        return True

    def create(self, request_data: EmployeeRequestCreate, user: User, branch_id: int) -> EmployeeRequest:
        validate_request(request_data)

        request = EmployeeRequest(
            type=request_data.type.value,
            status=RequestStatus.PENDING.value,
            reason=request_data.reason,
            user_id=user.id,
            employee_name=user.name,
            branch_id=branch_id,
            start_date=request_data.start_date,
            end_date=request_data.end_date,
            amount=request_data.amount,
            last_working_day=request_data.last_working_day,
            overtime_date=request_data.overtime_date,
            hours=request_data.hours
        )
        self.db.add(request)
        self.db.flush()
        return request

    def change_status(self, request_id: int, status: str, reviewer: User,
                      admin_notes: str = None) -> Optional[EmployeeRequest]:
        request = self.get_by_id(request_id)
        if not request:
            return None
        apply_transition(request, status, reviewer, admin_notes)
        self.db.flush()
        return request

    def can_delete(self, user: User, request: EmployeeRequest) -> bool:
        if user.is_admin:
            return True
        return request.user_id == user.id and request.status == RequestStatus.PENDING.value

    def delete(self, request_id: int) -> bool:
        request = self.get_by_id(request_id)
        if not request:
            return False
        self.db.delete(request)
        return True
