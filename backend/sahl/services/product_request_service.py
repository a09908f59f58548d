"""
Product Request Service - branch purchase requests with line items
"""
from datetime import date
from decimal import Decimal
from typing import Optional, List
from sqlalchemy.orm import Session, joinedload

from sahl.models import ProductRequest, ProductRequestItem, RequestStatus, User, UserRole
from sahl.schemas import ProductRequestCreate
from sahl.services.workflow import apply_transition


class ProductRequestService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, request_id: int) -> Optional[ProductRequest]:
        return self.db.query(ProductRequest)\
            .options(joinedload(ProductRequest.items))\
            .filter(ProductRequest.id == request_id)\
            .first()

    def get_all(self, branch_id: int = None, status: str = None, user_id: int = None) -> List[ProductRequest]:
        query = self.db.query(ProductRequest).options(joinedload(ProductRequest.items))
        if branch_id:
            query = query.filter(ProductRequest.branch_id == branch_id)
        if status:
            query = query.filter(ProductRequest.status == status)
        if user_id:
            query = query.filter(ProductRequest.user_id == user_id)
        return query.order_by(ProductRequest.request_date.desc(), ProductRequest.id.desc()).all()

    def get_visible(self, user: User, branch_id: int = None, status: str = None) -> List[ProductRequest]:
        user_id = user.id if user.role == UserRole.EMPLOYEE.value else None
        return self.get_all(branch_id=branch_id, status=status, user_id=user_id)

    def can_view(self, user: User, request: ProductRequest) -> bool:
        if user.role == UserRole.EMPLOYEE.value:
            return request.user_id == user.id
        return True

    def get_next_number(self) -> str:
        """Get next product request number"""
        last_request = self.db.query(ProductRequest).order_by(ProductRequest.id.desc()).first()

        if last_request:
            try:
                num = int(last_request.request_number.replace("PR-", ""))
                return f"PR-{num + 1:05d}"
            except ValueError:
                pass

        return "PR-00001"

    def create(self, request_data: ProductRequestCreate, user: User, branch_id: int) -> ProductRequest:
        request = ProductRequest(
            request_number=self.get_next_number(),
            request_date=request_data.request_date or date.today(),
            status=RequestStatus.PENDING.value,
            user_id=user.id,
            employee_name=user.name,
            branch_id=branch_id,
            notes=request_data.notes
        )

        total_quantity = Decimal("0")
        grand_total = Decimal("0")
        for item_data in request_data.items:
            line_total = item_data.quantity * item_data.price
            request.items.append(ProductRequestItem(
                product_name=item_data.product_name.strip(),
                quantity=item_data.quantity,
                price=item_data.price,
                total=line_total
            ))
            total_quantity += item_data.quantity
            grand_total += line_total

        request.total_quantity = total_quantity
        request.grand_total = grand_total

        self.db.add(request)
        self.db.flush()
        return request

    def change_status(self, request_id: int, status: str, reviewer: User,
                      admin_notes: str = None) -> Optional[ProductRequest]:
        request = self.get_by_id(request_id)
        if not request:
            return None
        apply_transition(request, status, reviewer, admin_notes)
        self.db.flush()
        return request

    def can_delete(self, user: User, request: ProductRequest) -> bool:
        if user.is_admin:
            return True
        return request.user_id == user.id and request.status == RequestStatus.PENDING.value

    def delete(self, request_id: int) -> bool:
        request = self.get_by_id(request_id)
        if not request:
            return False
        self.db.delete(request)
        return True
