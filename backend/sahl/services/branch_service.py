"""
Branch Service - Business Logic for Branch Operations
"""
from decimal import Decimal
from typing import Optional, List
from sqlalchemy.orm import Session
from sahl.models import Branch, BonusRule

# (weekly income threshold, bonus amount), highest tier first
DEFAULT_BONUS_TIERS = [
    (Decimal("50000"), Decimal("1000")),
    (Decimal("40000"), Decimal("800")),
    (Decimal("30000"), Decimal("600")),
    (Decimal("20000"), Decimal("400")),
    (Decimal("10000"), Decimal("200")),
    (Decimal("0"), Decimal("0")),
]


class BranchService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, branch_id: int) -> Optional[Branch]:
        return self.db.query(Branch).filter(Branch.id == branch_id).first()

    def get_by_code(self, code: str) -> Optional[Branch]:
        return self.db.query(Branch).filter(Branch.code == code).first()

    def get_active(self) -> List[Branch]:
        return self.db.query(Branch).filter(Branch.is_active == True).order_by(Branch.id).all()

    def create(self, code: str, name: str, with_default_rules: bool = True) -> Branch:
        if self.get_by_code(code):
            raise ValueError(f"Branch '{code}' already exists")

        branch = Branch(code=code, name=name, is_active=True)
        self.db.add(branch)
        self.db.flush()

        if with_default_rules:
            for threshold, bonus in DEFAULT_BONUS_TIERS:
                self.db.add(BonusRule(
                    branch_id=branch.id,
                    weekly_income_threshold=threshold,
                    bonus_amount=bonus
                ))
            self.db.flush()
        return branch


def seed_branches(db: Session, codes: List[str]):
    """Create the configured branches (with default bonus tiers) if missing"""
    branch_service = BranchService(db)
    for code in codes:
        if not branch_service.get_by_code(code):
            branch_service.create(code=code, name=code.replace("_", " ").title())
    db.commit()
