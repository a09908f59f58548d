"""
Bonus Rules API Routes - weekly income thresholds per branch
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from sahl.core.database import get_db
from sahl.core.security import get_current_user, PermissionChecker, resolve_target_branch, ensure_branch_access
from sahl.schemas import (
    BonusRuleCreate, BonusRuleUpdate, BonusRuleSetReplace, BonusRuleResponse, MessageResponse
)
from sahl.services.bonus_service import BonusRuleService
from sahl.services.branch_service import BranchService
from sahl.services.audit_service import AuditService, AuditAction

router = APIRouter(prefix="/bonus-rules", tags=["Bonus Rules"])


def _rule_values(rule) -> dict:
    return {
        "weekly_income_threshold": float(rule.weekly_income_threshold),
        "bonus_amount": float(rule.bonus_amount),
    }


@router.get("", response_model=List[BonusRuleResponse],
            dependencies=[Depends(PermissionChecker("bonus", "view"))])
async def list_bonus_rules(
    branch_id: int = None,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Rules of a branch, highest threshold first"""
    branch_id = resolve_target_branch(current_user, branch_id)
    return BonusRuleService(db).get_by_branch(branch_id)


@router.post("", response_model=BonusRuleResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(PermissionChecker("bonus", "edit"))])
async def create_bonus_rule(
    rule_data: BonusRuleCreate,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    branch_id = resolve_target_branch(current_user, rule_data.branch_id)
    if not BranchService(db).get_by_id(branch_id):
        raise HTTPException(status_code=404, detail="Branch not found")

    try:
        rule = BonusRuleService(db).create(branch_id, rule_data.weekly_income_threshold, rule_data.bonus_amount)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log(
        action=AuditAction.CREATE,
        resource_type="BonusRule",
        resource_id=rule.id,
        new_values=_rule_values(rule),
        user=current_user,
        branch_id=branch_id
    )
    db.commit()
    db.refresh(rule)
    return rule


@router.put("", response_model=List[BonusRuleResponse],
            dependencies=[Depends(PermissionChecker("bonus", "edit"))])
async def replace_bonus_rules(
    rule_set: BonusRuleSetReplace,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    """Replace every rule of a branch in one go"""
    branch_id = resolve_target_branch(current_user, rule_set.branch_id)
    if not BranchService(db).get_by_id(branch_id):
        raise HTTPException(status_code=404, detail="Branch not found")

    rule_service = BonusRuleService(db)
    old_rules = [_rule_values(r) for r in rule_service.get_by_branch(branch_id)]
    try:
        rules = rule_service.replace(branch_id, rule_set.rules)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log(
        action=AuditAction.UPDATE,
        resource_type="BonusRule",
        description=f"Bonus rules replaced ({len(rules)} rules)",
        old_values={"rules": old_rules},
        new_values={"rules": [_rule_values(r) for r in rules]},
        user=current_user,
        branch_id=branch_id
    )
    db.commit()
    return rule_service.get_by_branch(branch_id)


@router.put("/{rule_id}", response_model=BonusRuleResponse,
            dependencies=[Depends(PermissionChecker("bonus", "edit"))])
async def update_bonus_rule(
    rule_id: int,
    rule_data: BonusRuleUpdate,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    rule_service = BonusRuleService(db)
    rule = rule_service.get_by_id(rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Bonus rule not found")
    ensure_branch_access(current_user, rule.branch_id)

    old_values = _rule_values(rule)
    try:
        rule = rule_service.update(rule_id, rule_data.weekly_income_threshold, rule_data.bonus_amount)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log(
        action=AuditAction.UPDATE,
        resource_type="BonusRule",
        resource_id=rule.id,
        old_values=old_values,
        new_values=_rule_values(rule),
        user=current_user,
        branch_id=rule.branch_id
    )
    db.commit()
    db.refresh(rule)
    return rule


@router.delete("/{rule_id}", response_model=MessageResponse,
               dependencies=[Depends(PermissionChecker("bonus", "edit"))])
async def delete_bonus_rule(
    rule_id: int,
    db: Session = Depends(get_db),
    current_user = Depends(get_current_user)
):
    rule_service = BonusRuleService(db)
    rule = rule_service.get_by_id(rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Bonus rule not found")
    ensure_branch_access(current_user, rule.branch_id)

    AuditService(db).log(
        action=AuditAction.DELETE,
        resource_type="BonusRule",
        resource_id=rule.id,
        old_values=_rule_values(rule),
        user=current_user,
        branch_id=rule.branch_id
    )
    rule_service.delete(rule_id)
    db.commit()
    return {"success": True, "message": "Bonus rule deleted successfully"}
