"""
Approval workflow shared by HR requests and product requests

    pending   -> in_review | approved | rejected
    in_review -> approved | rejected
    approved, rejected: terminal
"""
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from sahl.models import RequestStatus


ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    RequestStatus.PENDING.value: frozenset({
        RequestStatus.IN_REVIEW.value,
        RequestStatus.APPROVED.value,
        RequestStatus.REJECTED.value,
    }),
    RequestStatus.IN_REVIEW.value: frozenset({
        RequestStatus.APPROVED.value,
        RequestStatus.REJECTED.value,
    }),
    RequestStatus.APPROVED.value: frozenset(),
    RequestStatus.REJECTED.value: frozenset(),
}


class InvalidTransitionError(ValueError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change status from '{current}' to '{target}'")


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def is_terminal(status: str) -> bool:
    return not ALLOWED_TRANSITIONS.get(status)


def apply_transition(record, target: str, reviewer, notes: Optional[str] = None,
                     now: Optional[datetime] = None):
    """
    Move record to target status and stamp the review metadata.

    Raises InvalidTransitionError for anything outside ALLOWED_TRANSITIONS,
    which includes re-applying the current status.
    """
    if not can_transition(record.status, target):
        raise InvalidTransitionError(record.status, target)

    record.status = target
    record.admin_notes = notes
    record.reviewed_by_id = reviewer.id
    record.reviewed_at = now or datetime.utcnow()
    return record
