"""Leave application status state machine.

``transition`` is the only code that assigns ``LeaveApplication.status``
after creation. PENDING may move to APPROVED, REJECTED or CANCELLED; every
other status is terminal.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from hrms.common.audit import utcnow
from hrms.common.constants import DECISION_STATUSES, LeaveStatus
from hrms.common.exceptions import (
    InternalErrorException,
    InvalidTransitionException,
    ValidationException,
)
from hrms.leave.models import LeaveApplication

ALLOWED_TRANSITIONS: dict[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.PENDING: frozenset(
        {LeaveStatus.APPROVED, LeaveStatus.REJECTED, LeaveStatus.CANCELLED}
    ),
    LeaveStatus.APPROVED: frozenset(),
    LeaveStatus.REJECTED: frozenset(),
    LeaveStatus.CANCELLED: frozenset(),
}


def can_transition(current: LeaveStatus, target: LeaveStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: LeaveStatus, target: LeaveStatus) -> None:
    """Raise ``InvalidTransitionException`` unless current → target is legal."""
    if not can_transition(current, target):
        raise InvalidTransitionException(current, target)


def transition(
    application: LeaveApplication,
    target: LeaveStatus,
    *,
    approver_id: Optional[int] = None,
    balance_after: Optional[int] = None,
    now: Optional[datetime] = None,
) -> LeaveApplication:
    """Move *application* to *target*, stamping the decision fields.

    APPROVED and REJECTED record ``approver_id``; APPROVED also records
    ``balance_after``. CANCELLED touches neither.
    """
    ensure_transition(application.status, target)

    if target in DECISION_STATUSES:
        if approver_id is None:
            raise ValidationException({"approver_id": ["An approver is required."]})
        application.approver_id = approver_id

    if target is LeaveStatus.APPROVED:
        if balance_after is None:
            raise InternalErrorException(
                "Approval reached the status write without a ledger balance."
            )
        application.balance_after = balance_after

    application.status = target
    application.updated_at = now or utcnow()
    return application
