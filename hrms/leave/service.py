"""Leave workflow service — apply, approve/reject with ledger debit, cancel.

Business rules:
  - Leave days are counted inclusively: both the start and end date count.
  - Applying checks the ledger but does not touch it; the balance is only
    debited when an approver marks the application APPROVED.
  - Approval re-validates the balance, debits the locked ledger row and
    writes the status in one atomic unit; any failure rolls back both.
  - Only the owning employee may cancel, and only while PENDING.
  - There is no refund path: REJECTED and CANCELLED applications were never
    debited.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Union

from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.audit import create_audit_entry
from hrms.common.constants import DECISION_STATUSES, LeaveStatus
from hrms.common.exceptions import (
    ForbiddenException,
    InsufficientBalanceException,
    InternalErrorException,
    NotFoundException,
    ValidationException,
)
from hrms.database import atomic
from hrms.leave.ledger import LeaveLedger
from hrms.leave.schemas import (
    LeaveApplicationCreate,
    LeaveApplicationOut,
    LeaveBalanceOut,
)
from hrms.leave.state import ensure_transition
from hrms.leave.store import LeaveApplicationStore, validate_application_fields

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


def _as_date(value: DateLike) -> date:
    # Time of day never takes part in day arithmetic
    return value.date() if isinstance(value, datetime) else value


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave workflow operations: apply, decide, cancel, balances."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def calculate_leave_days(start_date: DateLike, end_date: DateLike) -> int:
        """Inclusive calendar-day count between two dates.

        A single-day leave (start == end) is 1 day; Mon→Wed is 3.
        """
        return abs((_as_date(end_date) - _as_date(start_date)).days) + 1

    @staticmethod
    def _coerce_status(status: Union[LeaveStatus, str]) -> LeaveStatus:
        try:
            return LeaveStatus(getattr(status, "value", status))
        except ValueError:
            raise ValidationException({"status": [f"Unknown status '{status}'."]})

    # ─────────────────────────────────────────────────────────────────
    # Apply
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def apply_for_leave(
        db: AsyncSession,
        employee_id: int,
        data: LeaveApplicationCreate,
    ) -> LeaveApplicationOut:
        """Create a PENDING application after checking the ledger balance.

        Raises NotFoundException when the employee has no ledger row for the
        leave type and InsufficientBalanceException when the inclusive day
        count exceeds the balance. The ledger itself is left untouched.
        """
        start_date = _as_date(data.start_date)
        end_date = _as_date(data.end_date)
        validate_application_fields(
            employee_id=employee_id,
            leave_type_id=data.leave_type_id,
            start_date=start_date,
            end_date=end_date,
        )

        days = LeaveService.calculate_leave_days(start_date, end_date)

        balance = await LeaveLedger.get_balance(db, employee_id, data.leave_type_id)
        if balance.balance < days:
            logger.warning(
                "Leave application refused for employee %s: %d day(s) requested, %d available",
                employee_id, days, balance.balance,
            )
            raise InsufficientBalanceException(available=balance.balance, requested=days)

        application = await LeaveApplicationStore.create(
            db,
            employee_id=employee_id,
            leave_type_id=data.leave_type_id,
            start_date=start_date,
            end_date=end_date,
            reason=data.reason,
        )

        await create_audit_entry(
            db,
            action="apply",
            entity_type="leave_application",
            entity_id=application.id,
            actor_id=employee_id,
            new_values={
                "leave_type_id": data.leave_type_id,
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "days": days,
                "status": LeaveStatus.PENDING.value,
            },
        )

        logger.info(
            "Leave application %s created for employee %s (%d day(s))",
            application.id, employee_id, days,
        )
        return LeaveApplicationOut.model_validate(application)

    # ─────────────────────────────────────────────────────────────────
    # Approve / Reject
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def update_leave_status(
        db: AsyncSession,
        application_id: int,
        status: Union[LeaveStatus, str],
        approver_id: int,
    ) -> LeaveApplicationOut:
        """Approve or reject a PENDING application.

        The caller is trusted to have verified that *approver_id* holds an
        approving role. On APPROVED the ledger row is locked, re-checked and
        debited by the inclusive day count, and ``balance_after`` records the
        result. Ledger debit, status write and audit entry commit or roll
        back together.
        """
        target = LeaveService._coerce_status(status)
        if target not in DECISION_STATUSES:
            raise ValidationException({"status": ["status must be APPROVED or REJECTED."]})

        application = await LeaveApplicationStore.get_by_id(
            db, application_id, for_update=True,
        )
        ensure_transition(application.status, target)

        days = LeaveService.calculate_leave_days(application.start_date, application.end_date)
        old_status = application.status

        async with atomic(db):
            balance_after = None
            if target is LeaveStatus.APPROVED:
                try:
                    balance_after = await LeaveLedger.debit(
                        db, application.employee_id, application.leave_type_id, days,
                    )
                except NotFoundException as exc:
                    raise InternalErrorException(
                        f"Ledger row for employee {application.employee_id}, "
                        f"leave type {application.leave_type_id} disappeared "
                        f"before approval of application {application_id}."
                    ) from exc

            await LeaveApplicationStore.set_status(
                db,
                application,
                target,
                approver_id=approver_id,
                balance_after=balance_after,
            )

            await create_audit_entry(
                db,
                action="approve" if target is LeaveStatus.APPROVED else "reject",
                entity_type="leave_application",
                entity_id=application.id,
                actor_id=approver_id,
                old_values={"status": old_status.value},
                new_values={
                    "status": target.value,
                    "days": days,
                    "balance_after": balance_after,
                },
            )

        logger.info(
            "Leave application %s %s by %s (balance after: %s)",
            application_id, target.value, approver_id, balance_after,
        )
        return LeaveApplicationOut.model_validate(application)

    # ─────────────────────────────────────────────────────────────────
    # Cancel
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def cancel_leave_application(
        db: AsyncSession,
        application_id: int,
        employee_id: int,
    ) -> LeaveApplicationOut:
        """Cancel own PENDING application. The ledger is not touched."""

        application = await LeaveApplicationStore.get_by_id(
            db, application_id, for_update=True,
        )

        if application.employee_id != employee_id:
            raise ForbiddenException("You can only cancel your own leave applications.")

        ensure_transition(application.status, LeaveStatus.CANCELLED)
        old_status = application.status

        async with atomic(db):
            await LeaveApplicationStore.set_status(db, application, LeaveStatus.CANCELLED)
            await create_audit_entry(
                db,
                action="cancel",
                entity_type="leave_application",
                entity_id=application.id,
                actor_id=employee_id,
                old_values={"status": old_status.value},
                new_values={"status": LeaveStatus.CANCELLED.value},
            )

        logger.info("Leave application %s cancelled by employee %s", application_id, employee_id)
        return LeaveApplicationOut.model_validate(application)

    # ─────────────────────────────────────────────────────────────────
    # Balances
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_employee_leave_balances(
        db: AsyncSession,
        employee_id: int,
    ) -> list[LeaveBalanceOut]:
        return await LeaveLedger.list_for_employee(db, employee_id)
