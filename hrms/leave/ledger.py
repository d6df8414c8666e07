"""Leave balance ledger — the per-employee, per-leave-type day counter.

Balances are only ever decremented, and only by ``LeaveLedger.debit``
called from the approval path in ``LeaveService.update_leave_status``.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.audit import create_audit_entry, utcnow
from hrms.common.exceptions import (
    ConflictError,
    InsufficientBalanceException,
    NotFoundException,
    ValidationException,
)
from hrms.core_hr.models import Employee
from hrms.leave.models import LeaveBalance, LeaveType
from hrms.leave.schemas import LeaveBalanceOut

logger = logging.getLogger(__name__)


def _ledger_key(employee_id: int, leave_type_id: int) -> str:
    return f"employee={employee_id}, leave_type={leave_type_id}"


class LeaveLedger:
    """Async ledger operations. Stateless; every call takes the session."""

    @staticmethod
    async def _find(
        db: AsyncSession,
        employee_id: int,
        leave_type_id: int,
        *,
        for_update: bool = False,
    ) -> Optional[LeaveBalance]:
        query = select(LeaveBalance).where(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.leave_type_id == leave_type_id,
        )
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_balance(
        db: AsyncSession,
        employee_id: int,
        leave_type_id: int,
    ) -> LeaveBalance:
        """Return the ledger row for the pair or raise ``NotFoundException``."""
        balance = await LeaveLedger._find(db, employee_id, leave_type_id)
        if balance is None:
            raise NotFoundException("LeaveBalance", _ledger_key(employee_id, leave_type_id))
        return balance

    @staticmethod
    async def debit(
        db: AsyncSession,
        employee_id: int,
        leave_type_id: int,
        days: int,
    ) -> int:
        """Subtract *days* from the locked ledger row and return the new balance.

        The row is read with ``SELECT … FOR UPDATE`` so concurrent approvals
        against the same row serialise. Must run inside the caller's atomic
        unit together with the status change that triggers it.
        """
        if days <= 0:
            raise ValidationException({"days": ["Debit must be at least one day."]})

        balance = await LeaveLedger._find(
            db, employee_id, leave_type_id, for_update=True,
        )
        if balance is None:
            raise NotFoundException("LeaveBalance", _ledger_key(employee_id, leave_type_id))

        if days > balance.balance:
            raise InsufficientBalanceException(available=balance.balance, requested=days)

        before = balance.balance
        balance.balance = before - days
        balance.updated_at = utcnow()
        await db.flush()

        logger.info(
            "Ledger debit %s: %d - %d = %d",
            _ledger_key(employee_id, leave_type_id), before, days, balance.balance,
        )
        return balance.balance

    @staticmethod
    async def list_for_employee(
        db: AsyncSession,
        employee_id: int,
    ) -> list[LeaveBalanceOut]:
        """All ledger rows of an employee with leave-type name and ceiling."""
        result = await db.execute(
            select(
                LeaveBalance.id,
                LeaveBalance.leave_type_id,
                LeaveType.name.label("leave_type_name"),
                LeaveBalance.balance,
                LeaveType.max_days,
            )
            .outerjoin(LeaveType, LeaveBalance.leave_type_id == LeaveType.id)
            .where(LeaveBalance.employee_id == employee_id)
            .order_by(LeaveBalance.leave_type_id)
        )
        return [LeaveBalanceOut.model_validate(dict(row._mapping)) for row in result.all()]

    @staticmethod
    async def open_account(
        db: AsyncSession,
        employee_id: int,
        leave_type_id: int,
        balance: int,
        *,
        actor_id: Optional[int] = None,
    ) -> LeaveBalanceOut:
        """Create the single ledger row for (employee, leave type)."""
        if balance < 0:
            raise ValidationException({"balance": ["Balance cannot be negative."]})

        employee = await db.get(Employee, employee_id)
        if employee is None:
            raise NotFoundException("Employee", employee_id)

        leave_type = await db.get(LeaveType, leave_type_id)
        if leave_type is None:
            raise NotFoundException("LeaveType", leave_type_id)

        if balance > leave_type.max_days:
            raise ValidationException(
                {"balance": [
                    f"{leave_type.name} allows at most {leave_type.max_days} day(s)."
                ]}
            )

        if await LeaveLedger._find(db, employee_id, leave_type_id) is not None:
            raise ConflictError(
                "employee_id/leave_type_id", f"{employee_id}/{leave_type_id}",
            )

        row = LeaveBalance(
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            balance=balance,
        )
        db.add(row)
        await db.flush()

        await create_audit_entry(
            db,
            action="open_balance",
            entity_type="leave_balance",
            entity_id=row.id,
            actor_id=actor_id,
            new_values={
                "employee_id": employee_id,
                "leave_type": leave_type.name,
                "balance": balance,
            },
        )

        return LeaveBalanceOut(
            id=row.id,
            leave_type_id=leave_type_id,
            leave_type_name=leave_type.name,
            balance=row.balance,
            max_days=leave_type.max_days,
        )
