"""Leave application store — creation, lookup, filtered listing, status writes."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.constants import LeaveStatus, SortOrder
from hrms.common.exceptions import NotFoundException, ValidationException
from hrms.common.filters import EQ, GTE, LT, apply_filters, apply_sorting
from hrms.common.pagination import count_rows, paginate_query
from hrms.core_hr.models import Employee
from hrms.leave.models import LeaveApplication, LeaveType
from hrms.leave.schemas import LeaveApplicationFilters, LeaveApplicationOut
from hrms.leave.state import transition

# Public sort keys → columns. Anything else is a ValidationException.
SORTABLE_FIELDS = {
    "id": LeaveApplication.id,
    "employee_id": LeaveApplication.employee_id,
    "leave_type_id": LeaveApplication.leave_type_id,
    "start_date": LeaveApplication.start_date,
    "end_date": LeaveApplication.end_date,
    "status": LeaveApplication.status,
    "approver_id": LeaveApplication.approver_id,
    "reason": LeaveApplication.reason,
    "balance_after": LeaveApplication.balance_after,
    "created_at": LeaveApplication.created_at,
    "updated_at": LeaveApplication.updated_at,
}

FILTERABLE_FIELDS = {
    "status": (LeaveApplication.status, EQ),
    "employee_id": (LeaveApplication.employee_id, EQ),
    "leave_type_id": (LeaveApplication.leave_type_id, EQ),
    "start_date": (LeaveApplication.start_date, GTE),
    "end_date": (LeaveApplication.end_date, LT),
}

DEFAULT_SORT_FIELD = "created_at"


def validate_application_fields(
    *,
    employee_id: Optional[int],
    leave_type_id: Optional[int],
    start_date: Optional[date],
    end_date: Optional[date],
) -> None:
    """Reject missing required fields and inverted date ranges."""
    required = {
        "employee_id": employee_id,
        "leave_type_id": leave_type_id,
        "start_date": start_date,
        "end_date": end_date,
    }
    missing = {name: ["Field required."] for name, value in required.items() if value is None}
    if missing:
        raise ValidationException(missing)
    if end_date < start_date:
        raise ValidationException({"end_date": ["end_date must be on or after start_date."]})


class LeaveApplicationStore:
    """Async persistence for leave applications."""

    @staticmethod
    def joined_select() -> Select:
        """Applications left-joined with employee display name and leave-type name."""
        employee_name = (Employee.first_name + " " + Employee.last_name).label(
            "employee_name"
        )
        return (
            select(
                LeaveApplication,
                employee_name,
                LeaveType.name.label("leave_type_name"),
            )
            .outerjoin(Employee, LeaveApplication.employee_id == Employee.id)
            .outerjoin(LeaveType, LeaveApplication.leave_type_id == LeaveType.id)
        )

    @staticmethod
    def to_out(row: Any) -> LeaveApplicationOut:
        """Build LeaveApplicationOut from a ``joined_select`` row."""
        application, employee_name, leave_type_name = row
        out = LeaveApplicationOut.model_validate(application)
        out.employee_name = employee_name
        out.leave_type_name = leave_type_name
        return out

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        employee_id: int,
        leave_type_id: int,
        start_date: date,
        end_date: date,
        reason: Optional[str] = None,
    ) -> LeaveApplication:
        """Insert a new PENDING application."""
        validate_application_fields(
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            start_date=start_date,
            end_date=end_date,
        )
        application = LeaveApplication(
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            start_date=start_date,
            end_date=end_date,
            reason=reason or None,
            status=LeaveStatus.PENDING,
        )
        db.add(application)
        await db.flush()
        return application

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        application_id: int,
        *,
        for_update: bool = False,
    ) -> LeaveApplication:
        query = select(LeaveApplication).where(LeaveApplication.id == application_id)
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        application = result.scalars().first()
        if application is None:
            raise NotFoundException("LeaveApplication", application_id)
        return application

    @staticmethod
    async def set_status(
        db: AsyncSession,
        application: LeaveApplication,
        status: LeaveStatus,
        *,
        approver_id: Optional[int] = None,
        balance_after: Optional[int] = None,
    ) -> LeaveApplication:
        """Apply a status transition and flush it."""
        transition(
            application,
            status,
            approver_id=approver_id,
            balance_after=balance_after,
        )
        await db.flush()
        return application

    @staticmethod
    async def list_filtered(
        db: AsyncSession,
        filters: Optional[LeaveApplicationFilters] = None,
        *,
        page: int = 1,
        page_size: int = 10,
        sort_by: Optional[str] = None,
        sort_order: SortOrder | str = SortOrder.DESC,
    ) -> tuple[list[LeaveApplicationOut], int]:
        """Return one page of matching applications and the total match count."""
        if page < 1:
            raise ValidationException({"page": ["Page must be 1 or greater."]})
        if page_size < 1:
            raise ValidationException({"page_size": ["Page size must be 1 or greater."]})

        filters = filters or LeaveApplicationFilters()
        query = apply_filters(
            LeaveApplicationStore.joined_select(),
            FILTERABLE_FIELDS,
            filters.model_dump(),
        )
        query = apply_sorting(
            query,
            SORTABLE_FIELDS,
            sort_by,
            sort_order,
            default=DEFAULT_SORT_FIELD,
            tiebreaker=LeaveApplication.id,
        )

        total = await count_rows(db, query)
        result = await db.execute(paginate_query(query, page, page_size))
        items = [LeaveApplicationStore.to_out(row) for row in result.all()]
        return items, total
