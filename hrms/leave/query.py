"""Leave query service — read-only listing and aggregation over applications.

All methods are static async, following the project convention.
Counting and grouping happen in the database; nothing here writes.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.constants import TIMEZONE, LeaveStatus, SortOrder
from hrms.common.exceptions import NotFoundException, ValidationException
from hrms.common.pagination import page_count
from hrms.core_hr.models import Employee
from hrms.leave.models import LeaveApplication, LeaveType
from hrms.leave.schemas import (
    LeaveApplicationFilters,
    LeaveApplicationOut,
    LeaveApplicationPage,
    LeaveStatisticsOut,
    LeaveTypeCount,
    LeaveTypeOut,
    UpcomingLeaveOut,
)
from hrms.leave.store import LeaveApplicationStore


def _today() -> date:
    """Current date in IST (Asia/Kolkata)."""
    from zoneinfo import ZoneInfo

    return datetime.now(ZoneInfo(TIMEZONE)).date()


class LeaveQueryService:
    """Async leave reporting queries."""

    # ═════════════════════════════════════════════════════════════════
    # Listing
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def list_applications(
        db: AsyncSession,
        filters: Optional[LeaveApplicationFilters] = None,
        *,
        page: int = 1,
        page_size: int = 10,
        sort_by: Optional[str] = None,
        sort_order: SortOrder | str = SortOrder.DESC,
    ) -> LeaveApplicationPage:
        """One page of applications matching *filters*.

        ``sort_by`` must be a known application column; unknown fields raise
        ``ValidationException`` rather than falling back silently.
        """
        items, total = await LeaveApplicationStore.list_filtered(
            db,
            filters,
            page=page,
            page_size=page_size,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return LeaveApplicationPage(
            items=items,
            total_count=total,
            page=page,
            page_size=page_size,
            page_count=page_count(total, page_size),
        )

    @staticmethod
    async def get_leave_application_by_id(
        db: AsyncSession,
        application_id: int,
    ) -> LeaveApplicationOut:
        result = await db.execute(
            LeaveApplicationStore.joined_select().where(
                LeaveApplication.id == application_id
            )
        )
        row = result.first()
        if row is None:
            raise NotFoundException("LeaveApplication", application_id)
        return LeaveApplicationStore.to_out(row)

    # ═════════════════════════════════════════════════════════════════
    # Statistics
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def get_statistics(db: AsyncSession) -> LeaveStatisticsOut:
        """Pending count, approvals overlapping the current month, approvals per type."""
        today = _today()
        month_start = today.replace(day=1)
        month_end = today.replace(day=calendar.monthrange(today.year, today.month)[1])

        pending_q = select(func.count(LeaveApplication.id)).where(
            LeaveApplication.status == LeaveStatus.PENDING,
        )

        # Any approved leave with at least one day inside the month
        approved_q = select(func.count(LeaveApplication.id)).where(
            LeaveApplication.status == LeaveStatus.APPROVED,
            LeaveApplication.start_date <= month_end,
            LeaveApplication.end_date >= month_start,
        )

        distribution_q = (
            select(
                LeaveType.name.label("leave_type_name"),
                func.count(LeaveApplication.id).label("count"),
            )
            .select_from(LeaveApplication)
            .outerjoin(LeaveType, LeaveApplication.leave_type_id == LeaveType.id)
            .where(LeaveApplication.status == LeaveStatus.APPROVED)
            .group_by(LeaveType.name)
            .order_by(LeaveType.name)
        )

        pending = (await db.execute(pending_q)).scalar_one()
        approved = (await db.execute(approved_q)).scalar_one()
        distribution = [
            LeaveTypeCount(leave_type_name=name, count=count)
            for name, count in (await db.execute(distribution_q)).all()
        ]

        return LeaveStatisticsOut(
            pending_applications=pending,
            approved_this_month=approved,
            leave_type_distribution=distribution,
        )

    # ═════════════════════════════════════════════════════════════════
    # Calendar
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def list_upcoming_leaves(
        db: AsyncSession,
        from_date: date,
        to_date: date,
    ) -> list[UpcomingLeaveOut]:
        """Approved leaves starting or ending within ``[from_date, to_date)``."""
        if to_date <= from_date:
            raise ValidationException({"to_date": ["to_date must be after from_date."]})

        employee_name = (Employee.first_name + " " + Employee.last_name).label(
            "employee_name"
        )
        result = await db.execute(
            select(
                LeaveApplication.id,
                LeaveApplication.employee_id,
                employee_name,
                LeaveType.name.label("leave_type_name"),
                LeaveApplication.start_date,
                LeaveApplication.end_date,
            )
            .outerjoin(Employee, LeaveApplication.employee_id == Employee.id)
            .outerjoin(LeaveType, LeaveApplication.leave_type_id == LeaveType.id)
            .where(
                LeaveApplication.status == LeaveStatus.APPROVED,
                or_(
                    and_(
                        LeaveApplication.start_date >= from_date,
                        LeaveApplication.start_date < to_date,
                    ),
                    and_(
                        LeaveApplication.end_date >= from_date,
                        LeaveApplication.end_date < to_date,
                    ),
                ),
            )
            .order_by(LeaveApplication.start_date, LeaveApplication.id)
        )
        return [UpcomingLeaveOut.model_validate(dict(row._mapping)) for row in result.all()]

    # ═════════════════════════════════════════════════════════════════
    # Leave types
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def get_leave_types(db: AsyncSession) -> list[LeaveTypeOut]:
        result = await db.execute(select(LeaveType).order_by(LeaveType.name))
        return [LeaveTypeOut.model_validate(lt) for lt in result.scalars().all()]
