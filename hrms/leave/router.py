"""Leave router — apply, approve/reject, cancel, balances, listing, statistics.

All endpoints require authentication. HR/Manager endpoints enforce role checks.
Static paths are declared before ``/{application_id}`` so they are not
captured by the path parameter.
"""


from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user, require_role
from hrms.common.constants import LeaveStatus, UserRole
from hrms.common.pagination import PaginationParams
from hrms.core_hr.models import Employee
from hrms.database import get_db
from hrms.leave.ledger import LeaveLedger
from hrms.leave.query import LeaveQueryService
from hrms.leave.schemas import (
    LeaveApplicationCreate,
    LeaveApplicationFilters,
    LeaveApplicationOut,
    LeaveApplicationPage,
    LeaveBalanceCreate,
    LeaveBalanceOut,
    LeaveStatisticsOut,
    LeaveStatusUpdate,
    LeaveTypeOut,
    UpcomingLeaveOut,
)
from hrms.leave.service import LeaveService

router = APIRouter(prefix="", tags=["leave"])

_approvers = require_role(UserRole.MANAGER, UserRole.HR)


# ── POST /apply ─────────────────────────────────────────────────────

@router.post("/apply", response_model=LeaveApplicationOut, status_code=201)
async def apply_for_leave(
    body: LeaveApplicationCreate,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Apply for leave. Checks the balance; nothing is debited until approval."""
    return await LeaveService.apply_for_leave(db, employee.id, body)


# ── GET /my-balances ────────────────────────────────────────────────

@router.get("/my-balances", response_model=list[LeaveBalanceOut])
async def my_balances(
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_employee_leave_balances(db, employee.id)


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=LeaveApplicationPage)
async def list_applications(
    status: Optional[LeaveStatus] = Query(None),
    employee_id: Optional[int] = Query(None),
    leave_type_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None, description="Starting on or after"),
    end_date: Optional[date] = Query(None, description="Ending strictly before"),
    pagination: PaginationParams = Depends(),
    employee: Employee = Depends(_approvers),
    db: AsyncSession = Depends(get_db),
):
    """Filtered, sorted, paginated leave applications (HR / Manager)."""
    filters = LeaveApplicationFilters(
        status=status,
        employee_id=employee_id,
        leave_type_id=leave_type_id,
        start_date=start_date,
        end_date=end_date,
    )
    return await LeaveQueryService.list_applications(
        db,
        filters,
        page=pagination.page,
        page_size=pagination.page_size,
        sort_by=pagination.sort_by,
        sort_order=pagination.sort_order,
    )


# ── GET /statistics ─────────────────────────────────────────────────

@router.get("/statistics", response_model=LeaveStatisticsOut)
async def leave_statistics(
    employee: Employee = Depends(_approvers),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveQueryService.get_statistics(db)


# ── GET /upcoming ───────────────────────────────────────────────────

@router.get("/upcoming", response_model=list[UpcomingLeaveOut])
async def upcoming_leaves(
    from_date: date = Query(...),
    to_date: date = Query(...),
    employee: Employee = Depends(_approvers),
    db: AsyncSession = Depends(get_db),
):
    """Approved leaves starting or ending within [from_date, to_date)."""
    return await LeaveQueryService.list_upcoming_leaves(db, from_date, to_date)


# ── GET /types ──────────────────────────────────────────────────────

@router.get("/types", response_model=list[LeaveTypeOut])
async def leave_types(
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveQueryService.get_leave_types(db)


# ── POST /balances ──────────────────────────────────────────────────

@router.post("/balances", response_model=LeaveBalanceOut, status_code=201)
async def open_balance(
    body: LeaveBalanceCreate,
    employee: Employee = Depends(require_role(UserRole.HR)),
    db: AsyncSession = Depends(get_db),
):
    """Open an employee's ledger row for a leave type (HR only)."""
    return await LeaveLedger.open_account(
        db, body.employee_id, body.leave_type_id, body.balance, actor_id=employee.id,
    )


# ── GET /{id} ───────────────────────────────────────────────────────

@router.get("/{application_id}", response_model=LeaveApplicationOut)
async def get_application(
    application_id: int,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveQueryService.get_leave_application_by_id(db, application_id)


# ── PATCH /{id}/status ──────────────────────────────────────────────

@router.patch("/{application_id}/status", response_model=LeaveApplicationOut)
async def update_leave_status(
    application_id: int,
    body: LeaveStatusUpdate,
    employee: Employee = Depends(_approvers),
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject a pending application. Approval debits the balance."""
    return await LeaveService.update_leave_status(
        db, application_id, body.status, employee.id,
    )


# ── PATCH /{id}/cancel ──────────────────────────────────────────────

@router.patch("/{application_id}/cancel", response_model=LeaveApplicationOut)
async def cancel_leave_application(
    application_id: int,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cancel own pending application."""
    return await LeaveService.cancel_leave_application(db, application_id, employee.id)
