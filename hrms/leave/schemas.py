"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update  → request bodies (write)
  - *Out               → response bodies (read)
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from hrms.common.constants import DECISION_STATUSES, LeaveStatus
from hrms.common.pagination import Page


# ═════════════════════════════════════════════════════════════════════
# Leave Type / Balance
# ═════════════════════════════════════════════════════════════════════


class LeaveTypeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    max_days: int


class LeaveBalanceOut(BaseModel):
    """One ledger row joined with its leave type for display."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    leave_type_id: int
    leave_type_name: Optional[str] = None
    balance: int
    max_days: Optional[int] = None


class LeaveBalanceCreate(BaseModel):
    """HR payload for opening an employee's ledger row."""

    employee_id: int
    leave_type_id: int
    balance: int = Field(..., ge=0)


# ═════════════════════════════════════════════════════════════════════
# Leave Application: write
# ═════════════════════════════════════════════════════════════════════


class LeaveApplicationCreate(BaseModel):
    """Payload for applying for leave."""

    leave_type_id: int
    start_date: date = Field(..., description="First day of leave (inclusive)")
    end_date: date = Field(..., description="Last day of leave (inclusive)")
    reason: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def validate_dates(self) -> "LeaveApplicationCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date.")
        return self


class LeaveStatusUpdate(BaseModel):
    """Approver decision on a pending application."""

    status: LeaveStatus

    @field_validator("status")
    @classmethod
    def status_is_decision(cls, v: LeaveStatus) -> LeaveStatus:
        if v not in DECISION_STATUSES:
            raise ValueError("status must be APPROVED or REJECTED.")
        return v


# ═════════════════════════════════════════════════════════════════════
# Leave Application: read
# ═════════════════════════════════════════════════════════════════════


class LeaveApplicationOut(BaseModel):
    """Full leave application response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    leave_type_id: int
    start_date: date
    end_date: date
    status: LeaveStatus
    approver_id: Optional[int] = None
    reason: Optional[str] = None
    balance_after: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    # Enriched by the query layer (left joins; None when the reference is gone)
    employee_name: Optional[str] = None
    leave_type_name: Optional[str] = None


LeaveApplicationPage = Page[LeaveApplicationOut]


class LeaveApplicationFilters(BaseModel):
    """Listing filters; every field is optional and they are ANDed together."""

    status: Optional[LeaveStatus] = None
    employee_id: Optional[int] = None
    leave_type_id: Optional[int] = None
    start_date: Optional[date] = Field(
        None, description="Applications starting on or after this date",
    )
    end_date: Optional[date] = Field(
        None, description="Applications ending strictly before this date",
    )


# ═════════════════════════════════════════════════════════════════════
# Reporting
# ═════════════════════════════════════════════════════════════════════


class LeaveTypeCount(BaseModel):
    leave_type_name: Optional[str] = None
    count: int


class LeaveStatisticsOut(BaseModel):
    pending_applications: int
    approved_this_month: int
    leave_type_distribution: list[LeaveTypeCount]


class UpcomingLeaveOut(BaseModel):
    """Approved leave entry for the calendar view."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    employee_name: Optional[str] = None
    leave_type_name: Optional[str] = None
    start_date: date
    end_date: date
