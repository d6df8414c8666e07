"""Leave ORM models: LeaveType, LeaveBalance, LeaveApplication."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.audit import utcnow
from hrms.common.constants import LeaveStatus
from hrms.database import Base

if TYPE_CHECKING:
    from hrms.core_hr.models import Employee


class LeaveType(Base):
    __tablename__ = "leave_types"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.String(50), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    max_days: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now()
    )

    # Relationships
    balances: Mapped[list[LeaveBalance]] = relationship(back_populates="leave_type")
    applications: Mapped[list[LeaveApplication]] = relationship(
        back_populates="leave_type"
    )


class LeaveBalance(Base):
    """Ledger row: remaining whole days of one leave type for one employee."""

    __tablename__ = "leave_balances"
    __table_args__ = (
        sa.UniqueConstraint(
            "employee_id", "leave_type_id", name="uq_leave_balance_employee_type"
        ),
        sa.CheckConstraint("balance >= 0", name="ck_leave_balance_non_negative"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("employees.id"), nullable=False
    )
    leave_type_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("leave_types.id"), nullable=False
    )
    balance: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now()
    )

    # Relationships
    employee: Mapped["Employee"] = relationship(
        back_populates="leave_balances"
    )
    leave_type: Mapped[LeaveType] = relationship(back_populates="balances")


class LeaveApplication(Base):
    __tablename__ = "leave_applications"
    __table_args__ = (
        sa.CheckConstraint("start_date <= end_date", name="ck_leave_application_dates"),
        sa.Index("ix_leave_applications_employee_id", "employee_id"),
        sa.Index("ix_leave_applications_status", "status"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("employees.id"), nullable=False
    )
    leave_type_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("leave_types.id"), nullable=False
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    # Written only by hrms.leave.state.transition after creation
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status", native_enum=False, length=20),
        nullable=False,
        default=LeaveStatus.PENDING,
        server_default=LeaveStatus.PENDING.value,
    )
    approver_id: Mapped[Optional[int]] = mapped_column(
        sa.Integer, sa.ForeignKey("employees.id")
    )
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    balance_after: Mapped[Optional[int]] = mapped_column(sa.Integer)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now()
    )

    # Relationships
    employee: Mapped["Employee"] = relationship(
        back_populates="leave_applications", foreign_keys=[employee_id]
    )
    approver: Mapped[Optional["Employee"]] = relationship(
        foreign_keys=[approver_id]
    )
    leave_type: Mapped[LeaveType] = relationship(back_populates="applications")

