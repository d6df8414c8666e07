"""Core HR ORM model: Employee.

The employee directory is owned elsewhere; the leave module only needs a
row to reference and a display name for listings.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.audit import utcnow
from hrms.database import Base

if TYPE_CHECKING:
    from hrms.leave.models import LeaveApplication, LeaveBalance


class Employee(Base):
    """An employee record (directory entity referenced by integer id)."""

    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    employee_code: Mapped[str] = mapped_column(sa.String(20), unique=True, nullable=False)
    first_name: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        sa.Boolean, default=True, server_default=sa.true(),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    leave_balances: Mapped[list[LeaveBalance]] = relationship(
        back_populates="employee",
    )
    leave_applications: Mapped[list[LeaveApplication]] = relationship(
        back_populates="employee", foreign_keys="LeaveApplication.employee_id",
    )

    def __repr__(self) -> str:
        return f"<Employee {self.employee_code!r}>"
