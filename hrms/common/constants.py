"""Enums and constants for HRMS."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"
    HR = "HR"
    ADMIN = "ADMIN"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self is not LeaveStatus.PENDING


# Statuses an approver may set via LeaveService.update_leave_status
DECISION_STATUSES = frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED})


class SortOrder(str, enum.Enum):
    ASC = "ASC"
    DESC = "DESC"


# ── Misc constants ──────────────────────────────────────────────────

TIMEZONE = "Asia/Kolkata"
