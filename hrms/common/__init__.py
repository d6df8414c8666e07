"""Common module — shared utilities for HRMS."""

from hrms.common.audit import AuditTrail, create_audit_entry, utcnow
from hrms.common.constants import (
    DECISION_STATUSES,
    TIMEZONE,
    LeaveStatus,
    SortOrder,
    UserRole,
)
from hrms.common.exceptions import (
    AppException,
    ConflictError,
    ForbiddenException,
    InsufficientBalanceException,
    InternalErrorException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
    register_exception_handlers,
)
from hrms.common.filters import apply_filters, apply_sorting
from hrms.common.pagination import (
    Page,
    PaginationParams,
    count_rows,
    page_count,
    paginate_query,
)

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    "utcnow",
    # Constants / Enums
    "DECISION_STATUSES",
    "LeaveStatus",
    "SortOrder",
    "TIMEZONE",
    "UserRole",
    # Exceptions
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "InsufficientBalanceException",
    "InternalErrorException",
    "InvalidTransitionException",
    "NotFoundException",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    "apply_sorting",
    # Pagination
    "Page",
    "PaginationParams",
    "count_rows",
    "page_count",
    "paginate_query",
]
