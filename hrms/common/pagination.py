"""Pagination helpers for SQLAlchemy async queries."""


import math
from typing import Generic, Optional, Sequence, TypeVar

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.constants import SortOrder
from hrms.config import settings

T = TypeVar("T")


# ── FastAPI dependency ──────────────────────────────────────────────

class PaginationParams:
    """Inject via ``Depends(PaginationParams)`` on any list endpoint."""

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="Page number (1-indexed)"),
        page_size: int = Query(
            default=settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=settings.MAX_PAGE_SIZE,
            description="Items per page",
        ),
        sort_by: Optional[str] = Query(
            default=None, description="Field to sort by (default: created_at)",
        ),
        sort_order: SortOrder = Query(
            default=SortOrder.DESC, description="ASC or DESC",
        ),
    ) -> None:
        self.page = page
        self.page_size = page_size
        self.sort_by = sort_by
        self.sort_order = sort_order


# ── Pydantic response model ────────────────────────────────────────

class Page(BaseModel, Generic[T]):
    """Standard list envelope: items plus total/page bookkeeping."""

    items: Sequence[T]
    total_count: int
    page: int
    page_size: int
    page_count: int


def page_count(total: int, page_size: int) -> int:
    """Number of pages needed for *total* rows; 0 when there are none."""
    return math.ceil(total / page_size) if total else 0


# ── SQLAlchemy helpers ──────────────────────────────────────────────

async def count_rows(session: AsyncSession, query: Select) -> int:
    """Total row count of *query*, ignoring ORDER BY / LIMIT."""
    count_q = select(func.count()).select_from(query.order_by(None).subquery())
    return (await session.execute(count_q)).scalar_one()


def paginate_query(query: Select, page: int, page_size: int) -> Select:
    """Apply LIMIT/OFFSET for a 1-indexed *page*."""
    return query.offset((page - 1) * page_size).limit(page_size)
