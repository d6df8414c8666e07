"""Allow-list driven filtering and sorting for SQLAlchemy selects.

Callers pass an explicit mapping from public field names to mapped
columns; any name outside that mapping is rejected instead of being
looked up on the model.
"""

from __future__ import annotations

import operator
from typing import Any, Callable, Mapping, Optional

from sqlalchemy import Select, and_
from sqlalchemy.orm import InstrumentedAttribute

from hrms.common.constants import SortOrder
from hrms.common.exceptions import ValidationException

# (column, comparison) pairs, e.g. ``(LeaveApplication.start_date, operator.ge)``
FilterSpec = tuple[InstrumentedAttribute, Callable[[Any, Any], Any]]


# ── Sorting ─────────────────────────────────────────────────────────

def apply_sorting(
    query: Select,
    sortable: Mapping[str, InstrumentedAttribute],
    sort_by: Optional[str],
    sort_order: SortOrder | str = SortOrder.DESC,
    *,
    default: str,
    tiebreaker: Optional[InstrumentedAttribute] = None,
) -> Select:
    """
    Apply ORDER BY for ``sort_by`` drawn from the *sortable* allow-list.

    * ``sort_by=None`` falls back to *default*.
    * Unknown field names or directions raise ``ValidationException``.
    * *tiebreaker* (usually the primary key) is appended in the same
      direction so paging is stable.
    """
    field = sort_by or default
    column = sortable.get(field)
    if column is None:
        raise ValidationException(
            {"sort_by": [
                f"Cannot sort by '{field}'. "
                f"Allowed fields: {', '.join(sorted(sortable))}."
            ]}
        )

    try:
        order = SortOrder(str(getattr(sort_order, "value", sort_order)).upper())
    except ValueError:
        raise ValidationException(
            {"sort_order": [f"Sort order must be ASC or DESC, got '{sort_order}'."]}
        )

    descending = order is SortOrder.DESC
    query = query.order_by(column.desc() if descending else column.asc())
    if tiebreaker is not None and tiebreaker is not column:
        query = query.order_by(tiebreaker.desc() if descending else tiebreaker.asc())
    return query


# ── Filtering ───────────────────────────────────────────────────────

def apply_filters(
    query: Select,
    filterable: Mapping[str, FilterSpec],
    filters: Mapping[str, Any],
) -> Select:
    """
    AND together one predicate per non-``None`` entry in *filters*.

    Each key must appear in *filterable*, which supplies the column and the
    comparison operator (``operator.eq``, ``operator.ge``, ``operator.lt`` …).
    """
    conditions: list = []

    for key, value in filters.items():
        if value is None:
            continue
        spec = filterable.get(key)
        if spec is None:
            raise ValidationException({key: [f"Unknown filter '{key}'."]})
        column, compare = spec
        conditions.append(compare(column, value))

    if conditions:
        query = query.where(and_(*conditions))

    return query


EQ = operator.eq
GTE = operator.ge
LT = operator.lt
