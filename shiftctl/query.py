"""Query builder for the backend's table API.

Builds PostgREST-style query parameters (``column=op.value``). Filters are
kept as an ordered list of pairs so one column can carry several filters,
e.g. a ``gte`` and an ``lte`` bound on the same timestamp.
"""

from datetime import date, datetime, time
from typing import Any, Iterable, List, Optional, Tuple


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


class Query:
    """Fluent query against a single table."""

    def __init__(self, table: str) -> None:
        if not table:
            raise ValueError("Table name is required")
        self.table = table
        self.columns = "*"
        self.filters: List[Tuple[str, str]] = []
        self._order: List[str] = []
        self._limit: Optional[int] = None
        self.is_single = False

    def select(self, columns: str = "*") -> "Query":
        self.columns = columns
        return self

    def _filter(self, column: str, operator: str, value: Any) -> "Query":
        self.filters.append((column, f"{operator}.{_format_value(value)}"))
        return self

    def eq(self, column: str, value: Any) -> "Query":
        return self._filter(column, "eq", value)

    def neq(self, column: str, value: Any) -> "Query":
        return self._filter(column, "neq", value)

    def gt(self, column: str, value: Any) -> "Query":
        return self._filter(column, "gt", value)

    def gte(self, column: str, value: Any) -> "Query":
        return self._filter(column, "gte", value)

    def lt(self, column: str, value: Any) -> "Query":
        return self._filter(column, "lt", value)

    def lte(self, column: str, value: Any) -> "Query":
        return self._filter(column, "lte", value)

    def ilike(self, column: str, pattern: str) -> "Query":
        return self._filter(column, "ilike", pattern)

    def is_(self, column: str, value: Optional[bool]) -> "Query":
        return self._filter(column, "is", value)

    def not_(self, column: str, operator: str, value: Any) -> "Query":
        """Negate a filter, e.g. ``not_("clock_out_time", "is", None)``."""
        return self._filter(column, f"not.{operator}", value)

    def in_(self, column: str, values: Iterable[Any]) -> "Query":
        joined = ",".join(_format_value(v) for v in values)
        self.filters.append((column, f"in.({joined})"))
        return self

    def order(self, column: str, ascending: bool = True) -> "Query":
        self._order.append(f"{column}.{'asc' if ascending else 'desc'}")
        return self

    def limit(self, count: int) -> "Query":
        if count <= 0:
            raise ValueError("Limit must be positive")
        self._limit = count
        return self

    def single(self) -> "Query":
        """Expect exactly one row; zero rows is reported as not found."""
        self.is_single = True
        return self

    def filter_params(self) -> List[Tuple[str, str]]:
        """Parameters for write requests (filters only)."""
        return list(self.filters)

    def to_params(self) -> List[Tuple[str, str]]:
        """Parameters for read requests."""
        params: List[Tuple[str, str]] = [("select", self.columns)]
        params.extend(self.filters)
        if self._order:
            params.append(("order", ",".join(self._order)))
        if self._limit is not None:
            params.append(("limit", str(self._limit)))
        return params

    def __repr__(self) -> str:
        return f"Query(table={self.table!r}, params={self.to_params()!r})"
