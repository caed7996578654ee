"""Statement filters for SQLAlchemy selects.

Pagination metadata refers to columns by name (``sort="name"``,
``selected_fields=["id", "email"]``). These filters resolve those names
against the statement and apply ordering, paging and column selection
without hiding the query.

Usage:
    from sqlalchemy import select
    from metakit.core.database.filters import FieldSelection, LimitOffset, OrderBy

    stmt = select(User)
    stmt = FieldSelection(["name", "email"]).apply(stmt)
    stmt = OrderBy("name", "asc").apply(stmt)
    stmt = LimitOffset(limit=10, offset=20).apply(stmt)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from sqlalchemy import Select, literal_column
from sqlalchemy.sql.elements import ColumnElement

WILDCARD = "*"


def resolve_column(statement: Select[Any], name: str) -> ColumnElement[Any]:
    """Find the column called ``name`` for use in ORDER BY or WHERE.

    Looks at the selected columns first, then at the columns of every
    FROM clause (so a column that was dropped by field selection can
    still be sorted on). Unknown names become a literal column reference.

    Args:
        statement: Statement the column should belong to
        name: Column key

    Returns:
        Column expression
    """
    selected = statement.selected_columns
    if name in selected:
        return selected[name]

    for from_clause in statement.get_final_froms():
        columns = getattr(from_clause, "c", None)
        if columns is not None and name in columns:
            return columns[name]

    return literal_column(name)


class StatementFilter(ABC):
    """Base class for statement filters.

    All filters implement `apply()` which modifies a SQLAlchemy statement.
    """

    @abstractmethod
    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Apply filter to statement.

        Args:
            statement: SQLAlchemy select statement

        Returns:
            Modified select statement
        """
        ...


class OrderBy(StatementFilter):
    """Ordering by a named column.

    Example:
        stmt = OrderBy("created_at", "desc").apply(stmt)
    """

    def __init__(self, field: str, direction: str = "asc"):
        self.field = field
        self.direction = direction

    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Apply ordering to statement; an empty field is a no-op."""
        if not self.field:
            return statement
        column = resolve_column(statement, self.field)
        if self.direction == "desc":
            return statement.order_by(column.desc())
        return statement.order_by(column.asc())


class LimitOffset(StatementFilter):
    """Pagination using LIMIT and OFFSET.

    Example:
        # Page 3 of 20
        stmt = LimitOffset(limit=20, offset=40).apply(stmt)
    """

    def __init__(self, limit: int, offset: int = 0):
        """Initialize pagination filter.

        Args:
            limit: Maximum number of results
            offset: Number of results to skip
        """
        self.limit = limit
        self.offset = offset

    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Apply pagination to statement."""
        return statement.offset(self.offset).limit(self.limit)


class FieldSelection(StatementFilter):
    """Restrict the statement to the named columns.

    An empty list, or one starting with ``"*"``, leaves the statement alone.

    Example:
        stmt = FieldSelection(["name", "email"]).apply(select(User))
        # SELECT users.name, users.email FROM users
    """

    def __init__(self, fields: Sequence[str]):
        self.fields = list(fields)

    @property
    def is_active(self) -> bool:
        return bool(self.fields) and self.fields[0] != WILDCARD

    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Replace the selected columns."""
        if not self.is_active:
            return statement
        columns = [resolve_column(statement, name) for name in self.fields]
        return statement.with_only_columns(*columns, maintain_column_froms=True)


__all__ = [
    "FieldSelection",
    "LimitOffset",
    "OrderBy",
    "StatementFilter",
    "resolve_column",
]
