"""Cursor filter for SQLAlchemy queries.

The CursorFilter implements single-column keyset pagination:
- Instead of OFFSET, a WHERE condition seeks past the last seen value
- ORDER BY keeps the traversal stable across pages

How it works:
    For cursor_field="created_at", cursor_order="desc" and a cursor holding t1:
    WHERE created_at < t1 ORDER BY created_at DESC LIMIT n

The first page (no cursor) only gets the ORDER BY and LIMIT.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import Select
from sqlalchemy.sql.elements import ColumnElement

from metakit.core.database.filters import StatementFilter, resolve_column
from metakit.core.exceptions import InvalidCursorError
from metakit.core.pagination.cursor import CursorCodec

logger = logging.getLogger("metakit.pagination")


class CursorFilter(StatementFilter):
    """Apply cursor-based pagination to a SQLAlchemy query.

    Example:
        stmt = CursorFilter(
            cursor=request_cursor,
            field="created_at",
            order="desc",
            limit=10,
        ).apply(select(Event))

    Attributes:
        cursor: Encoded cursor string ("" for the first page)
        field: Column compared against the cursor value
        order: "asc" seeks with ``>``, "desc" seeks with ``<``
        limit: Page size
        strict: Raise on an undecodable cursor instead of ignoring it
    """

    def __init__(
        self,
        cursor: str,
        field: str,
        order: str = "asc",
        *,
        limit: int,
        strict: bool = False,
    ) -> None:
        """Initialize cursor filter.

        Args:
            cursor: Encoded cursor string ("" or None for first page)
            field: Column name used for seeking and ordering
            order: Direction of the cursor column
            limit: Maximum items to return (page size)
            strict: Raise InvalidCursorError for malformed cursors

        Raises:
            InvalidCursorError: If ``strict`` and the cursor cannot be decoded
        """
        self.cursor = cursor or ""
        self.field = field
        self.order = "desc" if order == "desc" else "asc"
        self.limit = limit
        self.strict = strict

        self._seek_value: Any = None
        if self.cursor:
            try:
                self._seek_value = CursorCodec.comparison_value(self.cursor, field)
            except InvalidCursorError:
                if strict:
                    raise
                # Invalid cursor, treat as first page
                logger.warning("Ignoring undecodable cursor for field %s", field)
                self._seek_value = None

    @property
    def operator(self) -> str:
        return "<" if self.order == "desc" else ">"

    @property
    def seeks(self) -> bool:
        """Whether a WHERE condition will be added."""
        return self._seek_value is not None

    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Apply seek condition, ordering and limit to statement."""
        column = resolve_column(statement, self.field)

        if self._seek_value is not None:
            value = self._convert_cursor_value(column, self._seek_value)
            condition = column < value if self.order == "desc" else column > value
            statement = statement.where(condition)

        if self.order == "desc":
            statement = statement.order_by(column.desc())
        else:
            statement = statement.order_by(column.asc())

        return statement.limit(self.limit)

    def _convert_cursor_value(self, column: ColumnElement[Any], value: Any) -> Any:
        """Convert cursor value to the column's Python type.

        Datetimes and UUIDs were serialized as strings when the cursor
        was created.
        """
        if not isinstance(value, str):
            return value

        try:
            python_type = column.type.python_type
        except NotImplementedError:
            return value

        try:
            if python_type is datetime:
                return datetime.fromisoformat(value)
            if python_type is date:
                return date.fromisoformat(value)
            if python_type is uuid.UUID:
                return uuid.UUID(value)
        except ValueError:
            return value
        return value


__all__ = ["CursorFilter"]
