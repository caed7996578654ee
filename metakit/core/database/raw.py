"""Raw SQL pagination.

For callers that hold hand-written SQL instead of a ``Select``. The query
is extended with the pagination clauses using the placeholder style of
the target dialect and executed with ``exec_driver_sql``, so the text
reaches the DBAPI driver unchanged.

Usage:
    async with engine.connect() as conn:
        meta = Metadata(page=2, page_size=20, sort="id", total_rows=100)
        result = await query_context_paginate(
            conn, Dialect.SQLITE, "SELECT * FROM items WHERE owner = ?", meta, "alice"
        )
        rows = result.mappings().all()

Unlike the ORM entry points, an undecodable cursor is an error here:
the seek condition cannot be built without its value.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from metakit.core.database.dialects import Dialect, QueryFragment
from metakit.core.database.lexer import find_keyword
from metakit.core.exceptions import InvalidCursorError, InvalidMetadataError
from metakit.core.pagination.cursor import CursorCodec
from metakit.core.pagination.metadata import DebugInfo
from metakit.core.settings.loader import get_pagination_settings
from metakit.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy.engine import CursorResult
    from sqlalchemy.ext.asyncio import AsyncConnection

    from metakit.core.pagination.metadata import Metadata

logger = logging.getLogger("metakit.database")
_lazy = get_lazy_logger("metakit.database")


def _literal(text: str) -> str:
    """Escape braces so identifiers survive ``str.format``."""
    return text.replace("{", "{{").replace("}", "}}")


def total_pages(metadata: Metadata) -> int:
    """Page count for the raw entry point: 1 when page_size is not positive."""
    if metadata.page_size > 0:
        return (metadata.total_rows + metadata.page_size - 1) // metadata.page_size
    return 1


def build_paginated_query(
    dialect: Dialect,
    query: str,
    metadata: Metadata,
    params: tuple[Any, ...] = (),
) -> QueryFragment:
    """Append pagination clauses to ``query``.

    Offset mode:
        ``<query> ORDER BY <sort> <direction> LIMIT ? OFFSET ?``
        (no ORDER BY when ``metadata.sort`` is empty)

    Cursor mode:
        ``<query> WHERE <field> <op> ? ORDER BY <field> <order> LIMIT ?``
        (no WHERE on the first page; ``AND`` instead of ``WHERE`` when the
        query already filters)

    Args:
        dialect: Target dialect (decides ``?`` vs ``$n``)
        query: Base query, possibly with its own placeholders
        metadata: Validated pagination metadata
        params: Parameters already bound by ``query``

    Returns:
        Fragment with the full SQL text and parameters

    Raises:
        InvalidCursorError: If the cursor cannot be decoded or holds no
            value for the cursor field
    """
    fragment = QueryFragment(query, tuple(params))

    if metadata.is_cursor_based:
        field = _literal(metadata.cursor_field)
        order = "desc" if metadata.cursor_order == "desc" else "asc"
        if metadata.cursor:
            value = CursorCodec.comparison_value(metadata.cursor, metadata.cursor_field)
            if value is None:
                raise InvalidCursorError(
                    metadata.cursor, f"cursor has no value for {metadata.cursor_field!r}"
                )
            operator = "<" if order == "desc" else ">"
            keyword = "AND" if find_keyword(query, "where") >= 0 else "WHERE"
            fragment = fragment.append(dialect, f"{keyword} {field} {operator} {{}}", value)
        return fragment.append(dialect, f"ORDER BY {field} {order} LIMIT {{}}", metadata.page_size)

    if metadata.sort:
        fragment = fragment.append(
            dialect, f"ORDER BY {_literal(metadata.sort)} {_literal(metadata.sort_direction)}"
        )
    return fragment.append(dialect, "LIMIT {} OFFSET {}", metadata.page_size, metadata.get_offset())


def build_count_query(query: str, params: tuple[Any, ...] = ()) -> QueryFragment:
    """Wrap ``query`` in ``SELECT COUNT(*)``; parameters keep their positions."""
    return QueryFragment(f"SELECT COUNT(*) FROM ({query}) AS metakit_count", tuple(params))


async def query_context_paginate(
    connection: AsyncConnection,
    dialect: Dialect,
    query: str,
    metadata: Metadata,
    *params: Any,
    count: bool = False,
) -> CursorResult[Any]:
    """Paginate a raw SQL query and execute it.

    ``metadata.total_rows`` is taken as given unless ``count`` is set, in
    which case an authoritative ``SELECT COUNT(*)`` runs first and the
    derived fields are recomputed from it.

    Args:
        connection: Open async connection
        dialect: Dialect of the connection
        query: Base query (without ORDER BY / LIMIT)
        metadata: Pagination metadata; derived fields are updated in place
        *params: Positional parameters of ``query``
        count: Run a count query before fetching

    Returns:
        Driver result for the page

    Raises:
        InvalidMetadataError: If metadata fails validation
        InvalidCursorError: If the cursor cannot be decoded
    """
    started = time.perf_counter()

    validation = metadata.validate()
    if not validation.is_valid:
        raise InvalidMetadataError(validation.errors)

    if count:
        count_fragment = build_count_query(query, params)
        count_result = await connection.exec_driver_sql(count_fragment.sql, count_fragment.params or None)
        metadata.total_rows = int(count_result.scalar_one())

    metadata.normalize(get_pagination_settings().default_page_size)
    if not metadata.is_cursor_based:
        metadata.total_pages = total_pages(metadata)

    fragment = build_paginated_query(dialect, query, metadata, params)

    _lazy.debug(lambda: f"db.raw_paginate[{dialect}]: {fragment.sql} params={fragment.params!r}")
    result = await connection.exec_driver_sql(fragment.sql, fragment.params)

    if metadata.debug:
        metadata.debug_info = DebugInfo(
            query=fragment.sql,
            elapsed=time.perf_counter() - started,
            total_rows=metadata.total_rows,
            total_pages=metadata.total_pages,
        )
        logger.info(
            "Query: %s | time: %.6fs | total rows: %d | total pages: %d",
            fragment.sql,
            metadata.debug_info.elapsed,
            metadata.total_rows,
            metadata.total_pages,
        )

    return result


__all__ = [
    "build_count_query",
    "build_paginated_query",
    "query_context_paginate",
    "total_pages",
]
