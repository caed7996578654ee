"""Query optimization hints.

Best-effort, dialect-aware rewrites applied to a query before it is
paginated:

- index hint: ``FORCE INDEX (idx_created_at)`` before WHERE on MySQL,
  ``/*+ IndexScan(table_name idx_created_at) */`` after WHERE on PostgreSQL
- materialization prefix: ``WITH MATERIALIZED`` on PostgreSQL,
  ``WITH RECURSIVE`` on MySQL
- row limit: ``LIMIT <max_rows>``

The hinted index name is fixed. This is not a query planner; nothing
here checks that the rewritten SQL is valid for arbitrary input.

Usage:
    optimizer = QueryOptimizer().with_index_hint(True).with_max_rows(0)
    optimizer.optimize("SELECT * FROM users WHERE age > 18", Dialect.MYSQL)
    # 'SELECT * FROM users FORCE INDEX (idx_created_at) WHERE age > 18'
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from metakit.core.database.dialects import Dialect
from metakit.core.database.lexer import find_keyword

if TYPE_CHECKING:
    from sqlalchemy import Select

    from metakit.core.settings.optimizer import OptimizerSettings

logger = logging.getLogger("metakit.database")

INDEX_NAME = "idx_created_at"
MYSQL_INDEX_HINT = f"FORCE INDEX ({INDEX_NAME})"
POSTGRESQL_INDEX_HINT = f"/*+ IndexScan(table_name {INDEX_NAME}) */"

# MySQL has no materialization clause; WITH RECURSIVE is what the hint
# layer has always emitted there, and callers compare against it.
MATERIALIZED_PREFIX = {
    Dialect.POSTGRESQL: "WITH MATERIALIZED",
    Dialect.MYSQL: "WITH RECURSIVE",
}


@dataclass(frozen=True, slots=True)
class QueryOptimizer:
    """Immutable set of optimization options.

    Every ``with_*`` method returns a new optimizer, so a configured
    instance can be shared between tasks.

    Attributes:
        use_index_hint: Inject the fixed index hint
        use_query_cache: Advisory only; no cache exists
        batch_size: Advisory batch size for the execution layer
        timeout: Advisory timeout for the execution layer
        max_rows: Row limit (0 disables)
        use_materialized: Add the materialization prefix
    """

    use_index_hint: bool = True
    use_query_cache: bool = True
    batch_size: int = 1000
    timeout: timedelta = timedelta(seconds=30)
    max_rows: int = 10000
    use_materialized: bool = False

    @classmethod
    def from_settings(cls, settings: OptimizerSettings | None = None) -> QueryOptimizer:
        """Build an optimizer from settings (cached settings when omitted)."""
        if settings is None:
            from metakit.core.settings.loader import get_optimizer_settings

            settings = get_optimizer_settings()
        return cls(
            use_index_hint=settings.use_index_hint,
            use_query_cache=settings.use_query_cache,
            batch_size=settings.batch_size,
            timeout=settings.timeout,
            max_rows=settings.max_rows,
            use_materialized=settings.use_materialized,
        )

    def with_index_hint(self, use: bool) -> QueryOptimizer:
        return dataclasses.replace(self, use_index_hint=use)

    def with_query_cache(self, use: bool) -> QueryOptimizer:
        return dataclasses.replace(self, use_query_cache=use)

    def with_batch_size(self, size: int) -> QueryOptimizer:
        return dataclasses.replace(self, batch_size=size)

    def with_timeout(self, timeout: timedelta) -> QueryOptimizer:
        return dataclasses.replace(self, timeout=timeout)

    def with_max_rows(self, max_rows: int) -> QueryOptimizer:
        return dataclasses.replace(self, max_rows=max_rows)

    def with_materialized(self, use: bool) -> QueryOptimizer:
        return dataclasses.replace(self, use_materialized=use)

    def optimize(self, query: str, dialect: Dialect) -> str:
        """Apply index hint, materialization prefix and row limit, in that order.

        Args:
            query: SQL text
            dialect: Target dialect

        Returns:
            Rewritten SQL text
        """
        optimized = query
        if self.use_index_hint:
            optimized = add_index_hint(optimized, dialect)
        if self.use_materialized:
            optimized = add_materialized_prefix(optimized, dialect)
        if self.max_rows > 0:
            optimized = add_row_limit(optimized, self.max_rows)
        return optimized

    def apply(self, statement: Select[Any], dialect: Dialect) -> Select[Any]:
        """Apply the same options to a SQLAlchemy statement.

        The index hint becomes a table hint (MySQL) or a statement prefix
        (PostgreSQL). Batch size and timeout are stored as execution
        options for the execution layer to honor; metakit does not enforce
        them. ``max_rows`` becomes a LIMIT, which pagination replaces with
        the page size.
        """
        if self.use_index_hint:
            if dialect is Dialect.MYSQL:
                for from_clause in statement.get_final_froms():
                    statement = statement.with_hint(from_clause, MYSQL_INDEX_HINT, "mysql")
            elif dialect is Dialect.POSTGRESQL:
                statement = statement.prefix_with(POSTGRESQL_INDEX_HINT, dialect="postgresql")

        options: dict[str, Any] = {}
        if self.batch_size > 0:
            options["metakit_batch_size"] = self.batch_size
        if self.timeout > timedelta(0):
            options["metakit_timeout"] = self.timeout.total_seconds()
        if options:
            statement = statement.execution_options(**options)

        if self.max_rows > 0:
            statement = statement.limit(self.max_rows)
        return statement


def add_index_hint(query: str, dialect: Dialect) -> str:
    """Insert the index hint around the first top-level WHERE.

    Queries without a top-level WHERE, and SQLite queries, are returned
    unchanged.
    """
    position = find_keyword(query, "where")
    if position < 0:
        return query
    if dialect is Dialect.MYSQL:
        return f"{query[:position]}{MYSQL_INDEX_HINT} {query[position:]}"
    if dialect is Dialect.POSTGRESQL:
        end = position + len("where")
        return f"{query[:end]} {POSTGRESQL_INDEX_HINT}{query[end:]}"
    return query


def add_materialized_prefix(query: str, dialect: Dialect) -> str:
    prefix = MATERIALIZED_PREFIX.get(dialect)
    if prefix is None:
        return query
    if dialect is Dialect.MYSQL:
        logger.debug("MySQL has no materialization clause; emitting %s", prefix)
    return f"{prefix} {query}"


def add_row_limit(query: str, limit: int) -> str:
    return f"{query} LIMIT {limit}"


__all__ = [
    "INDEX_NAME",
    "QueryOptimizer",
    "add_index_hint",
    "add_materialized_prefix",
    "add_row_limit",
]
