"""SQL helpers: statement filters, dialects, raw SQL pagination and query hints."""

from metakit.core.database.dialects import Dialect, QueryFragment
from metakit.core.database.filters import (
    FieldSelection,
    LimitOffset,
    OrderBy,
    StatementFilter,
)
from metakit.core.database.optimizer import QueryOptimizer
from metakit.core.database.raw import (
    build_count_query,
    build_paginated_query,
    query_context_paginate,
)

__all__ = [
    "Dialect",
    "FieldSelection",
    "LimitOffset",
    "OrderBy",
    "QueryFragment",
    "QueryOptimizer",
    "StatementFilter",
    "build_count_query",
    "build_paginated_query",
    "query_context_paginate",
]
