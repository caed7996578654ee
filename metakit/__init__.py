"""metakit: pagination, sorting, field selection and query hints for SQLAlchemy.

    from metakit import Metadata, paginate

    meta = Metadata().with_page(1).with_page_size(20).with_sort("name")
    users = await paginate(session, select(User), meta)
"""

from metakit.core.database.dialects import Dialect
from metakit.core.database.optimizer import QueryOptimizer
from metakit.core.database.raw import query_context_paginate
from metakit.core.exceptions import (
    InvalidCursorError,
    InvalidMetadataError,
    InvalidRuleError,
    MetakitError,
)
from metakit.core.pagination.cursor import CursorCodec
from metakit.core.pagination.metadata import Metadata, PaginationMode, SortDirection
from metakit.core.pagination.paginator import (
    Paginator,
    optimized_paginate,
    paginate,
    paginate_scope,
    paginate_with_count,
)
from metakit.core.pagination.validation import ErrorCode, ValidationResult

__version__ = "0.1.0"

__all__ = [
    "CursorCodec",
    "Dialect",
    "ErrorCode",
    "InvalidCursorError",
    "InvalidMetadataError",
    "InvalidRuleError",
    "Metadata",
    "MetakitError",
    "PaginationMode",
    "Paginator",
    "QueryOptimizer",
    "SortDirection",
    "ValidationResult",
    "optimized_paginate",
    "paginate",
    "paginate_scope",
    "paginate_with_count",
    "query_context_paginate",
]
