"""Offset and cursor pagination with validation and field selection.

Offset style:
    meta = Metadata().with_page(2).with_page_size(20).with_sort("name")
    users = await paginate(session, select(User), meta)
    meta.total_pages, meta.has_next, meta.from_row, meta.to_row

Cursor style:
    meta = Metadata().with_cursor_pagination("created_at", "desc")
    users = await paginate(session, select(User), meta)
    next_meta = Metadata().with_cursor_pagination("created_at", "desc", cursor=meta.cursor)

The cursor encodes the last row's values that the next page seeks past.
Cursors are base64 JSON strings that clients pass back unchanged.
"""

from metakit.core.pagination.cursor import CursorCodec
from metakit.core.pagination.filters import CursorFilter
from metakit.core.pagination.metadata import (
    DEFAULT_PAGE_SIZE,
    DebugInfo,
    Metadata,
    PaginationMode,
    SortDirection,
)
from metakit.core.pagination.paginator import (
    PaginationRun,
    PaginationStage,
    Paginator,
    optimized_paginate,
    paginate,
    paginate_scope,
    paginate_with_count,
)
from metakit.core.pagination.validation import (
    MAX_PAGE_SIZE,
    MIN_PAGE_SIZE,
    ErrorCode,
    ValidationErrorDetail,
    ValidationResult,
    ValidationRule,
)

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "MIN_PAGE_SIZE",
    # Cursor utilities
    "CursorCodec",
    # Filter
    "CursorFilter",
    "DebugInfo",
    "ErrorCode",
    # State
    "Metadata",
    "PaginationMode",
    "PaginationRun",
    "PaginationStage",
    # Driver
    "Paginator",
    "SortDirection",
    # Validation
    "ValidationErrorDetail",
    "ValidationResult",
    "ValidationRule",
    "optimized_paginate",
    "paginate",
    "paginate_scope",
    "paginate_with_count",
]
