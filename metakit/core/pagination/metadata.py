"""Pagination metadata.

``Metadata`` is the single mutable record that travels through one
paginated request. The caller fills in the requested page, size, sort and
cursor settings; the paginator validates it, counts rows, fetches the
page and writes the derived fields back.

Offset mode:
    meta = Metadata().with_page(3).with_page_size(20).with_sort("name")
    items = await paginate(session, select(User), meta)
    meta.total_pages, meta.has_next, meta.from_row, meta.to_row

Cursor mode:
    meta = Metadata().with_cursor_pagination("created_at", "desc")
    items = await paginate(session, select(User), meta)
    next_meta = Metadata().with_cursor_pagination("created_at", "desc", cursor=meta.cursor)

A Metadata instance belongs to one request and is not safe to share.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from metakit.core.pagination.validation import (
    MAX_PAGE_SIZE,
    SORT_DIRECTIONS,
    WILDCARD_FIELD,
    ValidationResult,
    validate_metadata,
)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10


class SortDirection(StrEnum):
    """Sort direction for ORDER BY and cursor comparisons."""

    ASC = "asc"
    DESC = "desc"


class PaginationMode(StrEnum):
    """How a page is located in the result set."""

    OFFSET = "offset"
    CURSOR = "cursor"


@dataclass(slots=True, frozen=True)
class DebugInfo:
    """Diagnostics recorded for a request when debug mode is on.

    Attributes:
        query: Text of the paginated statement that was issued
        elapsed: Wall time of the whole request in seconds
        total_rows: Row count used for the page math
        total_pages: Derived page count
        stage: Last stage the paginator reached ("finalized" or "failed");
            empty for raw queries
        failed_at: Stage that was active when the request failed
    """

    query: str
    elapsed: float
    total_rows: int
    total_pages: int
    stage: str = ""
    failed_at: str | None = None


@dataclass(slots=True)
class Metadata:
    """Pagination, sorting and field-selection state for one request.

    Attributes:
        page: Requested page (1-based)
        page_size: Items per page (1..100 after normalizing)
        sort: Column to sort by; empty means unsorted
        sort_direction: "asc" or "desc"
        cursor: Opaque position token for cursor mode
        cursor_field: Column compared against the cursor value
        cursor_order: Direction of the cursor column ("asc"/"desc")
        selected_fields: Columns to fetch; empty means all
        total_rows: Row count, authoritative only once set from a count query
        total_pages: Derived from total_rows and page_size
        has_next: Whether a later page exists
        has_previous: Whether an earlier page exists
        from_row: 1-based index of the first row on this page
        to_row: 1-based index of the last row on this page
        validation_rules: Extra rules keyed by field ("page_size", "sort", "fields")
        debug: Record query text and timing for this request
        debug_info: Populated by the paginator when debug is on
    """

    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    sort: str = ""
    sort_direction: str = SortDirection.ASC.value
    cursor: str = ""
    cursor_field: str = ""
    cursor_order: str = ""
    selected_fields: list[str] = field(default_factory=list)
    total_rows: int = 0
    total_pages: int = 0
    has_next: bool = False
    has_previous: bool = False
    from_row: int = 0
    to_row: int = 0
    validation_rules: dict[str, str] = field(default_factory=dict)
    debug: bool = False
    debug_info: DebugInfo | None = None

    # Fluent configuration

    def with_page(self, page: int) -> Metadata:
        self.page = page
        return self

    def with_page_size(self, page_size: int) -> Metadata:
        self.page_size = page_size
        return self

    def with_sort(self, sort: str) -> Metadata:
        self.sort = sort
        return self

    def with_sort_direction(self, direction: str) -> Metadata:
        self.sort_direction = direction
        return self

    def with_cursor(self, cursor: str) -> Metadata:
        self.cursor = cursor
        return self

    def with_cursor_field(self, cursor_field: str) -> Metadata:
        self.cursor_field = cursor_field
        return self

    def with_cursor_order(self, order: str) -> Metadata:
        self.cursor_order = order
        return self

    def with_cursor_pagination(self, cursor_field: str, order: str = "asc", cursor: str = "") -> Metadata:
        """Switch to cursor mode in one call."""
        self.cursor_field = cursor_field
        self.cursor_order = order
        self.cursor = cursor
        return self

    def with_fields(self, *fields: str) -> Metadata:
        """Select columns; duplicates are dropped, order is kept."""
        self.selected_fields = list(dict.fromkeys(fields))
        return self

    def with_validation_rule(self, target: str, rule: str) -> Metadata:
        self.validation_rules[target] = rule
        return self

    def with_debug(self, debug: bool) -> Metadata:
        self.debug = debug
        return self

    # State

    @property
    def is_cursor_based(self) -> bool:
        """Cursor mode is active when a cursor or a cursor field is set."""
        return bool(self.cursor or self.cursor_field)

    @property
    def mode(self) -> PaginationMode:
        return PaginationMode.CURSOR if self.is_cursor_based else PaginationMode.OFFSET

    def validate(self) -> ValidationResult:
        """Check built-in invariants and custom rules without modifying state."""
        return validate_metadata(self)

    def normalize(self, default_page_size: int = DEFAULT_PAGE_SIZE) -> Metadata:
        """Clamp requested values and recompute derived fields.

        - page below 1 becomes 1
        - page_size below 1 becomes ``default_page_size``; above 100 becomes 100
        - an empty or unknown sort_direction becomes "asc"
        - an unknown cursor_order is cleared
        - when total_rows > 0: total_pages, has_next, has_previous,
          from_row and to_row are recomputed (to_row clamped to total_rows)

        Derived fields are left alone while total_rows is 0. Calling this
        twice yields the same state.

        Returns:
            self, for chaining
        """
        if self.page < 1:
            self.page = DEFAULT_PAGE

        if self.page_size < 1:
            self.page_size = default_page_size
        elif self.page_size > MAX_PAGE_SIZE:
            self.page_size = MAX_PAGE_SIZE

        if self.sort_direction not in SORT_DIRECTIONS:
            self.sort_direction = SortDirection.ASC.value

        if self.cursor_order and self.cursor_order not in SORT_DIRECTIONS:
            self.cursor_order = ""

        if self.total_rows > 0:
            self.total_pages = (self.total_rows + self.page_size - 1) // self.page_size
            self.has_next = self.page < self.total_pages
            self.has_previous = self.page > 1
            self.from_row = (self.page - 1) * self.page_size + 1
            self.to_row = min(self.page * self.page_size, self.total_rows)

        return self

    validate_and_set_defaults = normalize

    # Query parts

    def get_offset(self) -> int:
        return (self.page - 1) * self.page_size

    def get_limit(self) -> int:
        return self.page_size

    def get_sort_clause(self) -> str:
        """Return ``"<sort> <direction>"``, or "" when no sort is set."""
        if not self.sort:
            return ""
        return f"{self.sort} {self.sort_direction}"

    def get_selected_fields(self) -> list[str]:
        return list(self.selected_fields) or [WILDCARD_FIELD]

    def to_dict(self) -> dict[str, Any]:
        """Public fields keyed by their wire names."""
        data: dict[str, Any] = {
            "page": self.page,
            "page_size": self.page_size,
            "sort": self.sort,
            "sort_direction": self.sort_direction,
            "total_rows": self.total_rows,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
            "has_previous": self.has_previous,
            "from_row": self.from_row,
            "to_row": self.to_row,
        }
        if self.is_cursor_based:
            data["cursor"] = self.cursor
            data["cursor_field"] = self.cursor_field
            data["cursor_order"] = self.cursor_order
        if self.selected_fields:
            data["fields"] = list(self.selected_fields)
        return data


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "DebugInfo",
    "Metadata",
    "PaginationMode",
    "SortDirection",
]
