"""Pagination settings.

Process-wide defaults for the pagination driver. Per-request values
always live on ``Metadata``; these settings only cover behavior that a
deployment wants to switch on for every request.

Environment variables use METAKIT_PAGINATION_ prefix.
Example: METAKIT_PAGINATION_STRICT_CURSOR=true, METAKIT_PAGINATION_DEBUG=true
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaginationSettings(BaseSettings):
    """Pagination configuration settings.

    Attributes:
        default_page_size: Page size used when a request omits one or sends
            a value below 1.
        strict_cursor: Raise on undecodable cursors in the ORM entry points
            instead of falling back to an unfiltered first page.
        debug: Record query diagnostics for every request, regardless of
            ``Metadata.debug``.
        cursor_identity_fields: Row attributes copied into the next-page
            cursor alongside the cursor field and page number.

    Example:
        settings = PaginationSettings(strict_cursor=True)
        paginator = Paginator(settings)
    """

    default_page_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Page size applied when the requested size is below 1",
    )
    strict_cursor: bool = Field(
        default=False,
        description="Raise InvalidCursorError for malformed cursors in ORM pagination",
    )
    debug: bool = Field(
        default=False,
        description="Collect query text and timing for every paginated fetch",
    )
    cursor_identity_fields: list[str] = Field(
        default_factory=lambda: ["id", "name"],
        description="Row attributes encoded into next-page cursors",
    )

    model_config = SettingsConfigDict(
        env_prefix="METAKIT_PAGINATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )
