"""Pagination driver for SQLAlchemy statements.

One paginated fetch moves through these stages:

    START -> VALIDATED -> COUNTED -> PAGINATED -> FINALIZED
       \\__________\\___________\\__________\\______> FAILED

1. VALIDATED: ``metadata.validate()`` passed (otherwise InvalidMetadataError)
2. COUNTED: ``SELECT count(*)`` over the statement (or a separate count
   statement) set ``metadata.total_rows``
3. PAGINATED: the statement got field selection, ordering and either
   OFFSET/LIMIT or a keyset condition, and was executed
4. FINALIZED: derived fields were recomputed and, in cursor mode, the
   next cursor was stored on ``metadata.cursor``

Database errors from the count or the fetch propagate unchanged.

Usage:
    meta = Metadata().with_page(2).with_page_size(20).with_sort("name")
    users = await paginate(session, select(User), meta)
    meta.total_pages, meta.has_next

    # Count differs from the fetched rows (e.g. fan-out joins)
    users = await paginate_with_count(session, joined_stmt, select(User), meta)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from sqlalchemy import Select, func, select
from sqlalchemy.exc import CompileError

from metakit.core.database.dialects import Dialect
from metakit.core.database.filters import FieldSelection, LimitOffset, OrderBy
from metakit.core.exceptions import InvalidCursorError, InvalidMetadataError
from metakit.core.pagination.cursor import CursorCodec
from metakit.core.pagination.filters import CursorFilter
from metakit.core.pagination.metadata import DebugInfo, Metadata, PaginationMode
from metakit.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy.engine import Result
    from sqlalchemy.ext.asyncio import AsyncSession

    from metakit.core.database.optimizer import QueryOptimizer
    from metakit.core.settings.pagination import PaginationSettings


class PaginationStage(StrEnum):
    """Stages of a single paginated fetch."""

    START = "start"
    VALIDATED = "validated"
    COUNTED = "counted"
    PAGINATED = "paginated"
    FINALIZED = "finalized"
    FAILED = "failed"


@dataclass(slots=True)
class PaginationRun:
    """Progress of one paginated fetch.

    Attributes:
        mode: Offset or cursor pagination
        stage: Last stage reached
        failed_at: Stage that was active when the run failed
        query: Rendered paginated statement (debug mode only)
        started: perf_counter() value when the run began
    """

    mode: PaginationMode
    stage: PaginationStage = PaginationStage.START
    failed_at: PaginationStage | None = None
    query: str = ""
    started: float = field(default_factory=time.perf_counter)

    def advance(self, stage: PaginationStage) -> None:
        self.stage = stage

    def fail(self) -> None:
        self.failed_at = self.stage
        self.stage = PaginationStage.FAILED

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self.started


def _selects_single_entity(statement: Select[Any]) -> bool:
    """True for ``select(Model)``: rows come back as model instances."""
    descriptions = statement.column_descriptions
    if len(descriptions) != 1:
        return False
    entity = descriptions[0].get("entity")
    return entity is not None and descriptions[0].get("expr") is entity


def _materialize(result: Result[Any], *, scalars: bool) -> list[Any]:
    if scalars:
        return list(result.scalars().all())
    return [dict(row) for row in result.mappings().all()]


def _cursor_page(cursor: str) -> int | None:
    """Page recorded in ``cursor``, or None when it carries none."""
    try:
        page = CursorCodec.decode_values(cursor).get("page")
    except InvalidCursorError:
        # CursorFilter decides whether this is fatal
        return None
    if isinstance(page, int) and not isinstance(page, bool) and page >= 1:
        return page
    return None


def _projection(metadata: Metadata) -> list[str]:
    """Columns to select; cursor mode always fetches the cursor column."""
    fields = list(metadata.selected_fields)
    if (
        metadata.is_cursor_based
        and FieldSelection(fields).is_active
        and metadata.cursor_field not in fields
    ):
        fields.append(metadata.cursor_field)
    return fields


class Paginator:
    """Offset and cursor pagination over SQLAlchemy select statements.

    Session is always explicit; a Paginator holds only settings and can be
    shared. Per-request state lives on ``Metadata``.

    Example:
        paginator = Paginator(PaginationSettings(strict_cursor=True))
        items = await paginator.paginate(session, select(User), meta)
    """

    __slots__ = ("settings", "_logger", "_lazy")

    def __init__(self, settings: PaginationSettings | None = None) -> None:
        """Initialize paginator.

        Args:
            settings: Pagination settings (cached settings when omitted)
        """
        if settings is None:
            from metakit.core.settings.loader import get_pagination_settings

            settings = get_pagination_settings()
        self.settings = settings
        # Standard logger for INFO/WARNING/ERROR
        self._logger = logging.getLogger("metakit.pagination")
        # Lazy logger for DEBUG (zero overhead when DEBUG disabled)
        self._lazy = get_lazy_logger("metakit.pagination")

    def scope(self, metadata: Metadata) -> Callable[[Select[Any]], Select[Any]]:
        """Return a function that paginates a statement according to ``metadata``.

        The function normalizes ``metadata`` and applies, in order: field
        selection, then either keyset seek + cursor ordering + LIMIT (cursor
        mode) or ORDER BY sort + OFFSET/LIMIT (offset mode). No count is run.

        Example:
            stmt = paginator.scope(meta)(select(User))
        """

        def apply(statement: Select[Any]) -> Select[Any]:
            return self.build_statement(statement, metadata)

        return apply

    def build_statement(self, statement: Select[Any], metadata: Metadata) -> Select[Any]:
        """Apply metadata to ``statement``; see ``scope``.

        In cursor mode the page number is taken from the incoming cursor
        (its ``page`` plus one), and the cursor column is selected even
        when ``selected_fields`` leaves it out.

        Raises:
            InvalidCursorError: In strict mode, for an undecodable cursor
        """
        if metadata.is_cursor_based and metadata.cursor:
            page = _cursor_page(metadata.cursor)
            if page is not None:
                metadata.page = page + 1
        metadata.normalize(self.settings.default_page_size)

        statement = FieldSelection(_projection(metadata)).apply(statement)

        if metadata.is_cursor_based:
            statement = CursorFilter(
                metadata.cursor,
                metadata.cursor_field,
                metadata.cursor_order,
                limit=metadata.get_limit(),
                strict=self.settings.strict_cursor,
            ).apply(statement)
            # sort acts as a tie-breaker behind the cursor column
            if metadata.sort and metadata.sort != metadata.cursor_field:
                statement = OrderBy(metadata.sort, metadata.sort_direction).apply(statement)
            return statement

        statement = OrderBy(metadata.sort, metadata.sort_direction).apply(statement)
        return LimitOffset(metadata.get_limit(), metadata.get_offset()).apply(statement)

    async def paginate(
        self,
        session: AsyncSession,
        statement: Select[Any],
        metadata: Metadata,
    ) -> list[Any]:
        """Count, paginate and execute ``statement``.

        Args:
            session: Database session
            statement: Select without pagination
            metadata: Request metadata, updated in place

        Returns:
            Model instances for ``select(Model)``, otherwise row dicts

        Raises:
            InvalidMetadataError: If metadata fails validation
            InvalidCursorError: In strict mode, for an undecodable cursor
        """
        return await self._run(session, statement, statement, metadata)

    async def paginate_with_count(
        self,
        session: AsyncSession,
        statement: Select[Any],
        count_statement: Select[Any],
        metadata: Metadata,
    ) -> list[Any]:
        """Like ``paginate`` but ``total_rows`` comes from ``count_statement``.

        Useful when the fetched statement joins in rows that should not be
        counted, or when only a subset should drive the page math.
        """
        return await self._run(session, statement, count_statement, metadata)

    async def optimized_paginate(
        self,
        session: AsyncSession,
        statement: Select[Any],
        metadata: Metadata,
        optimizer: QueryOptimizer,
    ) -> list[Any]:
        """Apply ``optimizer`` to the statement, then ``paginate``."""
        dialect = Dialect.from_name(session.get_bind().dialect.name)
        optimized = optimizer.apply(statement, dialect)
        return await self._run(session, optimized, optimized, metadata)

    async def count(self, session: AsyncSession, statement: Select[Any]) -> int:
        """Count rows matched by ``statement`` (its ORDER BY is dropped)."""
        count_stmt = select(func.count()).select_from(statement.order_by(None).subquery())
        return int((await session.execute(count_stmt)).scalar_one())

    async def _run(
        self,
        session: AsyncSession,
        statement: Select[Any],
        count_statement: Select[Any],
        metadata: Metadata,
    ) -> list[Any]:
        run = PaginationRun(mode=metadata.mode)
        debug = metadata.debug or self.settings.debug

        try:
            validation = metadata.validate()
            if not validation.is_valid:
                raise InvalidMetadataError(validation.errors)
            run.advance(PaginationStage.VALIDATED)

            metadata.total_rows = await self.count(session, count_statement)
            run.advance(PaginationStage.COUNTED)

            paginated = self.build_statement(statement, metadata)
            if debug:
                run.query = self._render(session, paginated)
            result = await session.execute(paginated)
            rows = _materialize(result, scalars=_selects_single_entity(paginated))
            run.advance(PaginationStage.PAGINATED)
        except Exception:
            run.fail()
            if debug:
                metadata.debug_info = self._debug_info(run, metadata)
            self._lazy.debug(
                lambda: f"pagination failed at {run.failed_at} ({run.mode}, page={metadata.page})"
            )
            raise

        metadata.normalize(self.settings.default_page_size)
        if metadata.mode is PaginationMode.CURSOR:
            # a short page is the last one whatever the count says
            metadata.has_next = metadata.has_next and len(rows) == metadata.get_limit()
            metadata.cursor = self._next_cursor(metadata, rows[-1]) if metadata.has_next else ""
            extra = _projection(metadata)[len(metadata.selected_fields):]
            if extra:
                rows = [{k: v for k, v in row.items() if k not in extra} for row in rows]
        run.advance(PaginationStage.FINALIZED)

        self._lazy.debug(
            lambda: (
                f"db.paginate[{run.mode}]: page={metadata.page} size={metadata.page_size} "
                f"-> {len(rows)} rows of {metadata.total_rows}, has_next={metadata.has_next}"
            )
        )

        if debug:
            metadata.debug_info = self._debug_info(run, metadata)
            self._logger.info(
                "Query: %s | time: %.6fs | total rows: %d | total pages: %d",
                run.query,
                metadata.debug_info.elapsed,
                metadata.total_rows,
                metadata.total_pages,
            )

        return rows

    @staticmethod
    def _debug_info(run: PaginationRun, metadata: Metadata) -> DebugInfo:
        return DebugInfo(
            query=run.query,
            elapsed=run.elapsed,
            total_rows=metadata.total_rows,
            total_pages=metadata.total_pages,
            stage=run.stage.value,
            failed_at=run.failed_at.value if run.failed_at else None,
        )

    def _next_cursor(self, metadata: Metadata, last_row: Any) -> str:
        fields = [metadata.cursor_field]
        fields.extend(
            name for name in self.settings.cursor_identity_fields if name != metadata.cursor_field
        )
        return CursorCodec.create_cursor(last_row, fields, page=metadata.page)

    @staticmethod
    def _render(session: AsyncSession, statement: Select[Any]) -> str:
        dialect = session.get_bind().dialect
        try:
            compiled = statement.compile(dialect=dialect, compile_kwargs={"literal_binds": True})
        except (CompileError, NotImplementedError):
            compiled = statement.compile(dialect=dialect)
        return str(compiled)


_default_paginator: Paginator | None = None


def get_paginator() -> Paginator:
    """Shared Paginator built from cached settings."""
    global _default_paginator
    if _default_paginator is None:
        _default_paginator = Paginator()
    return _default_paginator


def paginate_scope(metadata: Metadata) -> Callable[[Select[Any]], Select[Any]]:
    """Module-level shortcut for ``Paginator.scope``."""
    return get_paginator().scope(metadata)


async def paginate(session: AsyncSession, statement: Select[Any], metadata: Metadata) -> list[Any]:
    """Module-level shortcut for ``Paginator.paginate``."""
    return await get_paginator().paginate(session, statement, metadata)


async def paginate_with_count(
    session: AsyncSession,
    statement: Select[Any],
    count_statement: Select[Any],
    metadata: Metadata,
) -> list[Any]:
    """Module-level shortcut for ``Paginator.paginate_with_count``."""
    return await get_paginator().paginate_with_count(session, statement, count_statement, metadata)


async def optimized_paginate(
    session: AsyncSession,
    statement: Select[Any],
    metadata: Metadata,
    optimizer: QueryOptimizer,
) -> list[Any]:
    """Module-level shortcut for ``Paginator.optimized_paginate``."""
    return await get_paginator().optimized_paginate(session, statement, metadata, optimizer)


def reset_paginator() -> None:
    """Drop the shared Paginator so the next call re-reads settings."""
    global _default_paginator
    _default_paginator = None


__all__ = [
    "PaginationRun",
    "PaginationStage",
    "Paginator",
    "get_paginator",
    "optimized_paginate",
    "paginate",
    "paginate_scope",
    "paginate_with_count",
    "reset_paginator",
]
