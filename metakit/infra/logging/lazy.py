"""Lazy evaluation support for logging.

Debug traces in the pagination driver describe statements and cursor
payloads. Building those strings costs a statement compile, so they are
passed as callables and only evaluated when the level is enabled.
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any


class LazyLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that evaluates callable messages and arguments lazily.

    Bound context is merged into each record's ``extra`` so handlers can
    pick up fields such as ``mode`` or ``dialect``.

    Example:
        ```python
        logger = get_lazy_logger("metakit.pagination", mode="cursor")
        logger.debug(lambda: f"statement: {compile_statement(stmt)}")
        logger.debug("page %s of %s", lambda: meta.page, lambda: meta.total_pages)
        ```
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        """Merge bound context with per-call ``extra``."""
        if self.extra:
            kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def log(self, level: int, msg: Any, *args: Any, **kwargs: Any) -> None:
        """Emit a record, resolving callables first.

        ``debug()``, ``info()`` and friends route through here, so a
        callable message or argument is never invoked for a disabled level.
        """
        if not self.isEnabledFor(level):
            return

        if callable(msg):
            msg = msg()
        resolved = tuple(arg() if callable(arg) else arg for arg in args)

        super().log(level, msg, *resolved, **kwargs)


def get_lazy_logger(name: str, **context: Any) -> LazyLoggerAdapter:
    """Return a LazyLoggerAdapter for ``name``, binding ``context`` to every record."""
    return LazyLoggerAdapter(logging.getLogger(name), context or {})


__all__ = ["LazyLoggerAdapter", "get_lazy_logger"]
