"""Cached settings loaders.

Each getter builds its settings object from the environment on first use
and returns the same frozen instance afterwards.

Usage:
    from metakit.core.settings.loader import get_pagination_settings

    page_size = get_pagination_settings().default_page_size

Testing:
    Environment changes are only seen after clear_all_caches(). Tests
    that need specific values can also pass settings explicitly:
    Paginator(PaginationSettings(strict_cursor=True))
"""

from __future__ import annotations

from functools import lru_cache

from .logs import LoggingSettings
from .optimizer import OptimizerSettings
from .pagination import PaginationSettings


@lru_cache(maxsize=1)
def get_pagination_settings() -> PaginationSettings:
    """Settings used by Paginator instances built without explicit settings."""
    return PaginationSettings()


@lru_cache(maxsize=1)
def get_optimizer_settings() -> OptimizerSettings:
    """Settings read by ``QueryOptimizer.from_settings()``."""
    return OptimizerSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Settings read by ``setup_logging()``."""
    return LoggingSettings()


def clear_all_caches() -> None:
    """Forget every cached settings instance so the next call re-reads the environment."""
    get_pagination_settings.cache_clear()
    get_optimizer_settings.cache_clear()
    get_logging_settings.cache_clear()
