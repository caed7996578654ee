"""Pydantic Settings v2 configuration for metakit.

Each concern has its own frozen settings class and env prefix:
    - PaginationSettings (METAKIT_PAGINATION_)
    - OptimizerSettings (METAKIT_OPTIMIZER_)
    - LoggingSettings (METAKIT_LOG_)

Import settings via cached loaders:
    from metakit.core.settings import get_pagination_settings
"""

from __future__ import annotations

from .loader import (
    clear_all_caches,
    get_logging_settings,
    get_optimizer_settings,
    get_pagination_settings,
)
from .logs import LoggingSettings
from .optimizer import OptimizerSettings
from .pagination import PaginationSettings

__all__ = [
    "LoggingSettings",
    "OptimizerSettings",
    "PaginationSettings",
    "clear_all_caches",
    "get_logging_settings",
    "get_optimizer_settings",
    "get_pagination_settings",
]
