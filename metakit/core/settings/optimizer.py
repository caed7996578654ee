"""Query optimizer settings.

Defaults for ``QueryOptimizer.from_settings()``. ``use_query_cache`` is an
advisory flag only; nothing in metakit caches results.

Environment variables use METAKIT_OPTIMIZER_ prefix.
Example: METAKIT_OPTIMIZER_MAX_ROWS=5000, METAKIT_OPTIMIZER_USE_INDEX_HINT=false
"""

from __future__ import annotations

from datetime import timedelta

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OptimizerSettings(BaseSettings):
    """Query optimizer configuration settings."""

    use_index_hint: bool = Field(default=True, description="Inject index hints")
    use_query_cache: bool = Field(
        default=True,
        description="Advisory query cache flag (no cache is implemented)",
    )
    batch_size: int = Field(
        default=1000,
        ge=0,
        description="Advisory batch size passed to the execution layer",
    )
    timeout: timedelta = Field(
        default=timedelta(seconds=30),
        description="Advisory query timeout (not enforced by metakit)",
    )
    max_rows: int = Field(
        default=10000,
        ge=0,
        description="Row limit appended to optimized queries (0 disables)",
    )
    use_materialized: bool = Field(
        default=False,
        description="Prefix queries with a materialization clause",
    )

    model_config = SettingsConfigDict(
        env_prefix="METAKIT_OPTIMIZER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )
