"""Logging configuration settings."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """Library logging configuration.

    Environment variables use METAKIT_LOG_ prefix.
    Example: METAKIT_LOG_LEVEL=DEBUG

    Only the ``metakit`` logger hierarchy is configured; the root logger
    belongs to the host application.
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Level of the metakit logger (DEBUG|INFO|WARNING|ERROR|CRITICAL)",
    )
    format: str = Field(
        default="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        description="logging.Formatter format string for the metakit handler",
    )
    propagate: bool = Field(
        default=True,
        description="Let metakit records propagate to the host's root handlers",
    )

    model_config = SettingsConfigDict(
        env_prefix="METAKIT_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )
