"""Logging configuration setup.

metakit is a library: it never touches the root logger. ``setup_logging``
only attaches a stream handler to the ``metakit`` logger, once, and sets
its level from ``LoggingSettings``. Applications that already configure
logging can skip it and let records propagate.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from metakit.core.settings.logs import LoggingSettings

LIBRARY_LOGGER = "metakit"

logger = logging.getLogger(__name__)
_LOGGING_INITIALIZED = False


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
) -> logging.Logger:
    """Ensure the metakit logger is configured once.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.

    Returns:
        The configured ``metakit`` logger.

    Example:
        from metakit.infra.logging import setup_logging
        from metakit.core.settings import LoggingSettings

        setup_logging(LoggingSettings(level="DEBUG"))
    """
    global _LOGGING_INITIALIZED

    library_logger = logging.getLogger(LIBRARY_LOGGER)
    if _LOGGING_INITIALIZED and not force:
        return library_logger

    if log_settings is None:
        from metakit.core.settings.loader import get_logging_settings

        log_settings = get_logging_settings()

    for handler in list(library_logger.handlers):
        if getattr(handler, "_metakit_handler", False):
            library_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(log_settings.format))
    handler._metakit_handler = True  # type: ignore[attr-defined]
    library_logger.addHandler(handler)
    library_logger.setLevel(log_settings.level)
    library_logger.propagate = log_settings.propagate

    _LOGGING_INITIALIZED = True
    logger.debug("metakit logging configured at %s", log_settings.level)
    return library_logger


def reset_logging() -> None:
    """Remove the handler installed by ``setup_logging`` (used by tests)."""
    global _LOGGING_INITIALIZED

    library_logger = logging.getLogger(LIBRARY_LOGGER)
    for handler in list(library_logger.handlers):
        if getattr(handler, "_metakit_handler", False):
            library_logger.removeHandler(handler)
    library_logger.setLevel(logging.NOTSET)
    library_logger.propagate = True
    _LOGGING_INITIALIZED = False
