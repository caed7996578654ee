"""Logging infrastructure.

Basic usage:
    import logging

    logger = logging.getLogger(__name__)

    # Lazy evaluation for expensive debug output
    from metakit.infra.logging import get_lazy_logger

    lazy_logger = get_lazy_logger(__name__)
    lazy_logger.debug(lambda: f"Statement: {render(stmt)}")  # Only runs if DEBUG enabled

    # Optional handler for scripts and tests
    from metakit.infra.logging import setup_logging

    setup_logging()
"""

from metakit.infra.logging.config import reset_logging, setup_logging
from metakit.infra.logging.lazy import LazyLoggerAdapter, get_lazy_logger

__all__ = [
    "LazyLoggerAdapter",
    "get_lazy_logger",
    "reset_logging",
    "setup_logging",
]
