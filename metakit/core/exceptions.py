"""Pagination and query exceptions.

Custom exceptions raised by the pagination layer. They carry structured
details so callers can render them however their transport needs.

Failures coming from the database (count or fetch) are not wrapped: the
SQLAlchemy exception reaches the caller unchanged.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from metakit.core.pagination.validation import ValidationErrorDetail


class MetakitError(Exception):
    """Base exception for pagination operations.

    Attributes:
        message: Error description
        details: Additional context about the error
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize error.

        Args:
            message: Error description
            details: Additional context about the error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Format error message with details."""
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class InvalidMetadataError(MetakitError):
    """Pagination metadata failed validation.

    Raised by the pagination entry points before any query is issued.
    Every violation found is listed, not only the first one.

    Attributes:
        errors: Field-level violations in the order they were found
    """

    def __init__(self, errors: Sequence[ValidationErrorDetail]):
        """Initialize invalid metadata error.

        Args:
            errors: Violations reported by ``Metadata.validate()``
        """
        self.errors = list(errors)
        summary = "; ".join(f"{e.field}: {e.message} [{e.code}]" for e in self.errors)
        super().__init__(
            f"invalid metadata: {summary}",
            details={"codes": [str(e.code) for e in self.errors]},
        )

    def __repr__(self) -> str:
        """Repr for debugging."""
        return f"InvalidMetadataError(errors={self.errors!r})"


class InvalidCursorError(MetakitError, ValueError):
    """Cursor token could not be decoded.

    Cursors are not signed, so this only detects tokens that are not
    valid base64 text. A well-formed but altered token decodes fine.
    """

    def __init__(self, cursor: str, reason: str):
        """Initialize invalid cursor error.

        Args:
            cursor: The offending token
            reason: Why decoding failed
        """
        self.cursor = cursor
        self.reason = reason
        super().__init__(f"invalid cursor: {reason}", details={"cursor": cursor})


class InvalidRuleError(MetakitError, ValueError):
    """Validation rule string is malformed (e.g. ``max:abc``)."""

    def __init__(self, rule: str, reason: str):
        self.rule = rule
        super().__init__(f"invalid validation rule {rule!r}: {reason}")


__all__ = [
    "InvalidCursorError",
    "InvalidMetadataError",
    "InvalidRuleError",
    "MetakitError",
]
