"""Cursor encoding and decoding for pagination.

Cursors are opaque strings that encode the position in a result set:
the values of the last row that the next page must seek past.

The cursor format is:
1. Compact JSON object with the row values
2. Standard base64 (padding optional when decoding)

Example cursor payload:
    {"created_at":"2025-01-15T10:30:00","id":42,"name":"Bob Johnson","page":1}

Cursors are NOT signed. Anyone can decode and re-encode them, so treat
the decoded values as caller-supplied input, never as a security boundary.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from metakit.core.exceptions import InvalidCursorError

BARE_VALUE_KEY = "value"


class CursorCodec:
    """Encode and decode pagination cursors.

    Usage:
        # Encoding
        cursor = CursorCodec.encode({"id": 42, "page": 1})

        # Decoding to the serialized payload
        CursorCodec.decode(cursor)                 # '{"id":42,"page":1}'

        # Decoding to values
        CursorCodec.decode_values(cursor)          # {"id": 42, "page": 1}
        CursorCodec.comparison_value(cursor, "id") # 42
    """

    @staticmethod
    def serialize(values: Mapping[str, Any]) -> str:
        """Render values as the compact JSON payload carried by a cursor.

        Key order is preserved.
        """
        return json.dumps(
            CursorCodec._serialize_values(values),
            separators=(",", ":"),
            ensure_ascii=False,
        )

    @staticmethod
    def encode(values: Mapping[str, Any]) -> str:
        """Encode values to an opaque cursor string.

        Args:
            values: Ordered mapping of field name to value

        Returns:
            Standard base64 encoded string
        """
        payload = CursorCodec.serialize(values)
        return base64.b64encode(payload.encode("utf-8")).decode("ascii")

    @staticmethod
    def decode(cursor: str) -> str:
        """Decode a cursor string to its serialized payload.

        Args:
            cursor: Base64 encoded cursor string

        Returns:
            The payload exactly as it was serialized

        Raises:
            InvalidCursorError: If the cursor is not valid base64 text
        """
        padded = cursor.strip()
        padded += "=" * (-len(padded) % 4)
        try:
            raw = base64.b64decode(padded.encode("ascii"), validate=True)
            return raw.decode("utf-8")
        except (binascii.Error, UnicodeError) as e:
            raise InvalidCursorError(cursor, str(e)) from e

    @staticmethod
    def decode_values(cursor: str) -> dict[str, Any]:
        """Decode a cursor to its values.

        JSON objects are returned as they are. A bare payload (a JSON
        scalar, or text that is not JSON at all) comes back as
        ``{"value": payload}``.

        Raises:
            InvalidCursorError: If the cursor is not valid base64 text
        """
        payload = CursorCodec.decode(cursor)
        try:
            parsed = json.loads(payload)
        except json.JSONDecodeError:
            return {BARE_VALUE_KEY: payload}
        if isinstance(parsed, dict):
            return parsed
        return {BARE_VALUE_KEY: parsed}

    @staticmethod
    def comparison_value(cursor: str, field: str) -> Any:
        """Scalar the next page must seek past on ``field``.

        Returns None when the cursor carries neither ``field`` nor a bare value.

        Raises:
            InvalidCursorError: If the cursor is not valid base64 text
        """
        values = CursorCodec.decode_values(cursor)
        if field in values:
            return values[field]
        if set(values) == {BARE_VALUE_KEY}:
            return values[BARE_VALUE_KEY]
        return None

    @staticmethod
    def _serialize_values(values: Mapping[str, Any]) -> dict[str, Any]:
        """Serialize values to JSON-compatible format.

        Handles special types like datetime, UUID and Decimal.
        """
        result = {}
        for key, value in values.items():
            if isinstance(value, (datetime, date, time)):
                result[key] = value.isoformat()
            elif isinstance(value, (UUID, Decimal)):
                result[key] = str(value)
            elif isinstance(value, Enum):
                result[key] = value.value
            else:
                result[key] = value
        return result

    @staticmethod
    def create_cursor(
        row: Any,
        fields: list[str],
        page: int | None = None,
    ) -> str:
        """Create a cursor from a database row.

        Args:
            row: SQLAlchemy model instance, Row, or mapping
            fields: Attribute names to include; missing or None values are skipped
            page: Page number to record alongside the values

        Returns:
            Encoded cursor string

        Example:
            cursor = CursorCodec.create_cursor(user, ["created_at", "id"], page=2)
        """
        values: dict[str, Any] = {}
        for name in fields:
            value = row_value(row, name)
            if value is not None:
                values[name] = value
        if page is not None:
            values["page"] = page
        return CursorCodec.encode(values)


def row_value(row: Any, name: str) -> Any:
    """Read ``name`` from a mapping-like row or an object attribute."""
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


__all__ = ["CursorCodec", "row_value"]
