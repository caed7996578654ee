"""Unit tests for cursor encoding, the cursor filter and statement building."""
from __future__ import annotations

import base64
import json
import logging
from datetime import datetime
from decimal import Decimal
from uuid import UUID

import pytest
from sqlalchemy import select

from metakit.core.exceptions import InvalidCursorError
from metakit.core.pagination.cursor import CursorCodec, row_value
from metakit.core.pagination.filters import CursorFilter
from metakit.core.pagination.metadata import Metadata
from metakit.core.pagination.paginator import Paginator, PaginationRun, PaginationStage
from metakit.core.settings import PaginationSettings


def _sql(statement) -> str:
    return str(statement.compile(compile_kwargs={"literal_binds": True}))


# ──────────────────────────────────────────────────────────────
# Test CursorCodec
# ──────────────────────────────────────────────────────────────


@pytest.mark.unit
class TestCursorCodec:
    """Tests for CursorCodec encode/decode."""

    def test_encode_is_standard_base64_of_compact_json(self):
        """Cursor should be base64 over compact JSON in insertion order."""
        encoded = CursorCodec.encode({"id": 42, "name": "Bob", "page": 1})

        assert base64.b64decode(encoded).decode() == '{"id":42,"name":"Bob","page":1}'

    def test_decode_returns_payload(self):
        """decode() should return the serialized payload text."""
        encoded = CursorCodec.encode({"id": 7})

        assert CursorCodec.decode(encoded) == '{"id":7}'

    def test_decode_accepts_missing_padding(self):
        """Stripped base64 padding should be restored."""
        encoded = CursorCodec.encode({"id": 1}).rstrip("=")

        assert CursorCodec.decode_values(encoded) == {"id": 1}

    def test_decode_invalid_cursor_raises(self):
        """Non-base64 input should raise InvalidCursorError."""
        with pytest.raises(InvalidCursorError) as exc_info:
            CursorCodec.decode("not-valid-base64!!!")

        assert exc_info.value.cursor == "not-valid-base64!!!"
        assert isinstance(exc_info.value, ValueError)

    def test_decode_values_bare_scalar(self):
        """A bare JSON scalar comes back under the "value" key."""
        encoded = base64.b64encode(b"42").decode()

        assert CursorCodec.decode_values(encoded) == {"value": 42}

    def test_decode_values_non_json_text(self):
        """Text that is not JSON comes back as the raw payload."""
        encoded = base64.b64encode(b"2025-01-15").decode()

        assert CursorCodec.decode_values(encoded) == {"value": "2025-01-15"}

    def test_comparison_value_prefers_field(self):
        """The value of the cursor field is used for seeking."""
        encoded = CursorCodec.encode({"created_at": "2025-01-15T10:00:00", "id": 3})

        assert CursorCodec.comparison_value(encoded, "created_at") == "2025-01-15T10:00:00"
        assert CursorCodec.comparison_value(encoded, "age") is None

    def test_comparison_value_bare(self):
        """A bare cursor applies to any field."""
        encoded = base64.b64encode(b"17").decode()

        assert CursorCodec.comparison_value(encoded, "id") == 17

    def test_serializes_special_types(self):
        """Datetimes, UUIDs and Decimals should be stored as strings."""
        uid = UUID("550e8400-e29b-41d4-a716-446655440000")
        encoded = CursorCodec.encode(
            {"at": datetime(2025, 1, 15, 10, 30), "uid": uid, "amount": Decimal("1.50")}
        )

        assert json.loads(CursorCodec.decode(encoded)) == {
            "at": "2025-01-15T10:30:00",
            "uid": str(uid),
            "amount": "1.50",
        }

    def test_non_ascii_round_trip(self):
        """Non-ASCII values survive encoding."""
        encoded = CursorCodec.encode({"name": "Zoë"})

        assert CursorCodec.decode_values(encoded) == {"name": "Zoë"}

    def test_create_cursor_from_row(self):
        """create_cursor should read attributes, skip missing ones and add the page."""

        class MockRow:
            id = 5
            name = "Charlie Wilson"
            created_at = datetime(2025, 1, 15, 14, 0)

        cursor = CursorCodec.create_cursor(MockRow(), ["created_at", "id", "name", "email"], page=1)

        assert CursorCodec.decode_values(cursor) == {
            "created_at": "2025-01-15T14:00:00",
            "id": 5,
            "name": "Charlie Wilson",
            "page": 1,
        }

    def test_row_value_reads_mappings_and_objects(self):
        """row_value should support dict rows and attribute rows."""

        class Obj:
            id = 9

        assert row_value({"id": 3}, "id") == 3
        assert row_value(Obj(), "id") == 9
        assert row_value(Obj(), "missing") is None


# ──────────────────────────────────────────────────────────────
# Test CursorFilter
# ──────────────────────────────────────────────────────────────


@pytest.mark.unit
class TestCursorFilter:
    """Tests for keyset seeking on SQLAlchemy statements."""

    def test_first_page_has_no_where(self, user_model):
        """Without a cursor only ORDER BY and LIMIT are added."""
        stmt = CursorFilter("", "created_at", "desc", limit=10).apply(select(user_model))
        sql = _sql(stmt)

        assert "WHERE" not in sql
        assert "ORDER BY users.created_at DESC" in sql
        assert "LIMIT 10" in sql

    def test_desc_seeks_with_less_than(self, user_model):
        """Descending cursors compare with < and convert ISO strings to datetimes."""
        cursor = CursorCodec.encode({"created_at": "2025-01-15T12:00:00"})
        cursor_filter = CursorFilter(cursor, "created_at", "desc", limit=10)
        stmt = cursor_filter.apply(select(user_model))

        assert cursor_filter.operator == "<"
        assert cursor_filter.seeks
        assert "WHERE users.created_at <" in str(stmt)
        assert datetime(2025, 1, 15, 12, 0) in stmt.compile().params.values()

    def test_asc_seeks_with_greater_than(self, user_model):
        """Ascending cursors compare with >."""
        cursor = CursorCodec.encode({"id": 3})
        stmt = CursorFilter(cursor, "id", "asc", limit=2).apply(select(user_model))
        sql = _sql(stmt)

        assert "WHERE users.id > 3" in sql
        assert "ORDER BY users.id ASC" in sql
        assert "LIMIT 2" in sql

    def test_invalid_cursor_is_ignored_with_warning(self, user_model, caplog):
        """Lenient mode falls back to the first page and logs a warning."""
        with caplog.at_level(logging.WARNING, logger="metakit.pagination"):
            cursor_filter = CursorFilter("%%%not base64", "id", limit=5)

        assert not cursor_filter.seeks
        assert "WHERE" not in _sql(cursor_filter.apply(select(user_model)))
        assert "Ignoring undecodable cursor" in caplog.text

    def test_invalid_cursor_raises_in_strict_mode(self):
        """Strict mode surfaces the decode error."""
        with pytest.raises(InvalidCursorError):
            CursorFilter("%%%not base64", "id", limit=5, strict=True)

    def test_cursor_without_field_value_does_not_seek(self, user_model):
        """A cursor for another field leaves the statement unfiltered."""
        cursor = CursorCodec.encode({"age": 30})
        cursor_filter = CursorFilter(cursor, "id", limit=5)

        assert not cursor_filter.seeks


# ──────────────────────────────────────────────────────────────
# Test statement building
# ──────────────────────────────────────────────────────────────


@pytest.mark.unit
class TestBuildStatement:
    """Tests for Paginator.scope / build_statement without a database."""

    def test_offset_mode(self, user_model):
        """Offset mode orders by sort and applies LIMIT/OFFSET."""
        meta = Metadata(page=3, page_size=20, sort="name", sort_direction="desc")

        sql = _sql(Paginator(PaginationSettings()).scope(meta)(select(user_model)))

        assert "ORDER BY users.name DESC" in sql
        assert "LIMIT 20 OFFSET 40" in sql

    def test_offset_mode_without_sort_has_no_order_by(self, user_model):
        """No sort field means no ORDER BY."""
        sql = _sql(Paginator(PaginationSettings()).scope(Metadata())(select(user_model)))

        assert "ORDER BY" not in sql
        assert "LIMIT 10 OFFSET 0" in sql

    def test_normalizes_before_building(self, user_model):
        """page 0 and page_size 0 are clamped before OFFSET is computed."""
        meta = Metadata(page=0, page_size=0)

        sql = _sql(Paginator(PaginationSettings(default_page_size=15)).scope(meta)(select(user_model)))

        assert meta.page_size == 15
        assert "LIMIT 15 OFFSET 0" in sql

    def test_field_selection(self, user_model):
        """Selected fields replace the entity columns."""
        meta = Metadata().with_fields("name", "email").with_sort("age")

        sql = _sql(Paginator(PaginationSettings()).scope(meta)(select(user_model)))

        assert "SELECT users.name, users.email" in sql
        assert "users.id" not in sql
        assert "ORDER BY users.age ASC" in sql

    def test_cursor_mode_first_page(self, user_model):
        """First cursor page: no WHERE, ordered by the cursor field."""
        meta = Metadata().with_cursor_pagination("created_at", "desc")

        sql = _sql(Paginator(PaginationSettings()).scope(meta)(select(user_model)))

        assert "WHERE" not in sql
        assert "ORDER BY users.created_at DESC" in sql
        assert "LIMIT 10" in sql
        assert "OFFSET" not in sql

    def test_cursor_mode_sort_is_secondary(self, user_model):
        """A different sort field breaks ties behind the cursor field."""
        meta = Metadata().with_cursor_pagination("age", "asc").with_sort("id")

        sql = _sql(Paginator(PaginationSettings()).scope(meta)(select(user_model)))

        assert "ORDER BY users.age ASC, users.id ASC" in sql

    def test_cursor_mode_selects_cursor_column(self, user_model):
        """Field selection in cursor mode still fetches the cursor column."""
        meta = Metadata().with_fields("name", "email").with_cursor_pagination("id")

        sql = _sql(Paginator(PaginationSettings()).scope(meta)(select(user_model)))

        assert "SELECT users.name, users.email, users.id" in sql
        assert meta.selected_fields == ["name", "email"]

    def test_cursor_page_advances_page(self, user_model):
        """The page recorded in the cursor is followed by the next page."""
        cursor = CursorCodec.encode({"id": 4, "page": 2})
        meta = Metadata().with_cursor_pagination("id", "asc", cursor)

        Paginator(PaginationSettings()).build_statement(select(user_model), meta)

        assert meta.page == 3

    def test_strict_setting_is_passed_to_cursor_filter(self, user_model):
        """strict_cursor settings make bad cursors fail statement building."""
        meta = Metadata().with_cursor_pagination("id", cursor="%%%")
        paginator = Paginator(PaginationSettings(strict_cursor=True))

        with pytest.raises(InvalidCursorError):
            paginator.build_statement(select(user_model), meta)


@pytest.mark.unit
class TestPaginationRun:
    """Tests for stage tracking."""

    def test_advance_and_fail(self):
        """fail() should remember the stage that was active."""
        run = PaginationRun(mode=Metadata().mode)

        run.advance(PaginationStage.VALIDATED)
        run.fail()

        assert run.stage is PaginationStage.FAILED
        assert run.failed_at is PaginationStage.VALIDATED
        assert run.elapsed >= 0
