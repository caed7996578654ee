"""Unit tests for metadata validation and validation rules."""
from __future__ import annotations

import pytest

from metakit.core.exceptions import InvalidRuleError
from metakit.core.pagination.metadata import Metadata
from metakit.core.pagination.validation import ErrorCode, ValidationRule


@pytest.mark.unit
class TestBuiltinChecks:
    """Tests for the checks every request must pass."""

    def test_defaults_are_valid(self):
        """Default metadata should validate cleanly."""
        result = Metadata().validate()

        assert result.is_valid
        assert result.errors == []

    def test_page_below_one(self):
        """page 0 should be reported as INVALID_PAGE."""
        result = Metadata(page=0).validate()

        assert result.codes == [ErrorCode.INVALID_PAGE]
        assert result.errors[0].field == "page"

    def test_page_size_below_one(self):
        """page_size 0 should be reported as INVALID_PAGE_SIZE."""
        assert Metadata(page_size=0).validate().codes == [ErrorCode.INVALID_PAGE_SIZE]

    def test_page_size_above_hundred(self):
        """page_size 101 should be reported as PAGE_SIZE_TOO_LARGE."""
        assert Metadata(page_size=101).validate().codes == [ErrorCode.PAGE_SIZE_TOO_LARGE]

    def test_page_size_hundred_is_valid(self):
        """page_size 100 is the inclusive upper bound."""
        assert Metadata(page_size=100).validate().is_valid

    def test_invalid_sort_direction(self):
        """Unknown sort directions should be rejected."""
        result = Metadata(sort="name", sort_direction="up").validate()

        assert result.codes == [ErrorCode.INVALID_SORT_DIRECTION]

    def test_empty_sort_direction_is_allowed(self):
        """An empty direction is filled in by normalizing, not rejected."""
        assert Metadata(sort_direction="").validate().is_valid

    def test_cursor_without_field(self):
        """A cursor needs a cursor field to compare against."""
        result = Metadata(cursor="eyJpZCI6MX0=").validate()

        assert result.codes == [ErrorCode.MISSING_CURSOR_FIELD]
        assert result.errors[0].field == "cursor_field"

    def test_invalid_cursor_order(self):
        """cursor_order must be asc or desc when a cursor field is set."""
        result = Metadata().with_cursor_pagination("id", "random").validate()

        assert result.codes == [ErrorCode.INVALID_CURSOR_ORDER]

    def test_errors_are_collected_together(self):
        """Two problems should produce two errors in check order."""
        result = Metadata(page=0, page_size=200).validate()

        assert not result.is_valid
        assert result.codes == [ErrorCode.INVALID_PAGE, ErrorCode.PAGE_SIZE_TOO_LARGE]

    def test_validation_does_not_mutate(self):
        """validate() should leave invalid values in place."""
        meta = Metadata(page=0, page_size=0)

        meta.validate()

        assert meta.page == 0
        assert meta.page_size == 0


@pytest.mark.unit
class TestCustomRules:
    """Tests for max/min/in rules."""

    def test_max_rule_rejects_larger_page_size(self):
        """max:50 with page_size 60 fails with PAGE_SIZE_EXCEEDS_MAX."""
        meta = Metadata().with_page_size(60).with_validation_rule("page_size", "max:50")

        result = meta.validate()

        assert result.codes == [ErrorCode.PAGE_SIZE_EXCEEDS_MAX]

    def test_max_rule_accepts_equal_page_size(self):
        """The max bound is inclusive."""
        meta = Metadata().with_page_size(50).with_validation_rule("page_size", "max:50")

        assert meta.validate().is_valid

    def test_min_rule(self):
        """min:5 with page_size 2 fails with PAGE_SIZE_BELOW_MIN."""
        meta = Metadata().with_page_size(2).with_validation_rule("page_size", "min:5")

        assert meta.validate().codes == [ErrorCode.PAGE_SIZE_BELOW_MIN]

    def test_sort_in_rule(self):
        """Sorting by a field outside the allowed list fails."""
        meta = Metadata().with_sort("password").with_validation_rule("sort", "in:name,age")

        result = meta.validate()

        assert result.codes == [ErrorCode.INVALID_SORT_FIELD]
        assert "name, age" in result.errors[0].message

    def test_sort_in_rule_ignores_unsorted_requests(self):
        """No sort field means nothing to check."""
        meta = Metadata().with_validation_rule("sort", "in:name,age")

        assert meta.validate().is_valid

    def test_fields_in_rule_reports_first_disallowed_field(self):
        """Only the first disallowed field is reported."""
        meta = (
            Metadata()
            .with_fields("name", "password", "ssn")
            .with_validation_rule("fields", "in:name,email")
        )

        result = meta.validate()

        assert result.codes == [ErrorCode.INVALID_SELECTED_FIELD]
        assert "'password'" in result.errors[0].message

    def test_fields_in_rule_allows_wildcard(self):
        """The wildcard is always selectable."""
        meta = Metadata().with_fields("*").with_validation_rule("fields", "in:name")

        assert meta.validate().is_valid

    def test_malformed_rule_is_reported(self):
        """A rule that cannot be parsed yields INVALID_RULE on its target."""
        meta = Metadata().with_validation_rule("page_size", "max:lots")

        result = meta.validate()

        assert result.codes == [ErrorCode.INVALID_RULE]
        assert result.errors[0].field == "page_size"

    def test_unknown_target_is_ignored(self):
        """Rules on fields without checks do nothing."""
        meta = Metadata().with_validation_rule("email", "max:3")

        assert meta.validate().is_valid

    def test_builtin_and_rule_errors_combine(self):
        """Built-in errors come before rule errors."""
        meta = (
            Metadata(page=0)
            .with_page_size(60)
            .with_validation_rule("page_size", "max:50")
        )

        assert meta.validate().codes == [ErrorCode.INVALID_PAGE, ErrorCode.PAGE_SIZE_EXCEEDS_MAX]


@pytest.mark.unit
class TestValidationRuleParse:
    """Tests for parsing rule strings."""

    def test_parse_max(self):
        """max:<int> parses to an upper bound."""
        rule = ValidationRule.parse("max:50")

        assert rule.kind == "max"
        assert rule.bound == 50

    def test_parse_in_strips_whitespace(self):
        """Allowed values are trimmed and empty entries dropped."""
        rule = ValidationRule.parse("in: name , age,,")

        assert rule.allowed == ("name", "age")

    @pytest.mark.parametrize("text", ["max", "max:", "min:x", "in:", "between:1,2"])
    def test_parse_rejects_malformed(self, text):
        """Malformed rules raise InvalidRuleError."""
        with pytest.raises(InvalidRuleError):
            ValidationRule.parse(text)
