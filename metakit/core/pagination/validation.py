"""Validation of pagination metadata.

Built-in checks cover the invariants every request must satisfy. Callers
can add declarative rules per field using a small rule language:

    max:<int>       upper bound (page_size)
    min:<int>       lower bound (page_size)
    in:<a,b,c>      allowed values (sort, fields)

Example:
    meta = Metadata().with_page_size(60).with_validation_rule("page_size", "max:50")
    result = meta.validate()
    result.is_valid          # False
    result.errors[0].code    # ErrorCode.PAGE_SIZE_EXCEEDS_MAX

Validation collects every violation and never raises or mutates the
metadata; normalizing is a separate step.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

from metakit.core.exceptions import InvalidRuleError

if TYPE_CHECKING:
    from metakit.core.pagination.metadata import Metadata

MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 100
SORT_DIRECTIONS = frozenset({"asc", "desc"})
WILDCARD_FIELD = "*"


class ErrorCode(StrEnum):
    """Machine-readable validation error codes."""

    INVALID_PAGE = "INVALID_PAGE"
    INVALID_PAGE_SIZE = "INVALID_PAGE_SIZE"
    PAGE_SIZE_TOO_LARGE = "PAGE_SIZE_TOO_LARGE"
    INVALID_SORT_DIRECTION = "INVALID_SORT_DIRECTION"
    MISSING_CURSOR_FIELD = "MISSING_CURSOR_FIELD"
    INVALID_CURSOR_ORDER = "INVALID_CURSOR_ORDER"
    PAGE_SIZE_EXCEEDS_MAX = "PAGE_SIZE_EXCEEDS_MAX"
    PAGE_SIZE_BELOW_MIN = "PAGE_SIZE_BELOW_MIN"
    INVALID_SORT_FIELD = "INVALID_SORT_FIELD"
    INVALID_SELECTED_FIELD = "INVALID_SELECTED_FIELD"
    INVALID_RULE = "INVALID_RULE"


class ValidationErrorDetail(BaseModel):
    """A single field-level violation.

    Attributes:
        field: Metadata field the violation refers to (wire name)
        message: Human-readable description
        code: Machine-readable error code
    """

    field: str = Field(description="Field that failed validation")
    message: str = Field(description="Human-readable description")
    code: ErrorCode = Field(description="Machine-readable error code")

    model_config = {"frozen": True}


class ValidationResult(BaseModel):
    """Outcome of validating a Metadata instance.

    Attributes:
        is_valid: True when no violation was found
        errors: Violations in the order they were detected
    """

    is_valid: bool = Field(description="Whether the metadata passed validation")
    errors: list[ValidationErrorDetail] = Field(
        default_factory=list,
        description="Violations in detection order",
    )

    model_config = {"frozen": True}

    @property
    def codes(self) -> list[ErrorCode]:
        """Error codes only, in detection order."""
        return [error.code for error in self.errors]

    @classmethod
    def from_errors(cls, errors: list[ValidationErrorDetail]) -> ValidationResult:
        return cls(is_valid=not errors, errors=errors)


class ValidationRule(BaseModel):
    """Parsed form of a rule string such as ``max:50`` or ``in:a,b``."""

    kind: Literal["max", "min", "in"]
    bound: int | None = None
    allowed: tuple[str, ...] = ()

    model_config = {"frozen": True}

    @classmethod
    def parse(cls, text: str) -> ValidationRule:
        """Parse a rule string.

        Raises:
            InvalidRuleError: If the rule kind is unknown or its argument
                cannot be parsed.
        """
        kind, sep, argument = text.partition(":")
        kind = kind.strip().lower()
        if not sep:
            raise InvalidRuleError(text, "expected '<kind>:<argument>'")

        if kind in ("max", "min"):
            try:
                bound = int(argument.strip())
            except ValueError:
                raise InvalidRuleError(text, f"{kind} needs an integer bound") from None
            return cls(kind=kind, bound=bound)

        if kind == "in":
            allowed = tuple(value.strip() for value in argument.split(",") if value.strip())
            if not allowed:
                raise InvalidRuleError(text, "in needs at least one value")
            return cls(kind="in", allowed=allowed)

        raise InvalidRuleError(text, f"unknown rule kind {kind!r}")


def _builtin_errors(metadata: Metadata) -> list[ValidationErrorDetail]:
    errors: list[ValidationErrorDetail] = []

    if metadata.page < 1:
        errors.append(
            ValidationErrorDetail(
                field="page",
                message="page must be greater than or equal to 1",
                code=ErrorCode.INVALID_PAGE,
            )
        )

    if metadata.page_size < MIN_PAGE_SIZE:
        errors.append(
            ValidationErrorDetail(
                field="page_size",
                message=f"page_size must be greater than or equal to {MIN_PAGE_SIZE}",
                code=ErrorCode.INVALID_PAGE_SIZE,
            )
        )
    elif metadata.page_size > MAX_PAGE_SIZE:
        errors.append(
            ValidationErrorDetail(
                field="page_size",
                message=f"page_size must not exceed {MAX_PAGE_SIZE}",
                code=ErrorCode.PAGE_SIZE_TOO_LARGE,
            )
        )

    if metadata.sort_direction and metadata.sort_direction not in SORT_DIRECTIONS:
        errors.append(
            ValidationErrorDetail(
                field="sort_direction",
                message="sort_direction must be 'asc' or 'desc'",
                code=ErrorCode.INVALID_SORT_DIRECTION,
            )
        )

    if metadata.cursor and not metadata.cursor_field:
        errors.append(
            ValidationErrorDetail(
                field="cursor_field",
                message="cursor_field is required when a cursor is provided",
                code=ErrorCode.MISSING_CURSOR_FIELD,
            )
        )

    if (
        metadata.cursor_field
        and metadata.cursor_order
        and metadata.cursor_order not in SORT_DIRECTIONS
    ):
        errors.append(
            ValidationErrorDetail(
                field="cursor_order",
                message="cursor_order must be 'asc' or 'desc'",
                code=ErrorCode.INVALID_CURSOR_ORDER,
            )
        )

    return errors


def _rule_errors(metadata: Metadata, target: str, rule: ValidationRule) -> list[ValidationErrorDetail]:
    if target == "page_size":
        if rule.kind == "max" and rule.bound is not None and metadata.page_size > rule.bound:
            return [
                ValidationErrorDetail(
                    field="page_size",
                    message=f"page_size must not exceed {rule.bound}",
                    code=ErrorCode.PAGE_SIZE_EXCEEDS_MAX,
                )
            ]
        if rule.kind == "min" and rule.bound is not None and metadata.page_size < rule.bound:
            return [
                ValidationErrorDetail(
                    field="page_size",
                    message=f"page_size must be at least {rule.bound}",
                    code=ErrorCode.PAGE_SIZE_BELOW_MIN,
                )
            ]
        return []

    if target == "sort" and rule.kind == "in":
        if metadata.sort and metadata.sort not in rule.allowed:
            return [
                ValidationErrorDetail(
                    field="sort",
                    message=f"sort field must be one of: {', '.join(rule.allowed)}",
                    code=ErrorCode.INVALID_SORT_FIELD,
                )
            ]
        return []

    if target == "fields" and rule.kind == "in":
        for name in metadata.selected_fields:
            if name != WILDCARD_FIELD and name not in rule.allowed:
                return [
                    ValidationErrorDetail(
                        field="fields",
                        message=f"field {name!r} is not selectable; allowed: {', '.join(rule.allowed)}",
                        code=ErrorCode.INVALID_SELECTED_FIELD,
                    )
                ]
        return []

    return []


def validate_metadata(metadata: Metadata) -> ValidationResult:
    """Run built-in checks and custom rules against metadata.

    Every check runs independently, so a request with two problems gets
    two errors. Rules keyed by fields other than ``page_size``, ``sort``
    and ``fields`` are ignored.

    Args:
        metadata: Metadata to inspect (not modified)

    Returns:
        ValidationResult listing all violations
    """
    errors = _builtin_errors(metadata)

    for target, text in metadata.validation_rules.items():
        try:
            rule = ValidationRule.parse(text)
        except InvalidRuleError as exc:
            errors.append(
                ValidationErrorDetail(
                    field=target,
                    message=exc.message,
                    code=ErrorCode.INVALID_RULE,
                )
            )
            continue
        errors.extend(_rule_errors(metadata, target, rule))

    return ValidationResult.from_errors(errors)


__all__ = [
    "MAX_PAGE_SIZE",
    "MIN_PAGE_SIZE",
    "ErrorCode",
    "ValidationErrorDetail",
    "ValidationResult",
    "ValidationRule",
    "validate_metadata",
]
