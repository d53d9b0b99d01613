from __future__ import annotations

import logging
import math
from numbers import Real
from typing import List, Tuple

from tableview.core.schema import FieldSchema, FilterKind
from tableview.validation.errors import WARNING, ValidationError, ValidationIssue

logger = logging.getLogger(__name__)


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and not math.isnan(value)


def schema_issues(schema: FieldSchema) -> Tuple[List[ValidationIssue], List[ValidationIssue]]:
    """
    Check a table schema.

    :return: (errors, warnings). Unknown filter kinds are only a warning:
             such fields are kept and match every record.
    """
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []

    seen: set[str] = set()
    for f in schema.fields:
        if not f.key:
            errors.append(ValidationIssue("FIELD_KEY_EMPTY", f"Filter field {f.label!r} has an empty key."))
            continue

        if f.key in seen:
            errors.append(
                ValidationIssue("FIELD_KEY_DUPLICATE", f"Filter field '{f.key}' is declared twice.", f.key)
            )
        seen.add(f.key)

        if not f.is_known_kind:
            warnings.append(
                ValidationIssue(
                    "FIELD_KIND_UNKNOWN",
                    f"Filter field '{f.key}' has unknown type {f.kind!r}; it will not filter anything.",
                    f.key,
                    severity=WARNING,
                )
            )
            continue

        if f.kind in (FilterKind.SELECT, FilterKind.MULTI_SELECT) and not f.options:
            errors.append(
                ValidationIssue("FIELD_OPTIONS_MISSING", f"{f.kind.value} field '{f.key}' needs options.", f.key)
            )

        if f.kind is FilterKind.SLIDER:
            if f.min is None or f.max is None or f.step is None:
                errors.append(
                    ValidationIssue(
                        "FIELD_SLIDER_BOUNDS", f"Slider field '{f.key}' needs min, max and step.", f.key
                    )
                )
            elif not all(_is_number(v) for v in (f.min, f.max, f.step)):
                errors.append(
                    ValidationIssue(
                        "FIELD_SLIDER_BOUNDS",
                        f"Slider field '{f.key}' needs numeric min, max and step "
                        f"(min={f.min!r}, max={f.max!r}, step={f.step!r}).",
                        f.key,
                    )
                )
            elif f.min > f.max or f.step <= 0:
                errors.append(
                    ValidationIssue(
                        "FIELD_SLIDER_BOUNDS",
                        f"Slider field '{f.key}' has an invalid track (min={f.min}, max={f.max}, step={f.step}).",
                        f.key,
                    )
                )

    seen_columns: set[str] = set()
    for c in schema.columns:
        if c.key in seen_columns:
            errors.append(ValidationIssue("COLUMN_KEY_DUPLICATE", f"Column '{c.key}' is declared twice.", c.key))
        seen_columns.add(c.key)

    return errors, warnings


def validate_schema(schema: FieldSchema) -> None:
    """
    Raise ValidationError listing every schema error; log warnings.
    """
    errors, warnings = schema_issues(schema)

    for issue in warnings:
        logger.warning("%s: %s", issue.code, issue.message, extra={"field": issue.field})

    if errors:
        raise ValidationError(errors)
