from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence

import numpy as np
import pandas as pd

from tableview.core.coerce import is_null, is_truthy, parse_date, parse_dates, parse_number, stringify
from tableview.core.filter_state import DateRange, FilterState, NumberRange, normalise_value
from tableview.core.schema import FieldDescriptor, FieldSchema, FilterKind

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------------
# Scalar predicates: (cell, normalised value) -> bool
# -------------------------------------------------------------------------

def _same(cell: Any, value: Any) -> bool:
    # True == 1 in Python; a boolean cell only equals a boolean value
    if isinstance(cell, (bool, np.bool_)) != isinstance(value, (bool, np.bool_)):
        return False
    return bool(cell == value)


def _text(cell: Any, value: str) -> bool:
    return str(value).lower() in stringify(cell).lower()


def _select(cell: Any, value: Any) -> bool:
    return not is_null(cell) and _same(cell, value)


def _multi_select(cell: Any, value: Sequence[Any]) -> bool:
    if is_null(cell):
        return False
    return any(_same(cell, v) for v in value)


def _date_range(cell: Any, value: DateRange) -> bool:
    start, end = parse_date(value.start), parse_date(value.end)
    if pd.isna(start) and pd.isna(end):
        return True
    when = parse_date(cell)
    if pd.isna(when):
        return False
    if not pd.isna(start) and not when >= start:
        return False
    if not pd.isna(end) and not when <= end:
        return False
    return True


def _number_range(cell: Any, value: NumberRange) -> bool:
    lo, hi = parse_number(value.min), parse_number(value.max)
    number = parse_number(cell)
    # NaN compares False against any bound
    if not math.isnan(lo) and not number >= lo:
        return False
    if not math.isnan(hi) and not number <= hi:
        return False
    return True


def _slider(cell: Any, value: Any) -> bool:
    threshold = parse_number(value)
    if math.isnan(threshold):
        return True
    return parse_number(cell) >= threshold


def _checkbox(cell: Any, value: bool) -> bool:
    return is_truthy(cell) if value is True else True


_PREDICATES: Dict[FilterKind, Callable[[Any, Any], bool]] = {
    FilterKind.TEXT: _text,
    FilterKind.SELECT: _select,
    FilterKind.MULTI_SELECT: _multi_select,
    FilterKind.DATE_RANGE: _date_range,
    FilterKind.NUMBER_RANGE: _number_range,
    FilterKind.SLIDER: _slider,
    FilterKind.CHECKBOX: _checkbox,
}


# -------------------------------------------------------------------------
# Column masks: (column, normalised value) -> bool ndarray
# -------------------------------------------------------------------------

def _map_mask(predicate: Callable[[Any, Any], bool]) -> Callable[[pd.Series, Any], np.ndarray]:
    def build(column: pd.Series, value: Any) -> np.ndarray:
        return np.fromiter(
            (predicate(cell, value) for cell in column),
            dtype=bool,
            count=len(column),
        )
    return build


def _text_mask(column: pd.Series, value: str) -> np.ndarray:
    rendered = column.map(stringify).astype(str).str.lower()
    return rendered.str.contains(str(value).lower(), regex=False).to_numpy(dtype=bool)


def _date_range_mask(column: pd.Series, value: DateRange) -> np.ndarray:
    mask = np.ones(len(column), dtype=bool)
    start, end = parse_date(value.start), parse_date(value.end)
    if pd.isna(start) and pd.isna(end):
        return mask

    parsed = parse_dates(column)
    if not pd.isna(start):
        mask &= (parsed >= start).to_numpy(dtype=bool)
    if not pd.isna(end):
        mask &= (parsed <= end).to_numpy(dtype=bool)
    return mask


def _numeric(column: pd.Series) -> pd.Series:
    return column.map(parse_number).astype(float)


def _number_range_mask(column: pd.Series, value: NumberRange) -> np.ndarray:
    mask = np.ones(len(column), dtype=bool)
    lo, hi = parse_number(value.min), parse_number(value.max)
    if math.isnan(lo) and math.isnan(hi):
        return mask

    numbers = _numeric(column)
    if not math.isnan(lo):
        mask &= (numbers >= lo).to_numpy(dtype=bool)
    if not math.isnan(hi):
        mask &= (numbers <= hi).to_numpy(dtype=bool)
    return mask


def _slider_mask(column: pd.Series, value: Any) -> np.ndarray:
    threshold = parse_number(value)
    if math.isnan(threshold):
        return np.ones(len(column), dtype=bool)
    return (_numeric(column) >= threshold).to_numpy(dtype=bool)


_MASKS: Dict[FilterKind, Callable[[pd.Series, Any], np.ndarray]] = {
    FilterKind.TEXT: _text_mask,
    FilterKind.SELECT: _map_mask(_select),
    FilterKind.MULTI_SELECT: _map_mask(_multi_select),
    FilterKind.DATE_RANGE: _date_range_mask,
    FilterKind.NUMBER_RANGE: _number_range_mask,
    FilterKind.SLIDER: _slider_mask,
    FilterKind.CHECKBOX: _map_mask(_checkbox),
}

# every FilterKind needs both a predicate and a mask builder
_missing = (set(FilterKind) - set(_PREDICATES)) | (set(FilterKind) - set(_MASKS))
if _missing:
    raise RuntimeError(f"No filter implementation for kinds: {sorted(k.value for k in _missing)}")


# -------------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------------

def matches(record: Mapping[str, Any], descriptor: FieldDescriptor, value: Any) -> bool:
    """
    Whether ``record`` passes the filter ``value`` declared by ``descriptor``.

    Pure and never raises:
    - an empty / sentinel value leaves the field unconstrained (True)
    - an unrecognised kind matches everything (fail-open)
    - unparsable record data under an active bound does not match (fail-closed)
    """
    if not descriptor.is_known_kind:
        return True

    kind = descriptor.kind
    normalised = normalise_value(kind, value)
    if normalised is None:
        return True

    cell = record.get(descriptor.key) if isinstance(record, Mapping) else None
    try:
        return bool(_PREDICATES[kind](cell, normalised))
    except (TypeError, ValueError, OverflowError):
        logger.debug("Filter %r could not compare value %r", descriptor.key, cell)
        return False


def column_mask(column: pd.Series, descriptor: FieldDescriptor, value: Any) -> np.ndarray:
    """
    Vectorised form of :func:`matches` over one column of a records frame.

    Returns a boolean array aligned with ``column``.
    """
    n = len(column)
    if not descriptor.is_known_kind:
        return np.ones(n, dtype=bool)

    normalised = normalise_value(descriptor.kind, value)
    if normalised is None or n == 0:
        return np.ones(n, dtype=bool)

    try:
        return _MASKS[descriptor.kind](column, normalised)
    except (TypeError, ValueError, OverflowError):
        logger.debug(
            "Vectorised filter failed, falling back to per-record checks",
            extra={"field": descriptor.key, "kind": descriptor.kind.value},
        )
        return _map_mask(_safe_predicate(descriptor.kind))(column, normalised)


def _safe_predicate(kind: FilterKind) -> Callable[[Any, Any], bool]:
    predicate = _PREDICATES[kind]

    def check(cell: Any, value: Any) -> bool:
        try:
            return bool(predicate(cell, value))
        except (TypeError, ValueError, OverflowError):
            return False
    return check


def records_frame(records: Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    """
    Object-dtype frame over ``records`` with one row per record, in order.

    Keys missing from a record show up as NaN (treated as null).
    """
    rows = [dict(r) if isinstance(r, Mapping) else {} for r in records]
    frame = pd.DataFrame(rows, dtype=object)
    if len(frame) != len(rows):
        # no keys at all: pandas gives an empty frame
        frame = pd.DataFrame(index=pd.RangeIndex(len(rows)))
    return frame


def _column(frame: pd.DataFrame, key: str) -> pd.Series:
    if key in frame.columns:
        column = frame[key]
        if isinstance(column, pd.Series):
            return column
    return pd.Series([None] * len(frame), index=frame.index, dtype=object)


def filter_mask(frame: pd.DataFrame, schema: FieldSchema, state: FilterState) -> np.ndarray:
    """
    AND of every active filter in ``state`` over ``frame``.

    Keys with no descriptor in ``schema`` are ignored.
    """
    mask = np.ones(len(frame), dtype=bool)
    for key, value in state.items():
        descriptor = schema.field(key)
        if descriptor is None:
            logger.debug("Ignoring filter on unknown field %r", key)
            continue
        mask &= column_mask(_column(frame, key), descriptor, value)
    return mask


def record_matches(record: Mapping[str, Any], schema: FieldSchema, state: FilterState) -> bool:
    """Scalar counterpart of :func:`filter_mask` for one record."""
    for key, value in state.items():
        descriptor = schema.field(key)
        if descriptor is None:
            continue
        if not matches(record, descriptor, value):
            return False
    return True


def apply_filters(
        records: Iterable[Mapping[str, Any]],
        schema: FieldSchema,
        state: FilterState,
) -> List[Mapping[str, Any]]:
    """Records passing every active filter, in their original order."""
    return [r for r in records if record_matches(r, schema, state)]
