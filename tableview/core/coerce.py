"""
Scalar coercions shared by the filter engine, the search index and the
exporter.

None of these raise on bad input: unparsable values come back as NaN / NaT,
and comparisons against NaN / NaT are always False, which is what makes the
range filters fail closed.
"""

from __future__ import annotations

import json
import math
from datetime import date, datetime
from numbers import Number
from typing import Any, Optional

import pandas as pd


def is_null(value: Any) -> bool:
    """True for None, NaN, NaT and pd.NA. Containers are never null."""
    if value is None:
        return True
    if isinstance(value, (dict, list, tuple, set)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def stringify(value: Any) -> str:
    """
    Render a record value as display / search / CSV text.

    - null -> ""
    - bool -> "true" / "false"
    - dates -> ISO-8601
    - dict / list -> compact JSON
    """
    if is_null(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return value.isoformat()
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, default=str, separators=(",", ":"))
    return str(value)


def parse_number(value: Any) -> float:
    """
    Parse a record value or bound as float; NaN when it is not a number.

    Booleans are not numbers here.
    """
    if is_null(value) or isinstance(value, bool):
        return math.nan
    if isinstance(value, Number):
        try:
            return float(value)
        except (TypeError, ValueError, OverflowError):
            return math.nan
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return math.nan
        try:
            return float(pd.to_numeric(text, errors="coerce"))
        except (TypeError, ValueError, OverflowError):
            return math.nan
    return math.nan


def parse_date(value: Any) -> pd.Timestamp:
    """
    Parse a record value or bound as a UTC timestamp; NaT when unparsable.

    Naive values are taken as UTC so naive and aware inputs compare safely.
    Numbers are epoch milliseconds.
    """
    if is_null(value) or isinstance(value, bool):
        return pd.NaT
    try:
        if isinstance(value, Number):
            return pd.to_datetime(value, unit="ms", utc=True, errors="coerce")
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return pd.NaT
            return pd.to_datetime(text, utc=True, errors="coerce")
        if isinstance(value, (pd.Timestamp, datetime, date)):
            return pd.to_datetime(value, utc=True, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return pd.NaT
    return pd.NaT


def _date_kind(value: Any) -> Optional[str]:
    if is_null(value) or isinstance(value, bool):
        return None
    if isinstance(value, Number):
        return "epoch_ms"
    if isinstance(value, str):
        return "text" if value.strip() else None
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return "datetime"
    return None


def parse_dates(values: pd.Series) -> pd.Series:
    """
    Column form of :func:`parse_date`.

    Cells are grouped by what they hold (text, epoch milliseconds, date
    objects) and each group goes through a single ``pd.to_datetime`` call.
    Returns a UTC datetime series aligned with ``values``; NaT where a cell
    does not parse.
    """
    kinds = values.map(_date_kind)
    chunks = []
    for kind, group in values.groupby(kinds, sort=False):
        try:
            if kind == "epoch_ms":
                chunk = pd.to_datetime(group.astype(float), unit="ms", utc=True, errors="coerce")
            elif kind == "text":
                chunk = pd.to_datetime(group.str.strip(), utc=True, errors="coerce", format="mixed")
            else:
                chunk = pd.to_datetime(group, utc=True, errors="coerce")
        except (TypeError, ValueError, OverflowError):
            chunk = pd.to_datetime(group.map(parse_date), utc=True)
        chunks.append(chunk)

    if not chunks:
        return pd.Series(pd.NaT, index=values.index, dtype="datetime64[ns, UTC]")
    return pd.concat(chunks).reindex(values.index)


def is_truthy(value: Any) -> bool:
    """Truthiness of a record value as the checkbox filter sees it."""
    if is_null(value):
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (dict, list, tuple, set)):
        return True
    try:
        return bool(value)
    except (TypeError, ValueError):
        return False
