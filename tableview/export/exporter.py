"""
CSV / JSON export of a table's filtered records.

Exports always cover the whole filtered set (not just the visible page), in
its current order. Both formats are deterministic transforms to bytes; only
the filename depends on the date.
"""

from __future__ import annotations

import csv
import json
import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from tableview.core.coerce import is_null, stringify
from tableview.core.schema import ColumnSpec, FieldSchema
from tableview.core.table import DerivedView
from tableview.export.model import ExportedTable, ExportFormat

logger = logging.getLogger(__name__)


def _columns(columns: Union[FieldSchema, Sequence[ColumnSpec]]) -> List[ColumnSpec]:
    if isinstance(columns, FieldSchema):
        return list(columns.columns)
    return [ColumnSpec.from_raw(c) for c in columns]


def to_csv_bytes(
        records: Iterable[Mapping[str, Any]],
        columns: Union[FieldSchema, Sequence[ColumnSpec]],
) -> bytes:
    """
    Render ``records`` as CSV.

    - header row: the column labels, in column order
    - one row per record with exactly those columns
    - every cell double-quoted, inner quotes doubled; null -> empty cell
    - "\\n" between lines, no trailing newline, UTF-8
    """
    cols = _columns(columns)
    if not cols:
        return b""

    rows = [
        [stringify(record.get(c.key)) if isinstance(record, Mapping) else "" for c in cols]
        for record in records
    ]
    frame = pd.DataFrame(rows, columns=range(len(cols)), dtype=object)

    text = frame.to_csv(
        index=False,
        header=[c.label for c in cols],
        quoting=csv.QUOTE_ALL,
        lineterminator="\n",
    )
    if text.endswith("\n"):
        text = text[:-1]
    return text.encode("utf-8")


def _plain(value: Any) -> Any:
    """Make a record value JSON-safe: NaN/NaT -> null, numpy scalars -> Python."""
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_plain(v) for v in value]
    if is_null(value):
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and math.isinf(value):
        return None
    return value


def _json_default(value: Any) -> Any:
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return value.isoformat()
    return str(value)


def to_json_bytes(records: Iterable[Mapping[str, Any]]) -> bytes:
    """
    Render ``records`` as a pretty-printed JSON array of the full records
    (every field, not only displayed columns). Empty input gives ``[]``.
    """
    payload = [_plain(r) for r in records]
    text = json.dumps(payload, indent=2, ensure_ascii=False, default=_json_default)
    return text.encode("utf-8")


def export_filename(
        table_name: str,
        fmt: Union[ExportFormat, str],
        today: Optional[date] = None,
) -> str:
    """``{table_name}_{YYYY-MM-DD}.{csv|json}``, dated in UTC by default."""
    fmt = ExportFormat.parse(fmt)
    if today is None:
        today = datetime.now(timezone.utc).date()
    return f"{table_name}_{today.isoformat()}.{fmt.extension}"


def export_records(
        records: Sequence[Mapping[str, Any]],
        schema: Union[FieldSchema, Sequence[ColumnSpec]],
        fmt: Union[ExportFormat, str],
        *,
        table_name: str = "data",
        today: Optional[date] = None,
) -> ExportedTable:
    """
    Build the export buffer for ``records``.

    :raises ValueError: for an unsupported format
    """
    fmt = ExportFormat.parse(fmt)
    if fmt is ExportFormat.CSV:
        content = to_csv_bytes(records, schema)
    else:
        content = to_json_bytes(records)

    exported = ExportedTable(
        filename=export_filename(table_name, fmt, today),
        content=content,
        format=fmt,
        n_records=len(records),
    )
    logger.info(
        "Table exported",
        extra={
            "table": table_name,
            "export_format": fmt.value,
            "n_records": exported.n_records,
            "n_bytes": len(content),
        },
    )
    return exported


def export_view(
        view: DerivedView,
        schema: Union[FieldSchema, Sequence[ColumnSpec]],
        fmt: Union[ExportFormat, str],
        *,
        table_name: str = "data",
        today: Optional[date] = None,
) -> ExportedTable:
    """Export every filtered record of ``view`` (all pages)."""
    return export_records(
        view.filtered_records,
        schema,
        fmt,
        table_name=table_name,
        today=today,
    )
