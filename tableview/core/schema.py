from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from numbers import Number
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from tableview.core.exceptions import SchemaError


class FilterKind(str, Enum):
    """
    Filter widget kinds a field can declare.

    Values match the names used in the dashboard's table definitions, so a
    JSON config can say ``"type": "multiSelect"`` directly.
    """
    TEXT = "text"
    SELECT = "select"
    MULTI_SELECT = "multiSelect"
    DATE_RANGE = "dateRange"
    NUMBER_RANGE = "numberRange"
    SLIDER = "slider"
    CHECKBOX = "checkbox"

    @classmethod
    def parse(cls, raw: Any) -> Optional[FilterKind]:
        """
        Resolve a raw kind name to a FilterKind.

        Accepts members, the camelCase values and snake_case spellings
        ("multi_select", "date_range"). Returns None when nothing matches.
        """
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        wanted = raw.replace("_", "").replace("-", "").lower()
        for kind in cls:
            if kind.value.lower() == wanted:
                return kind
        return None


@dataclass(frozen=True)
class FieldOption:
    value: Union[str, int, float]
    label: str

    @classmethod
    def from_raw(cls, raw: Any) -> FieldOption:
        if isinstance(raw, FieldOption):
            return raw
        if isinstance(raw, Mapping):
            if "value" not in raw:
                raise SchemaError(f"Option {raw!r} has no 'value'")
            value = raw["value"]
            return cls(value=value, label=str(raw.get("label", value)))
        return cls(value=raw, label=str(raw))


def _number_or_none(key: str, name: str, raw: Any) -> Optional[float]:
    # JSON configs sometimes quote numbers ("min": "0")
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise SchemaError(f"Filter field '{key}' has a non-numeric '{name}': {raw!r}")
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise SchemaError(f"Filter field '{key}' has a non-numeric '{name}': {raw!r}") from None


@dataclass(frozen=True)
class FieldDescriptor:
    """
    Static description of one filterable field.

    Fields:

    - key: record key the filter reads
    - label: human-readable name (also the CSV header when used as a column)
    - kind: a FilterKind, or the raw string when the kind is not recognised.
      Unrecognised kinds are kept rather than rejected and match every record.
    - options: choices for select / multiSelect
    - min, max, step: slider track (min/max also usable as numberRange hints)
    """

    key: str
    label: str
    kind: Union[FilterKind, str]
    options: Tuple[FieldOption, ...] = ()
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None

    def __post_init__(self) -> None:
        parsed = FilterKind.parse(self.kind)
        if parsed is not None and parsed is not self.kind:
            object.__setattr__(self, "kind", parsed)
        object.__setattr__(
            self, "options", tuple(FieldOption.from_raw(o) for o in self.options or ())
        )

    @property
    def is_known_kind(self) -> bool:
        return isinstance(self.kind, FilterKind)

    @property
    def option_values(self) -> List[Any]:
        return [o.value for o in self.options]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FieldDescriptor:
        """
        Build a descriptor from a table definition entry.

        Both ``type`` (dashboard spelling) and ``kind`` are accepted.

        :raises SchemaError: if the entry has no key or no kind
        """
        key = data.get("key")
        if not key:
            raise SchemaError(f"Filter field {dict(data)!r} has no 'key'")

        kind = data.get("kind", data.get("type"))
        if not kind:
            raise SchemaError(f"Filter field '{key}' has no 'type'")

        return cls(
            key=str(key),
            label=str(data.get("label", key)),
            kind=kind,
            options=tuple(data.get("options") or ()),
            min=_number_or_none(key, "min", data.get("min")),
            max=_number_or_none(key, "max", data.get("max")),
            step=_number_or_none(key, "step", data.get("step")),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "key": self.key,
            "label": self.label,
            "type": self.kind.value if isinstance(self.kind, FilterKind) else self.kind,
        }
        if self.options:
            out["options"] = [{"value": o.value, "label": o.label} for o in self.options]
        for name in ("min", "max", "step"):
            value = getattr(self, name)
            if value is not None:
                out[name] = value
        return out


@dataclass(frozen=True)
class ColumnSpec:
    """Display column: which record key to show and under which header."""
    key: str
    label: str

    @classmethod
    def from_raw(cls, raw: Any) -> ColumnSpec:
        if isinstance(raw, ColumnSpec):
            return raw
        if isinstance(raw, Mapping):
            if not raw.get("key"):
                raise SchemaError(f"Column {dict(raw)!r} has no 'key'")
            return cls(key=str(raw["key"]), label=str(raw.get("label", raw["key"])))
        return cls(key=str(raw), label=str(raw))


def _sort_key(value: Any) -> Tuple[int, Any]:
    # numbers before strings; bool is a Number subclass but sorts with strings
    if isinstance(value, Number) and not isinstance(value, bool):
        return (0, float(value))
    return (1, str(value))


@dataclass(frozen=True)
class FieldSchema:
    """
    Filterable fields plus the display columns of one table.

    If no columns are given, the filter fields double as the columns.
    """

    fields: Tuple[FieldDescriptor, ...] = ()
    columns: Tuple[ColumnSpec, ...] = ()

    def __post_init__(self) -> None:
        fields = tuple(
            f if isinstance(f, FieldDescriptor) else FieldDescriptor.from_dict(f)
            for f in self.fields
        )
        object.__setattr__(self, "fields", fields)

        columns = tuple(ColumnSpec.from_raw(c) for c in self.columns)
        if not columns:
            columns = tuple(ColumnSpec(key=f.key, label=f.label) for f in fields)
        object.__setattr__(self, "columns", columns)

    def field(self, key: str) -> Optional[FieldDescriptor]:
        """Return the descriptor for ``key``; the first one wins on duplicates."""
        for f in self.fields:
            if f.key == key:
                return f
        return None

    @property
    def keys(self) -> List[str]:
        return [f.key for f in self.fields]

    @property
    def column_keys(self) -> List[str]:
        return [c.key for c in self.columns]

    @property
    def column_labels(self) -> List[str]:
        return [c.label for c in self.columns]

    @staticmethod
    def distinct_values(records: Iterable[Mapping[str, Any]], key: str) -> List[Any]:
        """
        Sorted distinct non-null scalar values of ``key`` across ``records``.

        Used to build select / multiSelect options when the caller has none.
        """
        seen = set()
        for record in records:
            value = record.get(key)
            if value is None or isinstance(value, (dict, list)):
                continue
            if isinstance(value, float) and value != value:
                continue
            seen.add(value)
        return sorted(seen, key=_sort_key)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FieldSchema:
        return cls(
            fields=tuple(FieldDescriptor.from_dict(f) for f in data.get("filters", [])),
            columns=tuple(ColumnSpec.from_raw(c) for c in data.get("columns", [])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filters": [f.to_dict() for f in self.fields],
            "columns": [{"key": c.key, "label": c.label} for c in self.columns],
        }
