from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

from tableview.core.schema import FieldDescriptor, FieldSchema, FilterKind

SELECT_ALL = "all"


def _bound(value: Any) -> Any:
    """None and "" both mean 'no bound'."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


@dataclass(frozen=True)
class DateRange:
    """Inclusive date bounds; either side may be open."""
    start: Any = None
    end: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", _bound(self.start))
        object.__setattr__(self, "end", _bound(self.end))

    @property
    def is_empty(self) -> bool:
        return self.start is None and self.end is None

    @classmethod
    def from_raw(cls, raw: Any) -> DateRange:
        if isinstance(raw, DateRange):
            return raw
        if isinstance(raw, Mapping):
            return cls(start=raw.get("from"), end=raw.get("to"))
        return cls()

    def merge(self, raw: Any) -> DateRange:
        """Overlay the bounds present in ``raw``; an explicit None clears one."""
        if isinstance(raw, DateRange) or not isinstance(raw, Mapping):
            return DateRange.from_raw(raw)
        return DateRange(
            start=raw.get("from", self.start),
            end=raw.get("to", self.end),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.start, "to": self.end}


@dataclass(frozen=True)
class NumberRange:
    """Inclusive numeric bounds; either side may be open."""
    min: Any = None
    max: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "min", _bound(self.min))
        object.__setattr__(self, "max", _bound(self.max))

    @property
    def is_empty(self) -> bool:
        return self.min is None and self.max is None

    @classmethod
    def from_raw(cls, raw: Any) -> NumberRange:
        if isinstance(raw, NumberRange):
            return raw
        if isinstance(raw, Mapping):
            return cls(min=raw.get("min"), max=raw.get("max"))
        return cls()

    def merge(self, raw: Any) -> NumberRange:
        if isinstance(raw, NumberRange) or not isinstance(raw, Mapping):
            return NumberRange.from_raw(raw)
        return NumberRange(
            min=raw.get("min", self.min),
            max=raw.get("max", self.max),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"min": self.min, "max": self.max}


FilterValue = Union[str, Tuple[Any, ...], DateRange, NumberRange, float, int, bool]


def _as_tuple(raw: Any) -> Tuple[Any, ...]:
    if raw is None:
        return ()
    if isinstance(raw, (list, tuple, set, frozenset)):
        items = raw if not isinstance(raw, (set, frozenset)) else sorted(raw, key=str)
    else:
        items = (raw,)
    out = []
    seen = []
    for item in items:
        # 1 and True are different choices
        tag = _tagged(item)
        if tag not in seen:
            seen.append(tag)
            out.append(item)
    return tuple(out)


def _tagged(value: Any) -> Any:
    """
    ``value`` with the type of every scalar attached, so that values Python
    considers equal across types (``1 == True == 1.0``) compare different.
    """
    if isinstance(value, DateRange):
        return (DateRange, _tagged(value.start), _tagged(value.end))
    if isinstance(value, NumberRange):
        return (NumberRange, _tagged(value.min), _tagged(value.max))
    if isinstance(value, (list, tuple)):
        return (type(value),) + tuple(_tagged(v) for v in value)
    if isinstance(value, Mapping):
        return (type(value),) + tuple((k, _tagged(v)) for k, v in value.items())
    return (type(value), value)


def normalise_value(kind: Any, raw: Any, current: Any = None) -> Optional[FilterValue]:
    """
    Canonical form of a filter value for ``kind``, or None when the value
    leaves the field unconstrained (empty text, "all", empty set, open range,
    unchecked checkbox).

    ``current`` is the value already stored for the field; range kinds merge
    partial bound updates into it.
    """
    if kind is FilterKind.TEXT:
        if raw is None:
            return None
        text = str(raw)
        return text or None

    if kind is FilterKind.SELECT:
        if raw is None or raw == "" or raw == SELECT_ALL:
            return None
        return raw

    if kind is FilterKind.MULTI_SELECT:
        values = _as_tuple(raw)
        return values or None

    if kind is FilterKind.DATE_RANGE:
        base = current if isinstance(current, DateRange) else DateRange()
        value = base.merge(raw)
        return None if value.is_empty else value

    if kind is FilterKind.NUMBER_RANGE:
        base = current if isinstance(current, NumberRange) else NumberRange()
        value = base.merge(raw)
        return None if value.is_empty else value

    if kind is FilterKind.SLIDER:
        return _bound(raw)

    if kind is FilterKind.CHECKBOX:
        return True if raw is True else None

    # unknown kind or no descriptor: keep anything that isn't obviously empty
    if raw is None or raw == "":
        return None
    if isinstance(raw, (list, tuple, set, frozenset, dict)) and not raw:
        return None
    if isinstance(raw, (DateRange, NumberRange)) and raw.is_empty:
        return None
    return raw


def is_active(kind: Any, value: Any) -> bool:
    """True iff ``value`` constrains a field of ``kind``."""
    return normalise_value(kind, value) is not None


@dataclass(frozen=True)
class FilterState:
    """
    Active per-field filter values, keyed by field key.

    Absent keys are unconstrained. Instances are immutable; the ``with_*``
    helpers return new states. Only active values are ever stored, so
    ``len(state)`` is the number of active filters.
    """

    values: Dict[str, FilterValue] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def items(self):
        return self.values.items()

    def cache_key(self) -> Dict[str, Any]:
        """
        Type-strict identity of this state, for caches of filter results.

        Plain ``==`` treats ``{"f": 1}`` and ``{"f": True}`` as the same
        state although they select different records.
        """
        return {key: _tagged(value) for key, value in self.values.items()}

    def with_value(
            self,
            key: str,
            raw: Any,
            descriptor: Optional[FieldDescriptor] = None,
    ) -> FilterState:
        """
        Return a copy with ``raw`` merged into ``key``.

        An empty or sentinel value removes the key instead.
        """
        kind = descriptor.kind if descriptor is not None else None
        value = normalise_value(kind, raw, self.values.get(key))
        new_values = dict(self.values)
        if value is None:
            new_values.pop(key, None)
        else:
            new_values[key] = value
        return FilterState(new_values)

    def without(self, key: str) -> FilterState:
        if key not in self.values:
            return self
        new_values = dict(self.values)
        del new_values[key]
        return FilterState(new_values)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for key, value in self.values.items():
            if isinstance(value, (DateRange, NumberRange)):
                out[key] = value.to_dict()
            elif isinstance(value, tuple):
                out[key] = list(value)
            else:
                out[key] = value
        return out

    @classmethod
    def from_dict(
            cls,
            data: Optional[Mapping[str, Any]],
            schema: Optional[FieldSchema] = None,
    ) -> FilterState:
        """
        Rebuild a state from ``to_dict`` output (or a dashboard filter dict).

        With a schema, each value is normalised for its field's kind.
        """
        state = cls()
        for key, raw in (data or {}).items():
            descriptor = schema.field(key) if schema is not None else None
            if descriptor is None:
                state = state.with_value(key, _guess_shape(raw))
            else:
                state = state.with_value(key, raw, descriptor)
        return state


def _guess_shape(raw: Any) -> Any:
    if isinstance(raw, Mapping):
        if "from" in raw or "to" in raw:
            return DateRange.from_raw(raw)
        if "min" in raw or "max" in raw:
            return NumberRange.from_raw(raw)
    if isinstance(raw, list):
        return tuple(raw)
    return raw
