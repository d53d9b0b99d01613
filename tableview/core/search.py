"""
Free-text search over every value of a record.

This is a plain linear scan (no inverted index), which is fine for the
in-memory collections a dashboard page holds (up to ~10^4 records).
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

import numpy as np

from tableview.core.coerce import stringify


def _contains(value: Any, needle: str) -> bool:
    # nested relations (dicts / lists) are searched by value, not by key
    if isinstance(value, Mapping):
        return any(_contains(v, needle) for v in value.values())
    if isinstance(value, (list, tuple)):
        return any(_contains(v, needle) for v in value)
    return needle in stringify(value).lower()


def search_matches(record: Mapping[str, Any], term: str) -> bool:
    """
    True if ``term`` is empty or occurs, case-insensitively, in any field
    value of ``record`` (displayed or not).
    """
    if not term:
        return True
    if not isinstance(record, Mapping):
        return False
    needle = str(term).lower()
    return any(_contains(value, needle) for value in record.values())


def search_mask(records: Sequence[Mapping[str, Any]], term: str) -> np.ndarray:
    """Boolean array: which of ``records`` match ``term``."""
    if not term:
        return np.ones(len(records), dtype=bool)
    return np.fromiter(
        (search_matches(r, term) for r in records),
        dtype=bool,
        count=len(records),
    )
