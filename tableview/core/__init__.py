"""
Core engine: field schema, filter state, filter engine, search,
pagination, view state reducer and the table controller
"""

from .schema import ColumnSpec, FieldDescriptor, FieldOption, FieldSchema, FilterKind
from .filter_state import DateRange, FilterState, NumberRange
from .filters import matches
from .search import search_matches
from .state import ViewState
from .table import DerivedView, TableController

__all__ = [
    "ColumnSpec",
    "DateRange",
    "DerivedView",
    "FieldDescriptor",
    "FieldOption",
    "FieldSchema",
    "FilterKind",
    "FilterState",
    "NumberRange",
    "TableController",
    "ViewState",
    "matches",
    "search_matches",
]
