from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Union

from tableview.core.filter_state import FilterState
from tableview.core.schema import FieldSchema

DEFAULT_PAGE_SIZE = 15


@dataclass(frozen=True)
class ViewState:
    """
    Complete mutable state of one table view.

    Fields:

    - search_term: free-text search, "" when off
    - filter_state: active per-field filters
    - current_page: 1-based page; the controller clamps it to the page count
    - page_size: records per page
    """

    search_term: str = ""
    filter_state: FilterState = field(default_factory=FilterState)
    current_page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "search_term": self.search_term,
            "filter_state": self.filter_state.to_dict(),
            "current_page": self.current_page,
            "page_size": self.page_size,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], schema: FieldSchema | None = None) -> ViewState:
        return cls(
            search_term=str(data.get("search_term") or ""),
            filter_state=FilterState.from_dict(data.get("filter_state"), schema),
            current_page=max(1, int(data.get("current_page", 1))),
            page_size=max(1, int(data.get("page_size", DEFAULT_PAGE_SIZE))),
        )

    def clamp_page(self, pages: int) -> ViewState:
        page = min(max(1, self.current_page), max(1, pages))
        if page == self.current_page:
            return self
        return replace(self, current_page=page)


# -------------------------------------------------------------------------
# Actions
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class SetSearchTerm:
    term: str


@dataclass(frozen=True)
class SetFilterValue:
    key: str
    value: Any


@dataclass(frozen=True)
class ResetFilters:
    pass


@dataclass(frozen=True)
class SetPage:
    page: int


@dataclass(frozen=True)
class SetPageSize:
    page_size: int


Action = Union[SetSearchTerm, SetFilterValue, ResetFilters, SetPage, SetPageSize]


def reduce(state: ViewState, action: Action, schema: FieldSchema) -> ViewState:
    """
    Pure transition ``ViewState x Action -> ViewState``.

    Search and filter changes send the view back to page 1. SetPage only
    floors the page at 1; the upper clamp needs the filtered count, so the
    controller applies it after deriving the view.
    """
    if isinstance(action, SetSearchTerm):
        return replace(state, search_term=action.term or "", current_page=1)

    if isinstance(action, SetFilterValue):
        descriptor = schema.field(action.key)
        filters = state.filter_state.with_value(action.key, action.value, descriptor)
        return replace(state, filter_state=filters, current_page=1)

    if isinstance(action, ResetFilters):
        return replace(state, filter_state=FilterState(), current_page=1)

    if isinstance(action, SetPage):
        return replace(state, current_page=max(1, int(action.page)))

    if isinstance(action, SetPageSize):
        if action.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {action.page_size}")
        if action.page_size == state.page_size:
            return state
        return replace(state, page_size=action.page_size, current_page=1)

    raise TypeError(f"Unknown view action: {action!r}")
