from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from tableview.core.filters import filter_mask, records_frame
from tableview.core.pagination import PageMarker, PageWindow, page_slice, total_pages, visible_pages
from tableview.core.schema import FieldSchema
from tableview.core.search import search_mask
from tableview.core.state import (
    DEFAULT_PAGE_SIZE,
    Action,
    ResetFilters,
    SetFilterValue,
    SetPage,
    SetPageSize,
    SetSearchTerm,
    ViewState,
    reduce,
)
from tableview.validation import schema_validation

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]

NO_RESULTS = "no_results"
NO_DATA = "no_data"


@dataclass(frozen=True)
class DerivedView:
    """
    Filtered / paginated projection handed to the display layer.

    ``filtered_records`` keeps the input order and holds the caller's own
    record objects (never copies).
    """

    filtered_records: Tuple[Record, ...]
    page_records: Tuple[Record, ...]
    total_count: int
    total_pages: int
    current_page: int
    page_size: int
    total_records: int
    visible_pages: Tuple[PageMarker, ...]
    has_active_filters: bool
    search_term: str = ""

    @property
    def window(self) -> PageWindow:
        return PageWindow(
            page=self.current_page,
            pages=self.total_pages,
            page_size=self.page_size,
            count=self.total_count,
        )

    @property
    def start_index(self) -> int:
        return self.window.start

    @property
    def end_index(self) -> int:
        return self.window.end

    @property
    def has_previous(self) -> bool:
        return self.window.has_previous

    @property
    def has_next(self) -> bool:
        return self.window.has_next

    @property
    def empty_reason(self) -> Optional[str]:
        """
        Why the page is empty: NO_RESULTS when search/filters exclude
        everything, NO_DATA when there is nothing to filter. None otherwise.
        """
        if self.page_records:
            return None
        if self.search_term or self.has_active_filters:
            return NO_RESULTS
        return NO_DATA

    def to_frame(self, columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
        """Filtered records as an object-dtype DataFrame."""
        frame = pd.DataFrame([dict(r) for r in self.filtered_records], dtype=object)
        if columns is not None:
            frame = frame.reindex(columns=list(columns))
        return frame


class TableController:
    """
    Owns the ViewState of one table and keeps its DerivedView current.

    Every transition is synchronous: the state is reduced, then the view is
    re-derived before the method returns. Filtering only reruns when the
    records, search term or filters actually changed; paging reuses the
    cached filtered rows.
    """

    def __init__(
        self,
        schema: FieldSchema,
        records: Iterable[Record] = (),
        *,
        name: str = "data",
        page_size: int = DEFAULT_PAGE_SIZE,
        state: Optional[ViewState] = None,
        exportable: bool = True,
    ) -> None:
        schema_validation.validate_schema(schema)

        self.schema = schema
        self.name = name
        self.exportable = exportable
        self._state = state if state is not None else ViewState(page_size=page_size)

        self._records: Tuple[Record, ...] = ()
        self._frame: Optional[pd.DataFrame] = None
        self._records_version = 0

        # Cache of the last filter pass: (records_version, search_term, filter key) -> filtered records
        self._filter_key: Optional[Tuple[int, str, Dict[str, Any]]] = None
        self._filtered: Tuple[Record, ...] = ()
        # Field filters alone: (records_version, filter key) -> mask; survives search edits
        self._mask_key: Optional[Tuple[int, Dict[str, Any]]] = None
        self._mask: Optional[np.ndarray] = None

        self._set_records(records)
        self._view: DerivedView = self._refresh()

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------
    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def records(self) -> Tuple[Record, ...]:
        return self._records

    @property
    def view(self) -> DerivedView:
        return self._view

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------
    def dispatch(self, action: Action) -> DerivedView:
        self._state = reduce(self._state, action, self.schema)
        return self._refresh()

    def set_search_term(self, term: str) -> DerivedView:
        return self.dispatch(SetSearchTerm(term))

    def set_filter_value(self, key: str, value: Any) -> DerivedView:
        return self.dispatch(SetFilterValue(key, value))

    def reset_filters(self) -> DerivedView:
        return self.dispatch(ResetFilters())

    def set_page(self, page: int) -> DerivedView:
        return self.dispatch(SetPage(page))

    def set_page_size(self, page_size: int) -> DerivedView:
        return self.dispatch(SetPageSize(page_size))

    def next_page(self) -> DerivedView:
        if not self.view.has_next:
            return self.view
        return self.set_page(self._state.current_page + 1)

    def previous_page(self) -> DerivedView:
        if not self.view.has_previous:
            return self.view
        return self.set_page(self._state.current_page - 1)

    def replace_records(self, records: Iterable[Record]) -> DerivedView:
        """
        Swap in a freshly fetched collection.

        Search, filters and page survive; the page is clamped if the new
        collection has fewer pages.
        """
        self._set_records(records)
        return self._refresh()

    def reset(self) -> DerivedView:
        """Drop search, filters and paging (page size is kept)."""
        self._state = ViewState(page_size=self._state.page_size)
        return self._refresh()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------
    def _set_records(self, records: Iterable[Record]) -> None:
        self._records = tuple(records)
        self._frame = None
        self._records_version += 1

    def _records_frame(self) -> pd.DataFrame:
        if self._frame is None:
            self._frame = records_frame(self._records)
        return self._frame

    def _filter(self) -> Tuple[Record, ...]:
        state = self._state
        key = (self._records_version, state.search_term, state.filter_state.cache_key())
        if self._filter_key == key:
            return self._filtered

        mask = self._field_mask().copy()
        if state.search_term:
            mask &= search_mask(self._records, state.search_term)

        self._filtered = tuple(self._records[i] for i in np.flatnonzero(mask))
        self._filter_key = key

        logger.debug(
            "Recomputed table view",
            extra={
                "table": self.name,
                "n_records": len(self._records),
                "n_filtered": len(self._filtered),
                "n_filters": len(state.filter_state),
                "has_search": bool(state.search_term),
            },
        )
        return self._filtered

    def _field_mask(self) -> np.ndarray:
        filters = self._state.filter_state
        key = (self._records_version, filters.cache_key())
        if self._mask_key != key or self._mask is None:
            if len(filters):
                self._mask = filter_mask(self._records_frame(), self.schema, filters)
            else:
                self._mask = np.ones(len(self._records), dtype=bool)
            self._mask_key = key
        return self._mask

    def _refresh(self) -> DerivedView:
        filtered = self._filter()
        pages = total_pages(len(filtered), self._state.page_size)
        self._state = self._state.clamp_page(pages)
        page = self._state.current_page

        self._view = DerivedView(
            filtered_records=filtered,
            page_records=tuple(page_slice(filtered, page, self._state.page_size)),
            total_count=len(filtered),
            total_pages=pages,
            current_page=page,
            page_size=self._state.page_size,
            total_records=len(self._records),
            visible_pages=tuple(visible_pages(page, pages)),
            has_active_filters=self._has_active_filters(),
            search_term=self._state.search_term,
        )
        return self._view

    def _has_active_filters(self) -> bool:
        return any(
            self.schema.field(key) is not None for key in self._state.filter_state
        )


def derive_view(
    records: Sequence[Record],
    schema: FieldSchema,
    state: ViewState,
) -> DerivedView:
    """One-shot pure derivation of a view from records, schema and state."""
    controller = TableController(schema, records, state=state)
    return controller.view

