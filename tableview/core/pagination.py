from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, TypeVar, Union

ELLIPSIS = "..."
WINDOW_DELTA = 2

T = TypeVar("T")
PageMarker = Union[int, str]


def total_pages(count: int, page_size: int) -> int:
    """Number of pages for ``count`` items; never less than 1."""
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    return max(1, math.ceil(count / page_size))


def clamp_page(page: int, pages: int) -> int:
    return min(max(1, int(page)), max(1, pages))


def page_slice(items: Sequence[T], page: int, page_size: int) -> List[T]:
    """Items on 1-based ``page``: ``items[(page-1)*size : page*size]``."""
    start = (page - 1) * page_size
    return list(items[start:start + page_size])


def visible_pages(current: int, pages: int, delta: int = WINDOW_DELTA) -> List[PageMarker]:
    """
    Page numbers to show in pagination controls.

    Always shows page 1 and the last page, plus pages within ``delta`` of
    ``current``; a single ELLIPSIS marks each gap, e.g.
    ``[1, '...', 4, 5, 6, 7, 8, '...', 20]``.
    """
    pages = max(1, pages)
    current = clamp_page(current, pages)

    window = list(range(max(2, current - delta), min(pages - 1, current + delta) + 1))

    markers: List[PageMarker] = [1]
    if window and window[0] > 2:
        markers.append(ELLIPSIS)
    markers.extend(window)

    if pages > 1:
        last_shown = window[-1] if window else 1
        if pages - last_shown > 1:
            markers.append(ELLIPSIS)
        markers.append(pages)
    return markers


@dataclass(frozen=True)
class PageWindow:
    """
    Where the visible page sits inside the filtered set.

    start / end are 1-based and inclusive ("showing 16-30 of 42");
    both are 0 when there is nothing to show.
    """
    page: int
    pages: int
    page_size: int
    count: int

    @property
    def start(self) -> int:
        if self.count == 0:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def end(self) -> int:
        return min(self.page * self.page_size, self.count)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.pages
