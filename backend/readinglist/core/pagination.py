"""Page windows and page slices for client-side pagination.

A window is the ordered list of page buttons to render: the first page, the
last page, the pages around the current one, and an ``ELLIPSIS`` marker
wherever numbers are skipped.
"""

import math
from collections.abc import Sequence
from types import EllipsisType
from typing import TypeVar

T = TypeVar("T")

ELLIPSIS: EllipsisType = ...
DEFAULT_RADIUS = 1

PageItem = int | EllipsisType


def total_pages(item_count: int, page_size: int) -> int:
    """Number of pages needed for ``item_count`` items (0 when empty)."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return math.ceil(item_count / page_size)


def compute_window(
    current_page: int, page_count: int, radius: int = DEFAULT_RADIUS
) -> list[PageItem]:
    """Return the page buttons to show for ``current_page`` of ``page_count``.

    >>> compute_window(5, 10)
    [1, Ellipsis, 4, 5, 6, Ellipsis, 10]
    >>> compute_window(1, 1)
    []
    """
    if page_count <= 1:
        return []

    pages: list[PageItem] = [1]
    start = max(2, current_page - radius)
    end = min(page_count - 1, current_page + radius)
    for page in range(start, end + 1):
        if pages[-1] != page - 1:
            pages.append(ELLIPSIS)
        pages.append(page)

    if pages[-1] != page_count:
        if pages[-1] != page_count - 1:
            pages.append(ELLIPSIS)
        pages.append(page_count)

    return pages


def slice_page(items: Sequence[T], page: int, page_size: int) -> list[T]:
    """Items on a 1-based ``page``. Out-of-range pages give an empty list."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    if page < 1:
        return []
    start = (page - 1) * page_size
    return list(items[start : start + page_size])
