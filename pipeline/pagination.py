"""
Pagination — fixed-size pages over the filtered view.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from pipeline.records import WorkOrderRecord
from utils.config import KnownValues

PAGE_SIZE = KnownValues.PAGE_SIZE


@dataclass(frozen=True)
class Page:
    """One page of records plus its display bounds.

    ``start`` and ``end`` are 1-based and inclusive ("Showing 16 to 30 of
    42"); all three counts are 0 for an empty record set.
    """

    items: list[WorkOrderRecord] = field(default_factory=list)
    page: int = 1
    start: int = 0
    end: int = 0
    total: int = 0
    total_pages: int = 1
    page_size: int = PAGE_SIZE

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def total_pages(total: int, page_size: int = PAGE_SIZE) -> int:
    """Number of pages needed for *total* records; never less than 1."""
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return max(1, (total + page_size - 1) // page_size)


def paginate(records: Sequence[WorkOrderRecord], page_number: int = 1,
             page_size: int = PAGE_SIZE) -> Page:
    """Slice *records* into the requested page.

    Page numbers outside 1..total_pages are clamped into range.
    """
    total = len(records)
    pages = total_pages(total, page_size)
    page = min(max(1, page_number), pages)

    if total == 0:
        return Page(items=[], page=1, start=0, end=0, total=0,
                    total_pages=pages, page_size=page_size)

    offset = (page - 1) * page_size
    end = min(offset + page_size, total)
    return Page(
        items=list(records[offset:end]),
        page=page,
        start=offset + 1,
        end=end,
        total=total,
        total_pages=pages,
        page_size=page_size,
    )


def prev_page(page: int) -> int:
    """Page number after pressing "previous"; stays put on page 1."""
    return page - 1 if page > 1 else page


def next_page(page: int, total: int, page_size: int = PAGE_SIZE) -> int:
    """Page number after pressing "next"; stays put on the last page."""
    return page + 1 if page < (total + page_size - 1) // page_size else page
