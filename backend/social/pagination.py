"""
Pagination Engine
=================

Windows an already-ordered list of view records. Never sorts.

Offset pagination (page/page_size) rather than a cursor: callers need page
counts and arbitrary page jumps, and the tie-break on id in the sort stage
keeps windows stable between queries when nothing was written in between.

Input is tolerant: a page or page size that is missing, non-numeric or < 1
falls back to the default instead of raising.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from .conf import engine_setting

DEFAULT_PAGE = 1


def coerce_positive_int(value, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return number if number >= 1 else default


@dataclass
class PageResult:
    items: list
    total_count: int
    total_pages: int
    current_page: int
    has_next_page: bool
    next_page: Optional[int]

    @property
    def is_empty(self) -> bool:
        """True when the filtered set itself is empty, not just this window."""
        return self.total_count == 0

    def to_dict(self) -> dict:
        return {
            'items': self.items,
            'total_count': self.total_count,
            'total_pages': self.total_pages,
            'current_page': self.current_page,
            'has_next_page': self.has_next_page,
            'next_page': self.next_page,
            'empty': self.is_empty,
        }


def paginate(ordered: Sequence, page=None, page_size=None) -> PageResult:
    """
    Slice [(page-1)*size, page*size) out of the ordered records.

    total_count and total_pages are computed over the whole ordered set.
    A page past the end yields no items and has_next_page=False.
    """
    page = coerce_positive_int(page, DEFAULT_PAGE)
    page_size = coerce_positive_int(page_size, engine_setting('DEFAULT_PAGE_SIZE'))
    page_size = min(page_size, engine_setting('MAX_PAGE_SIZE'))

    total_count = len(ordered)
    total_pages = math.ceil(total_count / page_size)
    start = (page - 1) * page_size
    items = list(ordered[start:start + page_size])
    has_next_page = page < total_pages

    return PageResult(
        items=items,
        total_count=total_count,
        total_pages=total_pages,
        current_page=page,
        has_next_page=has_next_page,
        next_page=page + 1 if has_next_page else None,
    )
