"""
View Projection

Derives the page of files the user sees from a snapshot of the lifecycle
engine plus the current search, sort and page state.
"""

import math
from enum import Enum
from operator import attrgetter
from typing import List, Sequence

from pydantic import BaseModel

from backend.app.services.progress.models import FileRecord

PAGE_SIZE = 5


class SortKey(str, Enum):
    NAME = "name"
    SIZE = "size"
    MIME_TYPE = "mime_type"
    UPLOADED_AT = "uploaded_at"
    STATUS = "status"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def toggled(self) -> "SortDirection":
        return SortDirection.DESC if self == SortDirection.ASC else SortDirection.ASC


class Projection(BaseModel):
    items: List[FileRecord]
    page: int
    total_pages: int
    total_items: int


class ViewProjection:
    """
    Interaction state for the file table.
    Holds no records of its own; project() works on whatever snapshot it
    is given.
    """

    def __init__(
        self,
        page_size: int = PAGE_SIZE,
        sort_key: SortKey = SortKey.UPLOADED_AT,
        sort_direction: SortDirection = SortDirection.DESC
    ):
        self.page_size = page_size
        self.search_term = ""
        self.sort_key = sort_key
        self.sort_direction = sort_direction
        self.page = 1

    def set_search(self, term: str):
        self.search_term = term or ""

    def set_sort(self, key: SortKey):
        """Repeat a key to flip direction; a new key starts ascending."""
        key = SortKey(key)
        if key == self.sort_key:
            self.sort_direction = self.sort_direction.toggled()
        else:
            self.sort_key = key
            self.sort_direction = SortDirection.ASC

    def set_page(self, page: int, total_pages: int) -> bool:
        """Out-of-range pages are ignored."""
        if page < 1 or page > total_pages:
            return False
        self.page = page
        return True

    def next_page(self, total_pages: int) -> bool:
        return self.set_page(min(self.page + 1, total_pages), total_pages)

    def previous_page(self, total_pages: int) -> bool:
        current = min(self.page, total_pages)
        return self.set_page(max(current - 1, 1), total_pages)

    def total_pages(self, records: Sequence[FileRecord]) -> int:
        return self._page_count(len(self._filter(records)))

    def project(self, records: Sequence[FileRecord]) -> Projection:
        # 1. Sort the whole collection (sorted() is stable in both directions)
        ordered = sorted(
            records,
            key=attrgetter(self.sort_key.value),
            reverse=self.sort_direction == SortDirection.DESC
        )

        # 2. Search
        filtered = self._filter(ordered)

        # 3. Page count
        total_pages = self._page_count(len(filtered))

        # 4. Slice
        page = min(max(self.page, 1), total_pages)
        start = (page - 1) * self.page_size
        items = filtered[start:start + self.page_size]

        return Projection(
            items=items,
            page=page,
            total_pages=total_pages,
            total_items=len(filtered)
        )

    def _filter(self, records: Sequence[FileRecord]) -> List[FileRecord]:
        term = self.search_term.lower()
        return [r for r in records if term in r.name.lower()]

    def _page_count(self, count: int) -> int:
        return max(1, math.ceil(count / self.page_size))
