"""Pagination of in-memory sequences."""

import math
from dataclasses import dataclass
from typing import Any, Sequence


@dataclass
class Pagination:
    """One page of items plus its metadata."""

    items: list[Any]
    current_page: int
    per_page: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total_count / self.per_page)) if self.per_page else 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def meta(self) -> dict[str, int]:
        return {
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "total_count": self.total_count,
            "per_page": self.per_page,
        }


def paginate(items: Sequence[Any], page: int = 1, per_page: int = 25, max_per_page: int | None = None) -> Pagination:
    """Slice `items` to one page. Out-of-range pages are clamped to >= 1."""
    page = max(1, int(page))
    per_page = max(1, int(per_page))
    if max_per_page:
        per_page = min(per_page, max_per_page)

    start = (page - 1) * per_page
    return Pagination(
        items=list(items[start:start + per_page]),
        current_page=page,
        per_page=per_page,
        total_count=len(items),
    )
