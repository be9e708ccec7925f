"""Page slicing for item and log listings."""

import math
from dataclasses import dataclass, field
from typing import Any, List, Sequence


@dataclass
class Page:
    """One page of a listing."""

    items: List[Any] = field(default_factory=list)
    page: int = 1
    per_page: int = 10
    total: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.per_page) if self.per_page else 0

    @property
    def start(self) -> int:
        """1-based index of the first row shown, 0 when empty."""
        return (self.page - 1) * self.per_page + 1 if self.total else 0

    @property
    def end(self) -> int:
        """1-based index of the last row shown, 0 when empty."""
        return min(self.page * self.per_page, self.total) if self.total else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


def paginate(rows: Sequence[Any], page: int = 1, per_page: int = 10) -> Page:
    """Slice ``rows`` to the requested page, clamping out-of-range pages."""
    if per_page <= 0:
        raise ValueError("per_page must be positive")

    total = len(rows)
    total_pages = max(1, math.ceil(total / per_page))
    page = min(max(page, 1), total_pages)

    start_index = (page - 1) * per_page
    return Page(
        items=list(rows[start_index:start_index + per_page]),
        page=page,
        per_page=per_page,
        total=total,
    )
