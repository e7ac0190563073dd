"""Page-number pagination for list endpoints."""

import math
from dataclasses import dataclass
from typing import Any, Callable, List, Optional


@dataclass
class Page:
    items: List[Any]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page)) if self.per_page else 1

    def to_dict(self, transform: Optional[Callable[[Any], Any]] = None) -> dict:
        data = [transform(item) for item in self.items] if transform else list(self.items)
        return {
            "data": data,
            "total": self.total,
            "current_page": self.page,
            "per_page": self.per_page,
            "last_page": self.last_page,
        }


def paginate(query, page: int = 1, per_page: int = 10) -> Page:
    """Apply offset/limit for a 1-based page number to a SQLAlchemy query."""
    page = max(1, page)
    per_page = max(1, per_page)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * per_page).limit(per_page).all()
    return Page(items=items, total=total, page=page, per_page=per_page)
