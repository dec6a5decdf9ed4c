# backend/app/services/slots/paging.py
"""
1-based paging shared by slot listing, slot rooms and availability.
"""

from dataclasses import dataclass, field
from math import ceil

from sqlalchemy.orm import Query

from .config import SlotsConfig, get_slots_config


@dataclass
class PageResult:
    items: list = field(default_factory=list)
    page_index: int = 1
    page_size: int = 10
    total_count: int = 0

    @property
    def total_pages(self) -> int:
        return ceil(self.total_count / self.page_size) if self.page_size else 0


def paginate(
    query: Query,
    page_index: int | None,
    page_size: int | None,
    config: SlotsConfig | None = None,
) -> PageResult:
    """Run a count and one LIMIT/OFFSET select for the requested page."""
    config = config or get_slots_config()
    index, size = config.clamp_page(page_index, page_size)

    total = query.count()
    items = query.offset((index - 1) * size).limit(size).all() if total else []

    return PageResult(items=items, page_index=index, page_size=size, total_count=total)


def paginate_list(
    items: list,
    page_index: int | None,
    page_size: int | None,
    config: SlotsConfig | None = None,
) -> PageResult:
    """Same as paginate() for an already materialized list."""
    config = config or get_slots_config()
    index, size = config.clamp_page(page_index, page_size)
    start = (index - 1) * size

    return PageResult(
        items=items[start:start + size],
        page_index=index,
        page_size=size,
        total_count=len(items),
    )


def empty_page(
    page_index: int | None,
    page_size: int | None,
    config: SlotsConfig | None = None,
) -> PageResult:
    config = config or get_slots_config()
    index, size = config.clamp_page(page_index, page_size)
    return PageResult(items=[], page_index=index, page_size=size, total_count=0)
