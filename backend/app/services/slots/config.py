# backend/app/services/slots/config.py
"""
Branch slot configuration: statuses, weekday labels, paging limits.
"""

from dataclasses import dataclass
from functools import lru_cache

from ...config import settings
from ...models.generated import SLOT_STATUSES

DEFAULT_STATUS = "Available"

# 0 = Sunday, matches weekday_of()
WEEK_DAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


@dataclass(frozen=True)
class SlotsConfig:
    """
    Configuration for branch slot listing and availability.

    Attributes:
        default_page_size: Page size when the caller omits pageSize
        max_page_size: Upper bound for pageSize (pickers load up to 1000 rows)
        active_subscription_status: Ledger status that makes a subscription usable
    """
    default_page_size: int = 10
    max_page_size: int = 1000
    active_subscription_status: str = "Active"

    def __post_init__(self):
        if not 0 < self.default_page_size <= self.max_page_size:
            raise ValueError(
                f"default_page_size must be in 1..{self.max_page_size}, got {self.default_page_size}"
            )

    def clamp_page(self, page_index: int | None, page_size: int | None) -> tuple[int, int]:
        """Normalize 1-based page index and size."""
        index = page_index if page_index and page_index > 0 else 1
        size = page_size if page_size and page_size > 0 else self.default_page_size
        return index, min(size, self.max_page_size)


def is_valid_status(status: str | None) -> bool:
    return status in SLOT_STATUSES


def week_day_label(week_date: int) -> str:
    """Weekday name for 0..6, e.g. 1 → "Monday"."""
    return WEEK_DAYS[week_date]


@lru_cache
def get_slots_config() -> SlotsConfig:
    """Get slots configuration (singleton)."""
    return SlotsConfig(
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )
