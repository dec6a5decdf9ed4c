# backend/app/schemas/common.py

from math import ceil
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Wire models: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Page(CamelModel, Generic[T]):
    items: list[T]
    page_index: int
    page_size: int
    total_count: int
    total_pages: int

    @classmethod
    def build(cls, items: list, page_index: int, page_size: int, total_count: int) -> "Page":
        return cls(
            items=items,
            page_index=page_index,
            page_size=page_size,
            total_count=total_count,
            total_pages=ceil(total_count / page_size) if page_size else 0,
        )


class ErrorBody(BaseModel):
    kind: str
    message: str
    field: Optional[str] = None
