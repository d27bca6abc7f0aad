"""Pagination helpers for list endpoints."""


import math
from collections.abc import Sequence
from typing import TypeVar

from fastapi import Query
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from appro.core.config import settings

T = TypeVar("T")


class Paginator:
    """Page window arithmetic over a filtered result set.

    ``current_page`` is always clamped to ``1 <= current_page <= max(total_pages, 1)``;
    every mutator re-applies the clamp.
    """

    def __init__(self, total_items: int, page_size: int, current_page: int = 1):
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        if total_items < 0:
            raise ValueError(f"total_items must be >= 0, got {total_items}")
        self.total_items = total_items
        self.page_size = page_size
        self.current_page = current_page
        self._clamp()

    def _clamp(self) -> None:
        upper = max(self.total_pages, 1)
        self.current_page = min(max(self.current_page, 1), upper)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.page_size)

    @property
    def window_start(self) -> int:
        return (self.current_page - 1) * self.page_size

    @property
    def window_end(self) -> int:
        return min(self.window_start + self.page_size, self.total_items)

    @property
    def can_go_previous(self) -> bool:
        return self.current_page > 1

    @property
    def can_go_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def first_item(self) -> int:
        """1-based index of the first displayed item (0 when the set is empty)."""
        return self.window_start + 1 if self.total_items else 0

    @property
    def last_item(self) -> int:
        return self.window_end

    def slice(self, items: Sequence[T]) -> list[T]:
        return list(items[self.window_start:self.window_end])

    def page_numbers(self, max_visible: int = 5) -> list[int]:
        """Contiguous page numbers centered on the current page, shifted at the edges."""
        if max_visible <= 0:
            return []
        start = max(1, self.current_page - max_visible // 2)
        end = min(self.total_pages, start + max_visible - 1)
        if end - start < max_visible - 1:
            start = max(1, end - max_visible + 1)
        return list(range(start, end + 1))

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def go_to_page(self, page: int) -> None:
        # Out-of-range requests leave the current page untouched
        if 1 <= page <= self.total_pages:
            self.current_page = page

    def next_page(self) -> None:
        if self.can_go_next:
            self.current_page += 1

    def previous_page(self) -> None:
        if self.can_go_previous:
            self.current_page -= 1

    def first_page(self) -> None:
        self.go_to_page(1)

    def last_page(self) -> None:
        self.go_to_page(self.total_pages)

    def change_page_size(self, page_size: int) -> None:
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.page_size = page_size
        self.current_page = 1
        self._clamp()

    def update_total(self, total_items: int) -> None:
        """Re-clamp after the underlying (filtered) set changed size."""
        if total_items < 0:
            raise ValueError(f"total_items must be >= 0, got {total_items}")
        self.total_items = total_items
        self._clamp()


class PaginationParams:
    """FastAPI dependency for `?page=1&limit=5&sort=date&order=desc`."""

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="Page number (1-based)"),
        limit: int = Query(
            default=settings.default_page_size,
            ge=1,
            le=settings.max_page_size,
            description="Items per page",
        ),
        sort: str | None = Query(default=None, description="Sort field (store order when omitted)"),
        order: str = Query(default="asc", pattern="^(asc|desc)$", description="Sort order"),
    ):
        self.page = page
        self.limit = limit
        self.sort = sort
        self.order = order


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    pages: int
    page_numbers: list[int] = []
    has_previous: bool = False
    has_next: bool = False
    first_item: int = 0
    last_item: int = 0

    model_config = {"populate_by_name": True, "alias_generator": to_camel}

    @classmethod
    def from_paginator(cls, paginator: Paginator, max_visible: int) -> "PageMeta":
        return cls(
            total=paginator.total_items,
            page=paginator.current_page,
            limit=paginator.page_size,
            pages=paginator.total_pages,
            page_numbers=paginator.page_numbers(max_visible),
            has_previous=paginator.can_go_previous,
            has_next=paginator.can_go_next,
            first_item=paginator.first_item,
            last_item=paginator.last_item,
        )
