"""
Pagination requests and paginated results.

Page arithmetic lives here so every listing computes offsets, page counts
and the next/previous flags the same way:

- ``offset = (page - 1) * limit``
- ``total_pages = ceil(total / limit)``
- ``has_next = page * limit < total`` and ``has_prev = page > 1``
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Generic, TypeVar

from .exceptions import ValidationError


T = TypeVar("T")
U = TypeVar("U")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class SortOrder(StrEnum):
    """Sort direction, rendered verbatim into ``ORDER BY``."""

    ASC = "asc"
    DESC = "desc"

    @property
    def sql(self) -> str:
        return self.value.upper()


@dataclass(frozen=True, slots=True)
class PageRequest:
    """A requested slice of a listing.

    ``page`` and ``limit`` are taken as given; call
    [clamp()][handbook.core.pagination.PageRequest.clamp] to bring them into
    the server-side bounds before use.

    Attributes:
        page: 1-based page number.
        limit: Rows per page.
        sort_by: Logical sort key, resolved through the repository's
            allow-list (unknown keys fall back to the default column).
        sort_order: Sort direction.
    """

    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    sort_by: str | None = None
    sort_order: SortOrder = SortOrder.ASC

    def __post_init__(self) -> None:
        if isinstance(self.page, bool) or not isinstance(self.page, int):
            raise ValidationError(f"page must be an int, got {type(self.page).__name__}")
        if isinstance(self.limit, bool) or not isinstance(self.limit, int):
            raise ValidationError(f"limit must be an int, got {type(self.limit).__name__}")
        try:
            object.__setattr__(self, "sort_order", SortOrder(str(self.sort_order).lower()))
        except ValueError as e:
            raise ValidationError(f"sort_order must be 'asc' or 'desc', got {self.sort_order!r}") from e

    @classmethod
    def from_params(cls, params: dict[str, Any], *, default_limit: int = DEFAULT_PAGE_SIZE) -> PageRequest:
        """Build a request from loosely typed query parameters (strings allowed)."""
        try:
            page = int(params.get("page") or 1)
            limit = int(params.get("limit") or default_limit)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"page and limit must be integers: {e}") from e
        return cls(
            page=page,
            limit=limit,
            sort_by=params.get("sort_by") or params.get("sortBy"),
            sort_order=params.get("sort_order") or params.get("sortOrder") or SortOrder.ASC,
        )

    def clamp(self, max_limit: int = MAX_PAGE_SIZE) -> PageRequest:
        """Return a copy with ``page >= 1`` and ``1 <= limit <= max_limit``."""
        page = max(1, self.page)
        limit = min(max(1, self.limit), max_limit)
        if page == self.page and limit == self.limit:
            return self
        return PageRequest(page=page, limit=limit, sort_by=self.sort_by, sort_order=self.sort_order)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True, slots=True)
class PageInfo:
    """Pagination metadata accompanying a page of rows."""

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def compute(cls, page: int, limit: int, total: int) -> PageInfo:
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
            has_next=page * limit < total,
            has_prev=page > 1,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    """One page of mapped rows plus its pagination metadata."""

    data: Sequence[T]
    pagination: PageInfo = field(repr=False)

    @classmethod
    def build(cls, data: Sequence[T], request: PageRequest, total: int) -> Page[T]:
        return cls(data=list(data), pagination=PageInfo.compute(request.page, request.limit, total))

    def map(self, fn: Callable[[T], U]) -> Page[U]:
        """Apply *fn* to every row, keeping the metadata."""
        return Page(data=[fn(item) for item in self.data], pagination=self.pagination)

    def to_dict(self, serialize: Callable[[T], Any] | None = None) -> dict[str, Any]:
        """Response shape ``{"data": [...], "pagination": {...}}``."""
        items = [serialize(item) for item in self.data] if serialize else list(self.data)
        return {"data": items, "pagination": self.pagination.to_dict()}

    def __len__(self) -> int:
        return len(self.data)
