"""Update log repository."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from handbook.core.exceptions import ValidationError
from handbook.core.pagination import Page, PageRequest, SortOrder
from handbook.core.repository import Filter, Repository
from handbook.models import UpdateLog, model_columns


class UpdateLogRepository(Repository[UpdateLog]):
    TABLE: ClassVar[str] = "update_logs"
    COLUMNS: ClassVar[tuple[str, ...]] = model_columns(UpdateLog)
    CREATE_FIELDS: ClassVar[tuple[str, ...]] = (
        "unique_key",
        "version",
        "title",
        "content",
        "description",
        "date",
        "tags",
        "is_published",
        "screenshots",
        "metrics",
    )
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = ("unique_key", "version", "title", "content", "date")
    SORT_COLUMNS: ClassVar[Mapping[str, str]] = {
        "id": "id",
        "date": "date",
        "version": "version",
        "title": "title",
        "created_at": "created_at",
        "updated_at": "updated_at",
    }
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = ("title", "content", "version")

    def map_row(self, row: Mapping[str, Any]) -> UpdateLog:
        return UpdateLog.from_row(row)

    async def find_published(self, request: PageRequest | None = None) -> Page[UpdateLog]:
        """Published logs, newest first unless another order is requested."""
        request = request or PageRequest(sort_by="date", sort_order=SortOrder.DESC)
        return await self.find_all(request, [Filter("is_published", True)])

    async def find_recent(self, limit: int = 5) -> list[UpdateLog]:
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= 100:
            raise ValidationError(f"limit must be between 1 and 100, got {limit!r}")
        return await self._select(["is_published = TRUE"], [], "date DESC, id DESC", limit=limit)

    async def find_by_version(self, version: str) -> list[UpdateLog]:
        if not isinstance(version, str) or not version.strip():
            raise ValidationError(f"invalid version: {version!r}")
        return await self._select(["version = $1"], [version.strip()], "date DESC, id DESC")
