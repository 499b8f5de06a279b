"""Document repository."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from handbook.core.pagination import Page, PageRequest
from handbook.core.repository import Filter, Repository
from handbook.models import Document, model_columns


class DocumentRepository(Repository[Document]):
    TABLE: ClassVar[str] = "documents"
    COLUMNS: ClassVar[tuple[str, ...]] = model_columns(Document)
    CREATE_FIELDS: ClassVar[tuple[str, ...]] = (
        "unique_key",
        "title_en",
        "summary_en",
        "content_json_en",
        "is_published",
        "screenshots",
    )
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = ("unique_key", "title_en")
    SORT_COLUMNS: ClassVar[Mapping[str, str]] = {
        "id": "id",
        "title": "title_en",
        "title_en": "title_en",
        "is_published": "is_published",
        "created_at": "created_at",
        "updated_at": "updated_at",
    }
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = ("title_en", "summary_en", "unique_key")

    def map_row(self, row: Mapping[str, Any]) -> Document:
        return Document.from_row(row)

    async def find_published(self, request: PageRequest | None = None) -> Page[Document]:
        return await self.find_all(request, [Filter("is_published", True)])
