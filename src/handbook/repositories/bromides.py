"""Bromide repository."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from handbook.core.pagination import Page, PageRequest
from handbook.core.repository import Filter, Repository
from handbook.models import Bromide, BromideRarity, BromideType, model_columns, multilingual


class BromideRepository(Repository[Bromide]):
    TABLE: ClassVar[str] = "bromides"
    COLUMNS: ClassVar[tuple[str, ...]] = model_columns(Bromide)
    CREATE_FIELDS: ClassVar[tuple[str, ...]] = (
        "unique_key",
        *multilingual("name"),
        "bromide_type",
        "rarity",
        "skill_id",
        "art_url",
        "game_version",
    )
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = (
        "unique_key",
        *multilingual("name"),
        "bromide_type",
        "rarity",
    )
    SORT_COLUMNS: ClassVar[Mapping[str, str]] = {
        "id": "id",
        "name": "name_en",
        "name_en": "name_en",
        "bromide_type": "bromide_type",
        "type": "bromide_type",
        "rarity": "rarity",
        "game_version": "game_version",
    }
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = (*multilingual("name"), "unique_key")

    def map_row(self, row: Mapping[str, Any]) -> Bromide:
        return Bromide.from_row(row)

    async def find_by_type(self, bromide_type: Any, request: PageRequest | None = None) -> Page[Bromide]:
        return await self.find_all(request, [Filter.enum("bromide_type", bromide_type, BromideType)])

    async def find_by_rarity(self, rarity: Any, request: PageRequest | None = None) -> Page[Bromide]:
        return await self.find_all(request, [Filter.enum("rarity", rarity, BromideRarity)])
