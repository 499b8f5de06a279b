"""Swimsuit repository."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from handbook.core.pagination import Page, PageRequest
from handbook.core.repository import Filter, Repository
from handbook.models import Swimsuit, SuitType, SwimsuitRarity, model_columns, multilingual


class SwimsuitRepository(Repository[Swimsuit]):
    TABLE: ClassVar[str] = "swimsuits"
    COLUMNS: ClassVar[tuple[str, ...]] = model_columns(Swimsuit)
    CREATE_FIELDS: ClassVar[tuple[str, ...]] = (
        "character_id",
        "unique_key",
        *multilingual("name"),
        "description_en",
        "rarity",
        "suit_type",
        "total_stats_awakened",
        "has_malfunction",
        "is_limited",
        "release_date_gl",
        "game_version",
    )
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = (
        "character_id",
        "unique_key",
        *multilingual("name"),
        "rarity",
        "suit_type",
    )
    SORT_COLUMNS: ClassVar[Mapping[str, str]] = {
        "id": "id",
        "name": "name_en",
        "name_en": "name_en",
        "name_jp": "name_jp",
        "rarity": "rarity",
        "suit_type": "suit_type",
        "total_stats_awakened": "total_stats_awakened",
        "has_malfunction": "has_malfunction",
        "is_limited": "is_limited",
        "release_date_gl": "release_date_gl",
        "release_date": "release_date_gl",
        "game_version": "game_version",
    }
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = (*multilingual("name"), "unique_key")

    def map_row(self, row: Mapping[str, Any]) -> Swimsuit:
        return Swimsuit.from_row(row)

    async def find_by_character(
        self, character_id: Any, request: PageRequest | None = None
    ) -> Page[Swimsuit]:
        key = self._coerce_id(character_id)
        return await self.find_all(request, [Filter("character_id", key)])

    async def find_by_rarity(self, rarity: Any, request: PageRequest | None = None) -> Page[Swimsuit]:
        return await self.find_all(request, [Filter.enum("rarity", rarity, SwimsuitRarity)])

    async def find_by_suit_type(
        self, suit_type: Any, request: PageRequest | None = None
    ) -> Page[Swimsuit]:
        return await self.find_all(request, [Filter.enum("suit_type", suit_type, SuitType)])

    async def find_limited(self, request: PageRequest | None = None) -> Page[Swimsuit]:
        return await self.find_all(request, [Filter("is_limited", True)])

    async def find_with_malfunction(self, request: PageRequest | None = None) -> Page[Swimsuit]:
        return await self.find_all(request, [Filter("has_malfunction", True)])
