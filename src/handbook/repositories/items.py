"""Item repository."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from handbook.core.pagination import Page, PageRequest
from handbook.core.repository import Filter, Repository
from handbook.models import Item, ItemCategory, ItemRarity, model_columns, multilingual


class ItemRepository(Repository[Item]):
    TABLE: ClassVar[str] = "items"
    COLUMNS: ClassVar[tuple[str, ...]] = model_columns(Item)
    CREATE_FIELDS: ClassVar[tuple[str, ...]] = (
        "unique_key",
        *multilingual("name"),
        "description_en",
        "source_description_en",
        "item_category",
        "rarity",
        "icon_url",
        "game_version",
    )
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = (
        "unique_key",
        *multilingual("name"),
        "item_category",
        "rarity",
    )
    SORT_COLUMNS: ClassVar[Mapping[str, str]] = {
        "id": "id",
        "name": "name_en",
        "name_en": "name_en",
        "name_jp": "name_jp",
        "item_category": "item_category",
        "category": "item_category",
        "rarity": "rarity",
        "game_version": "game_version",
    }
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = (
        *multilingual("name"),
        "description_en",
        "unique_key",
    )

    def map_row(self, row: Mapping[str, Any]) -> Item:
        return Item.from_row(row)

    async def find_by_category(self, category: Any, request: PageRequest | None = None) -> Page[Item]:
        return await self.find_all(request, [Filter.enum("item_category", category, ItemCategory)])

    async def find_by_rarity(self, rarity: Any, request: PageRequest | None = None) -> Page[Item]:
        return await self.find_all(request, [Filter.enum("rarity", rarity, ItemRarity)])
