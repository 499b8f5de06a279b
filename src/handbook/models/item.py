"""Item rows: currencies, materials, gifts and other inventory entries."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ._mapping import coerce_enum, from_row, to_dict
from .constants import ItemCategory, ItemRarity


@dataclass(frozen=True, slots=True)
class Item:
    """A single row in the ``items`` table."""

    id: int
    unique_key: str
    name_jp: str
    name_en: str
    name_cn: str
    name_tw: str
    name_kr: str
    item_category: ItemCategory
    rarity: ItemRarity
    description_en: str | None = None
    source_description_en: str | None = None
    icon_url: str | None = None
    game_version: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "item_category", coerce_enum(self.item_category, ItemCategory, "item_category")
        )
        object.__setattr__(self, "rarity", coerce_enum(self.rarity, ItemRarity, "rarity"))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Item:
        return from_row(cls, row)

    def to_dict(self) -> dict[str, Any]:
        return to_dict(self)
