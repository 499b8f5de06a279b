"""Swimsuit rows: outfits owned by a character, with rarity and stat type."""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ._mapping import coerce_enum, from_row, to_dict
from .constants import SuitType, SwimsuitRarity


@dataclass(frozen=True, slots=True)
class Swimsuit:
    """A single row in the ``swimsuits`` table."""

    id: int
    character_id: int
    unique_key: str
    name_jp: str
    name_en: str
    name_cn: str
    name_tw: str
    name_kr: str
    rarity: SwimsuitRarity
    suit_type: SuitType
    description_en: str | None = None
    total_stats_awakened: int = 0
    has_malfunction: bool = False
    is_limited: bool = True
    release_date_gl: datetime.date | None = None
    game_version: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "rarity", coerce_enum(self.rarity, SwimsuitRarity, "rarity"))
        object.__setattr__(self, "suit_type", coerce_enum(self.suit_type, SuitType, "suit_type"))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Swimsuit:
        return from_row(cls, row)

    def to_dict(self) -> dict[str, Any]:
        return to_dict(self)
