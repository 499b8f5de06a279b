"""Bromide rows: decoration and owner cards, optionally granting a skill."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ._mapping import coerce_enum, from_row, to_dict
from .constants import BromideRarity, BromideType


@dataclass(frozen=True, slots=True)
class Bromide:
    """A single row in the ``bromides`` table."""

    id: int
    unique_key: str
    name_jp: str
    name_en: str
    name_cn: str
    name_tw: str
    name_kr: str
    bromide_type: BromideType
    rarity: BromideRarity
    skill_id: int | None = None
    art_url: str | None = None
    game_version: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "bromide_type", coerce_enum(self.bromide_type, BromideType, "bromide_type")
        )
        object.__setattr__(self, "rarity", coerce_enum(self.rarity, BromideRarity, "rarity"))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Bromide:
        return from_row(cls, row)

    def to_dict(self) -> dict[str, Any]:
        return to_dict(self)
