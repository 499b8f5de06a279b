"""Gacha rows: time-boxed banners, and the entries each banner can drop."""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from ._mapping import coerce_enum, from_row, to_dict
from .constants import GachaSubtype, PoolItemType


@dataclass(frozen=True, slots=True)
class Gacha:
    """A single row in the ``gachas`` table."""

    id: int
    unique_key: str
    name_jp: str
    name_en: str
    name_cn: str
    name_tw: str
    name_kr: str
    gacha_subtype: GachaSubtype
    start_date: datetime.date
    end_date: datetime.date
    banner_image_url: str | None = None
    game_version: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "gacha_subtype", coerce_enum(self.gacha_subtype, GachaSubtype, "gacha_subtype")
        )
        if self.end_date < self.start_date:
            raise ValueError(f"end_date {self.end_date} precedes start_date {self.start_date}")

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Gacha:
        return from_row(cls, row)

    def to_dict(self) -> dict[str, Any]:
        return to_dict(self)

    def is_running(self, on: datetime.date) -> bool:
        return self.start_date <= on <= self.end_date


@dataclass(frozen=True, slots=True)
class GachaPoolEntry:
    """A single row in the ``gacha_pools`` table.

    ``item_id`` refers to ``swimsuits``, ``bromides`` or ``items`` depending
    on ``pool_item_type``; the database cannot enforce that reference.
    """

    id: int
    gacha_id: int
    pool_item_type: PoolItemType
    item_id: int
    drop_rate: Decimal
    is_featured: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "pool_item_type",
            coerce_enum(self.pool_item_type, PoolItemType, "pool_item_type"),
        )
        rate = Decimal(str(self.drop_rate))
        if not Decimal(0) <= rate <= Decimal(1):
            raise ValueError(f"drop_rate must be between 0 and 1, got {rate}")
        object.__setattr__(self, "drop_rate", rate)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> GachaPoolEntry:
        return from_row(cls, row)

    def to_dict(self) -> dict[str, Any]:
        return to_dict(self)
