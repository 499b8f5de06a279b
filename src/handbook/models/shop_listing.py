"""Shop listing rows: an item on sale for an amount of a currency item."""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ._mapping import coerce_enum, from_row, to_dict
from .constants import ShopType


@dataclass(frozen=True, slots=True)
class ShopListing:
    """A single row in the ``shop_listings`` table.

    A missing ``start_date`` or ``end_date`` leaves that side of the sale
    window open.
    """

    id: int
    shop_type: ShopType
    item_id: int
    cost_currency_item_id: int
    cost_amount: int
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "shop_type", coerce_enum(self.shop_type, ShopType, "shop_type"))
        if self.cost_amount < 0:
            raise ValueError(f"cost_amount must be >= 0, got {self.cost_amount}")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError(f"end_date {self.end_date} precedes start_date {self.start_date}")

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ShopListing:
        return from_row(cls, row)

    def to_dict(self) -> dict[str, Any]:
        return to_dict(self)

    def is_on_sale(self, on: datetime.date) -> bool:
        if self.start_date is not None and on < self.start_date:
            return False
        return self.end_date is None or on <= self.end_date
