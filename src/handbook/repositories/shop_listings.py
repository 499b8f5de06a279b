"""Shop listing repository."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from handbook.core.pagination import Page, PageRequest
from handbook.core.repository import Filter, Repository
from handbook.models import ShopListing, ShopType, model_columns


class ShopListingRepository(Repository[ShopListing]):
    TABLE: ClassVar[str] = "shop_listings"
    COLUMNS: ClassVar[tuple[str, ...]] = model_columns(ShopListing)
    CREATE_FIELDS: ClassVar[tuple[str, ...]] = (
        "shop_type",
        "item_id",
        "cost_currency_item_id",
        "cost_amount",
        "start_date",
        "end_date",
    )
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = (
        "shop_type",
        "item_id",
        "cost_currency_item_id",
        "cost_amount",
    )
    UNIQUE_KEY: ClassVar[str | None] = None

    def map_row(self, row: Mapping[str, Any]) -> ShopListing:
        return ShopListing.from_row(row)

    async def find_by_shop_type(
        self, shop_type: Any, request: PageRequest | None = None
    ) -> Page[ShopListing]:
        return await self.find_all(request, [Filter.enum("shop_type", shop_type, ShopType)])

    async def find_active(self, request: PageRequest | None = None) -> Page[ShopListing]:
        """Listings on sale today; an unset start or end date leaves the window open."""
        return await self._paginate(
            [
                "(start_date IS NULL OR start_date <= CURRENT_DATE)",
                "(end_date IS NULL OR end_date >= CURRENT_DATE)",
            ],
            [],
            request,
        )

    async def find_by_item(
        self, item_id: Any, request: PageRequest | None = None
    ) -> Page[ShopListing]:
        key = self._coerce_id(item_id)
        return await self.find_all(request, [Filter("item_id", key)])

    async def find_by_currency(
        self, currency_item_id: Any, request: PageRequest | None = None
    ) -> Page[ShopListing]:
        key = self._coerce_id(currency_item_id)
        return await self.find_all(request, [Filter("cost_currency_item_id", key)])
