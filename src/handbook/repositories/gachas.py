"""Gacha banner and gacha pool repositories."""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from decimal import Decimal
from typing import TYPE_CHECKING, Any, ClassVar

from handbook.core.exceptions import ValidationError
from handbook.core.pagination import Page, PageRequest
from handbook.core.repository import Filter, Repository, parse_row_count
from handbook.models import (
    Gacha,
    GachaPoolEntry,
    GachaSubtype,
    PoolItemType,
    model_columns,
    multilingual,
)


if TYPE_CHECKING:
    import asyncpg


# Rates are NUMERIC(6,4); a pool is complete when they sum to 1
_RATE_TOLERANCE = Decimal("0.0001")


class GachaRepository(Repository[Gacha]):
    TABLE: ClassVar[str] = "gachas"
    COLUMNS: ClassVar[tuple[str, ...]] = model_columns(Gacha)
    CREATE_FIELDS: ClassVar[tuple[str, ...]] = (
        "unique_key",
        *multilingual("name"),
        "gacha_subtype",
        "start_date",
        "end_date",
        "banner_image_url",
        "game_version",
    )
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = (
        "unique_key",
        *multilingual("name"),
        "gacha_subtype",
        "start_date",
        "end_date",
    )
    SORT_COLUMNS: ClassVar[Mapping[str, str]] = {
        "id": "id",
        "name": "name_en",
        "name_en": "name_en",
        "gacha_subtype": "gacha_subtype",
        "start_date": "start_date",
        "end_date": "end_date",
        "game_version": "game_version",
    }
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = (*multilingual("name"), "unique_key")

    def map_row(self, row: Mapping[str, Any]) -> Gacha:
        return Gacha.from_row(row)

    async def find_active(self, request: PageRequest | None = None) -> Page[Gacha]:
        """Banners running today, per the database clock."""
        return await self._paginate(
            ["start_date <= CURRENT_DATE", "end_date >= CURRENT_DATE"], [], request
        )

    async def find_by_subtype(self, subtype: Any, request: PageRequest | None = None) -> Page[Gacha]:
        return await self.find_all(request, [Filter.enum("gacha_subtype", subtype, GachaSubtype)])

    async def find_by_date_range(
        self,
        start: datetime.date,
        end: datetime.date,
        request: PageRequest | None = None,
    ) -> Page[Gacha]:
        """Banners that start and end inside ``[start, end]``."""
        if not isinstance(start, datetime.date) or not isinstance(end, datetime.date):
            raise ValidationError("start and end must be dates")
        if end < start:
            raise ValidationError(f"end {end} precedes start {start}")
        return await self._paginate(["start_date >= $1", "end_date <= $2"], [start, end], request)


class GachaPoolRepository(Repository[GachaPoolEntry]):
    """Drop table entries of every gacha."""

    TABLE: ClassVar[str] = "gacha_pools"
    COLUMNS: ClassVar[tuple[str, ...]] = model_columns(GachaPoolEntry)
    CREATE_FIELDS: ClassVar[tuple[str, ...]] = (
        "gacha_id",
        "pool_item_type",
        "item_id",
        "drop_rate",
        "is_featured",
    )
    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = (
        "gacha_id",
        "pool_item_type",
        "item_id",
        "drop_rate",
    )
    UNIQUE_KEY: ClassVar[str | None] = None

    def map_row(self, row: Mapping[str, Any]) -> GachaPoolEntry:
        return GachaPoolEntry.from_row(row)

    async def find_by_gacha(
        self, gacha_id: Any, request: PageRequest | None = None
    ) -> Page[GachaPoolEntry]:
        key = self._coerce_id(gacha_id)
        return await self.find_all(request, [Filter("gacha_id", key)])

    async def find_featured(self, gacha_id: Any) -> list[GachaPoolEntry]:
        """Rate-up entries of one gacha, highest rate first."""
        key = self._coerce_id(gacha_id)
        return await self._select(
            ["gacha_id = $1", "is_featured = TRUE"], [key], "drop_rate DESC, id ASC"
        )

    async def find_by_item_type(
        self, item_type: Any, request: PageRequest | None = None
    ) -> Page[GachaPoolEntry]:
        return await self.find_all(
            request, [Filter.enum("pool_item_type", item_type, PoolItemType)]
        )

    async def total_drop_rate(self, gacha_id: Any) -> Decimal:
        key = self._coerce_id(gacha_id)
        total = await self._executor.fetchval(
            f"SELECT COALESCE(SUM(drop_rate), 0) FROM {self.TABLE} WHERE gacha_id = $1",
            key,
            table=self.TABLE,
        )
        return Decimal(str(total))

    async def has_complete_rates(self, gacha_id: Any) -> bool:
        """Whether the gacha's drop rates add up to 1."""
        total = await self.total_drop_rate(gacha_id)
        return abs(total - 1) < _RATE_TOLERANCE

    async def delete_by_gacha(
        self,
        gacha_id: Any,
        *,
        conn: asyncpg.Connection[asyncpg.Record] | None = None,
    ) -> int:
        """Remove a gacha's whole pool; returns the number of entries deleted."""
        key = self._coerce_id(gacha_id)
        status = await self._executor.execute(
            f"DELETE FROM {self.TABLE} WHERE gacha_id = $1", key, conn=conn, table=self.TABLE
        )
        deleted = parse_row_count(status)
        self._logger.debug("pool_cleared", table=self.TABLE, gacha_id=key, rows=deleted)
        return deleted
