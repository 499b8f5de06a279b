"""
Integration tests against a real PostgreSQL.

Tests:
- CRUD round trip and constraint violations
- Search with literal wildcard matching and pagination totals
- Active-only scoping of characters
- Atomic batch inserts
- Transaction rollback
- JSONB columns and updated_at maintenance
- Date-relative finders
- Gacha drop rates and open-ended shop windows
- Health report over every table
"""

from __future__ import annotations

import asyncio
import datetime
from decimal import Decimal
from typing import Any

import pytest

from handbook.core.exceptions import NotFoundError, QueryError
from handbook.core.pagination import PageRequest
from handbook.repositories import (
    ALL_REPOSITORIES,
    CharacterRepository,
    DocumentRepository,
    EventRepository,
    GachaPoolRepository,
    GachaRepository,
    ItemRepository,
    ShopListingRepository,
    SwimsuitRepository,
)


pytestmark = pytest.mark.integration


def character_record(key: str, name_en: str, **overrides: Any) -> dict[str, Any]:
    return {
        "unique_key": key,
        "name_jp": name_en,
        "name_en": name_en,
        "name_cn": name_en,
        "name_tw": name_en,
        "name_kr": name_en,
        **overrides,
    }


def event_record(key: str, start: datetime.date, end: datetime.date) -> dict[str, Any]:
    return {
        "unique_key": key,
        "name_jp": key,
        "name_en": key.replace("-", " ").title(),
        "name_cn": key,
        "name_tw": key,
        "name_kr": key,
        "type": "TOWER",
        "start_date": start,
        "end_date": end,
    }


class TestCrud:
    """create/find/update/delete against real tables."""

    async def test_round_trip(self, db):
        characters = db.repository(CharacterRepository)

        created = await characters.create(
            character_record("kasumi", "Kasumi", birthday=datetime.date(1999, 2, 23), height=158)
        )
        assert created.id >= 1
        assert created.is_active is True

        assert await characters.find_by_id(created.id) == created
        assert (await characters.find_by_unique_key("kasumi")).id == created.id

        updated = await characters.update(created.id, {"height": 160})
        assert updated.height == 160
        assert updated.name_en == "Kasumi"

        await characters.delete(created.id)
        with pytest.raises(NotFoundError):
            await characters.find_by_id(created.id)
        with pytest.raises(NotFoundError):
            await characters.delete(created.id)

    async def test_duplicate_unique_key(self, db):
        characters = db.repository(CharacterRepository)
        await characters.create(character_record("ayane", "Ayane"))
        with pytest.raises(QueryError) as exc_info:
            await characters.create(character_record("ayane", "Ayane again"))
        assert exc_info.value.sqlstate == "23505"

    async def test_foreign_key(self, db):
        kasumi = await db.repository(CharacterRepository).create(character_record("kasumi", "Kasumi"))
        swimsuits = db.repository(SwimsuitRepository)
        swimsuit = await swimsuits.create(
            {
                **character_record("kasumi-blossom", "Blossom"),
                "character_id": kasumi.id,
                "rarity": "SSR",
                "suit_type": "POW",
            }
        )
        page = await swimsuits.find_by_character(kasumi.id)
        assert [s.id for s in page.data] == [swimsuit.id]

        with pytest.raises(QueryError):
            await swimsuits.create(
                {
                    **character_record("ghost-suit", "Ghost"),
                    "character_id": kasumi.id + 100,
                    "rarity": "R",
                    "suit_type": "TEC",
                }
            )


class TestSearch:
    """Substring search and pagination."""

    async def test_three_matches(self, db):
        characters = db.repository(CharacterRepository)
        for key, name in [
            ("kasumi", "Kasumi"),
            ("kasumi-alpha", "Kasumi Alpha"),
            ("phase-4", "KASUMI Phase 4"),
            ("ayane", "Ayane"),
        ]:
            await characters.create(character_record(key, name))

        page = await characters.search_text("kasumi", PageRequest(limit=2, sort_by="unique_key"))

        assert page.pagination.total == 3
        assert page.pagination.total_pages == 2
        assert page.pagination.has_next is True
        assert [c.unique_key for c in page.data] == ["kasumi", "kasumi-alpha"]

    async def test_wildcards_are_literal(self, db):
        characters = db.repository(CharacterRepository)
        await characters.create(character_record("percent", "100% Kasumi"))
        await characters.create(character_record("plain", "1000 Kasumi"))

        page = await characters.search(["name_en"], "100%")
        assert [c.unique_key for c in page.data] == ["percent"]

    async def test_inactive_hidden(self, db):
        characters = db.repository(CharacterRepository)
        await characters.create(character_record("kasumi", "Kasumi"))
        await characters.create(character_record("retired", "Kasumi Retired", is_active=False))

        assert (await characters.search_text("kasumi")).pagination.total == 1
        assert (await characters.search_text("kasumi", include_all=True)).pagination.total == 2
        assert await characters.count(include_all=True) == 2


class TestBatchAndTransactions:
    """Atomic multi-row work."""

    async def test_batch_create(self, db):
        events = db.repository(EventRepository)
        start = datetime.date(2025, 7, 1)
        records = [
            event_record(f"event-{n}", start, start + datetime.timedelta(days=n)) for n in range(5)
        ]

        ids = await events.batch_create(records, batch_size=2)

        assert len(ids) == 5
        stored = [await events.find_by_id(i) for i in ids]
        assert [e.unique_key for e in stored] == [r["unique_key"] for r in records]

    async def test_batch_is_atomic(self, db):
        events = db.repository(EventRepository)
        start = datetime.date(2025, 7, 1)
        records = [event_record(f"event-{n}", start, start) for n in range(3)]
        records.append(event_record("event-0", start, start))

        with pytest.raises(QueryError):
            await events.batch_create(records, batch_size=2)
        assert await events.count() == 0

    async def test_rollback(self, db):
        characters = db.repository(CharacterRepository)

        async def work(conn):
            await characters.create(character_record("kasumi", "Kasumi"), conn=conn)
            raise ValueError("abort")

        with pytest.raises(ValueError, match="abort"):
            await db.run_transaction(work)
        assert await characters.count(include_all=True) == 0

    async def test_commit_across_repositories(self, db):
        async def work(conn):
            kasumi = await db.repository(CharacterRepository).create(
                character_record("kasumi", "Kasumi"), conn=conn
            )
            return await db.repository(SwimsuitRepository).create(
                {
                    **character_record("kasumi-blossom", "Blossom"),
                    "character_id": kasumi.id,
                    "rarity": "SSR",
                    "suit_type": "POW",
                },
                conn=conn,
            )

        swimsuit = await db.run_transaction(work)
        assert (await db.repository(SwimsuitRepository).find_by_id(swimsuit.id)).name_en == "Blossom"

    async def test_concurrent_reads_within_capacity(self, db):
        characters = db.repository(CharacterRepository)
        await characters.create(character_record("kasumi", "Kasumi"))

        pages = await asyncio.gather(*(characters.find_all() for _ in range(12)))

        assert all(p.pagination.total == 1 for p in pages)
        assert db.stats().in_use == 0


class TestJsonAndTimestamps:
    """JSONB columns and updated_at."""

    async def test_document(self, db):
        documents = db.repository(DocumentRepository)
        created = await documents.create(
            {
                "unique_key": "guide",
                "title_en": "Beginner guide",
                "content_json_en": {"type": "doc", "content": [{"type": "paragraph"}]},
                "screenshots": ["one.png", "two.png"],
            }
        )
        assert created.content_json_en["type"] == "doc"
        assert created.screenshots == ("one.png", "two.png")
        assert created.is_published is False

        updated = await documents.update(created.id, {"is_published": True})
        assert updated.is_published is True
        assert updated.updated_at >= created.updated_at
        assert (await documents.find_published()).pagination.total == 1


class TestDateFinders:
    """Finders relative to the current date."""

    async def test_upcoming_events(self, db):
        events = db.repository(EventRepository)
        today = datetime.date.today()
        await events.create(
            event_record("running", today - datetime.timedelta(days=1), today + datetime.timedelta(days=3))
        )
        await events.create(
            event_record("next-week", today + datetime.timedelta(days=7), today + datetime.timedelta(days=14))
        )

        page = await events.find_upcoming()
        assert [e.unique_key for e in page.data] == ["next-week"]

    async def test_upcoming_birthdays(self, db):
        characters = db.repository(CharacterRepository)
        today = datetime.date(2025, 2, 20)
        await characters.create(character_record("kasumi", "Kasumi", birthday=datetime.date(1999, 2, 23)))
        await characters.create(character_record("ayane", "Ayane", birthday=datetime.date(2000, 8, 5)))
        await characters.create(character_record("nobody", "Nobody"))

        upcoming = await characters.find_upcoming_birthdays(7, today=today)
        assert [(c.unique_key, days) for c, days in upcoming] == [("kasumi", 3)]


class TestCatalogTables:
    """Gacha pools and shop listings."""

    async def test_gacha_pool_rates(self, db):
        gachas = db.repository(GachaRepository)
        pools = db.repository(GachaPoolRepository)
        today = datetime.date.today()
        gacha = await gachas.create(
            {
                **character_record("summer-trendy", "Summer Trendy"),
                "gacha_subtype": "TRENDY",
                "start_date": today,
                "end_date": today + datetime.timedelta(days=14),
            }
        )
        await pools.batch_create(
            [
                {"gacha_id": gacha.id, "pool_item_type": "SWIMSUIT", "item_id": 1,
                 "drop_rate": Decimal("0.0150"), "is_featured": True},
                {"gacha_id": gacha.id, "pool_item_type": "ITEM", "item_id": 2,
                 "drop_rate": Decimal("0.9850")},
            ]
        )

        assert await pools.has_complete_rates(gacha.id) is True
        featured = await pools.find_featured(gacha.id)
        assert [e.drop_rate for e in featured] == [Decimal("0.0150")]
        assert [g.unique_key for g in (await gachas.find_active()).data] == ["summer-trendy"]

        assert await pools.delete_by_gacha(gacha.id) == 2
        assert await pools.total_drop_rate(gacha.id) == 0

    async def test_shop_listings_open_window(self, db):
        items = db.repository(ItemRepository)
        shop = db.repository(ShopListingRepository)
        gem = await items.create(
            {**character_record("gem", "Gem"), "item_category": "CURRENCY", "rarity": "SSR"}
        )
        ticket = await items.create(
            {**character_record("ticket", "Ticket"), "item_category": "CONSUMABLE", "rarity": "R"}
        )
        yesterday = datetime.date.today() - datetime.timedelta(days=1)
        base = {"shop_type": "GENERAL", "item_id": ticket.id, "cost_currency_item_id": gem.id}
        await shop.create({**base, "cost_amount": 100})
        await shop.create({**base, "cost_amount": 80, "end_date": yesterday})

        active = await shop.find_active()
        assert [listing.cost_amount for listing in active.data] == [100]
        assert (await shop.find_by_currency(gem.id)).pagination.total == 2


class TestHealth:
    """Health report over the real schema."""

    async def test_all_tables_healthy(self, db):
        report = await db.health_report(ALL_REPOSITORIES)
        assert report["healthy"] is True
        assert len(report["tables"]) == len(ALL_REPOSITORIES)

    async def test_missing_table(self, db):
        await db.execute("DROP TABLE update_logs")
        report = await db.health_report(ALL_REPOSITORIES)
        assert report["healthy"] is False
        failing = [t["table"] for t in report["tables"] if not t["healthy"]]
        assert failing == ["update_logs"]
